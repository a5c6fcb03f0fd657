"""Category hierarchy for ZenFocus.

Categories form a strict tree. Each node keeps only its parent's id; the
tree keeps a separate parent-id -> ordered child ids index, so nodes never
own each other. Sibling names are unique case-insensitively.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Iterator

from zenfocus.errors import ValidationError
from zenfocus.models import Category


UNCATEGORIZED = "Uncategorized"

PREDEFINED_COLORS = (
    "#A6F2BF",  # mint green
    "#A6BFF2",  # ocean blue
    "#F2F2A6",  # sunshine yellow
    "#BFA6F2",  # lavender purple
    "#A6F2F2",  # aqua cyan
    "#F2BFA6",  # peach orange
    "#BFF2A6",  # lime green
    "#A6D9F2",  # sky blue
    "#F2A6BF",  # rose pink
    "#D9B380",  # terracotta
    "#80D9B3",  # teal green
    "#B380D9",  # amethyst purple
    "#D9D980",  # pale gold
    "#80D9D9",  # turquoise
    "#D98080",  # coral red
    "#80B3D9",  # slate blue
    "#D9A680",  # amber
    "#B3D980",  # olive green
    "#D980B3",  # magenta
)


def _key(name: str) -> str:
    return name.strip().lower()


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name cannot be empty")
    return cleaned


class CategoryTree:
    def __init__(self, categories: Iterable[Category] = ()):
        self._nodes: dict[str, Category] = {}
        self._children: dict[str | None, list[str]] = {None: []}
        self._color_index = 0
        pending = list(categories)
        # Parents first, so stored records load in any order.
        while pending:
            progressed = False
            for category in list(pending):
                if category.parent_id is None or category.parent_id in self._nodes:
                    self._attach(category)
                    pending.remove(category)
                    progressed = True
            if not progressed:
                # Orphans become roots rather than disappearing.
                for category in pending:
                    category.parent_id = None
                    self._attach(category)
                pending = []
        self._color_index = len(self._nodes) % len(PREDEFINED_COLORS)

    def _attach(self, category: Category) -> None:
        self._nodes[category.id] = category
        self._children.setdefault(category.parent_id, []).append(category.id)
        self._children.setdefault(category.id, [])

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.walk())

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._nodes

    # ── Queries ───────────────────────────────────────────────

    def get(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return self._nodes.get(category_id)

    def roots(self) -> list[Category]:
        return [self._nodes[i] for i in self._children[None]]

    def children_of(self, category_id: str | None) -> list[Category]:
        return [self._nodes[i] for i in self._children.get(category_id, [])]

    def parent_of(self, category_id: str) -> Category | None:
        node = self._nodes.get(category_id)
        return self.get(node.parent_id) if node else None

    def walk(self, parent_id: str | None = None) -> list[Category]:
        """All descendants of *parent_id* (every node for None), depth-first."""
        out: list[Category] = []
        for child_id in self._children.get(parent_id, []):
            out.append(self._nodes[child_id])
            out.extend(self.walk(child_id))
        return out

    def child_categories(self) -> list[Category]:
        """Every non-root category, depth-first in child order."""
        return [c for c in self.walk() if not c.is_root]

    def find_child_by_name(self, parent_id: str | None, name: str) -> Category | None:
        wanted = _key(name)
        for child in self.children_of(parent_id):
            if _key(child.name) == wanted:
                return child
        return None

    def find_by_name(self, name: str) -> Category | None:
        """First non-root category whose name matches case-insensitively."""
        wanted = _key(name)
        for category in self.child_categories():
            if _key(category.name) == wanted:
                return category
        return None

    def color_for(self, category_id: str | None) -> str | None:
        node = self.get(category_id)
        return node.color if node else None

    def next_color(self) -> str:
        color = PREDEFINED_COLORS[self._color_index]
        self._color_index = (self._color_index + 1) % len(PREDEFINED_COLORS)
        return color

    # ── Mutations ─────────────────────────────────────────────

    def add_category(self, name: str, parent_id: str | None = None, color: str | None = None) -> Category:
        """Add a category. Raises ValidationError on empty/duplicate names or unknown parents."""
        name = _clean_name(name)
        if parent_id is not None and parent_id not in self._nodes:
            raise ValidationError(f"Parent category not found: {parent_id}")
        if self.find_child_by_name(parent_id, name):
            raise ValidationError(f"Category already exists: {name}")
        category = Category(
            id=uuid.uuid4().hex,
            name=name,
            color=color or self.next_color(),
            parent_id=parent_id,
        )
        self._attach(category)
        return category

    def ensure_uncategorized_root(self) -> tuple[Category, bool]:
        """Return the "Uncategorized" root, creating it if needed."""
        existing = self.find_child_by_name(None, UNCATEGORIZED)
        if existing:
            return existing, False
        return self.add_category(UNCATEGORIZED), True

    def add_uncategorized_child(self, name: str, color: str | None = None) -> tuple[Category, list[Category]]:
        """Find or create *name* under the "Uncategorized" root.

        Returns the category and the list of nodes that were created.
        """
        name = _clean_name(name)
        root, root_created = self.ensure_uncategorized_root()
        created = [root] if root_created else []
        existing = self.find_child_by_name(root.id, name)
        if existing:
            return existing, created
        child = self.add_category(name, parent_id=root.id, color=color)
        created.append(child)
        return child, created

    def rename_category(self, category_id: str, new_name: str, color: str | None = None) -> Category | None:
        """Rename (and optionally recolor) a category. Unknown ids -> None."""
        node = self._nodes.get(category_id)
        if node is None:
            return None
        new_name = _clean_name(new_name)
        clash = self.find_child_by_name(node.parent_id, new_name)
        if clash and clash.id != node.id:
            raise ValidationError(f"Category already exists: {new_name}")
        node.name = new_name
        if color:
            node.color = color
        return node

    def delete_category(self, category_id: str) -> list[str]:
        """Remove a category and its subtree. Returns the removed ids."""
        node = self._nodes.get(category_id)
        if node is None:
            return []
        removed = [category_id] + [c.id for c in self.walk(category_id)]
        self._children[node.parent_id].remove(category_id)
        for removed_id in removed:
            self._nodes.pop(removed_id, None)
            self._children.pop(removed_id, None)
        return removed
