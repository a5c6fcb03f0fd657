"""Category suggestions for the task input field.

Ranking tiers, each sorted case-insensitively by name:

1. exact (case-insensitive) name match
2. name starts with the query
3. name contains the query anywhere

An empty query lists every category alphabetically. Results are capped at
``MAX_SUGGESTIONS``. When nothing matches the query exactly, the caller gets a
separate ``create_new`` value to offer "Add: <query>".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from zenfocus.categories import CategoryTree
from zenfocus.models import Category


MAX_SUGGESTIONS = 10


@dataclass(frozen=True)
class Suggestions:
    query: str = ""
    categories: list[Category] = field(default_factory=list)
    create_new: str | None = None

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]


def _sort_key(category: Category) -> tuple[str, str, str]:
    return (category.name.lower(), category.name, category.id)


def extract_category_query(text: str) -> str | None:
    """Text typed after the last '@', or None when there is no '@'."""
    if "@" not in text:
        return None
    return text.rsplit("@", 1)[1]


def rank_categories(categories: list[Category], query: str, limit: int = MAX_SUGGESTIONS) -> list[Category]:
    term = query.strip().lower()
    if not term:
        return sorted(categories, key=_sort_key)[:limit]

    exact: list[Category] = []
    prefix: list[Category] = []
    contains: list[Category] = []
    for category in categories:
        name = category.name.lower()
        if name == term:
            exact.append(category)
        elif name.startswith(term):
            prefix.append(category)
        elif term in name:
            contains.append(category)

    ranked = sorted(exact, key=_sort_key) + sorted(prefix, key=_sort_key) + sorted(contains, key=_sort_key)
    return ranked[:limit]


class CategorySuggestionEngine:
    def __init__(self, tree: CategoryTree, limit: int = MAX_SUGGESTIONS):
        self.tree = tree
        self.limit = limit

    def suggest(self, query: str) -> Suggestions:
        query = (query or "").strip()
        candidates = self.tree.child_categories()
        ranked = rank_categories(candidates, query, self.limit)
        create_new = None
        if query and not any(c.name.lower() == query.lower() for c in candidates):
            create_new = query
        return Suggestions(query=query, categories=ranked, create_new=create_new)
