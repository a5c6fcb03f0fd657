"""Task input parsing and validation for ZenFocus.

Typed input looks like ``"Write report @Work"``: everything before the first
'@' is the title, everything after it names a category.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from zenfocus.categories import CategoryTree
from zenfocus.errors import ValidationError
from zenfocus.models import Category, Task


MAX_TITLE_LENGTH = 500


def validate_title(title: str) -> list[str]:
    """Validate a task title and return list of errors (empty if valid)."""
    errors = []
    trimmed = (title or "").strip()
    if not trimmed:
        errors.append("Task title cannot be empty")
    elif len(trimmed) > MAX_TITLE_LENGTH:
        errors.append(f"Task title cannot exceed {MAX_TITLE_LENGTH} characters")
    return errors


def parse_task_input(text: str) -> tuple[str, str | None]:
    """Split raw input into (title, category name or None)."""
    title, sep, category = (text or "").partition("@")
    category = category.strip()
    return title.strip(), (category if sep and category else None)


def build_task(text: str, tree: CategoryTree, now: datetime) -> tuple[Task, list[Category]]:
    """Create an uncompleted task from raw input.

    The category is looked up by name; a missing one is created under the
    "Uncategorized" root. Returns the task and any categories created.
    Raises ValidationError before anything is created.
    """
    title, category_name = parse_task_input(text)
    errors = validate_title(title)
    if errors:
        raise ValidationError(errors)

    created: list[Category] = []
    category_id = None
    if category_name:
        category = tree.find_by_name(category_name)
        if category is None:
            category, created = tree.add_uncategorized_child(category_name)
        category_id = category.id

    task = Task(
        id=uuid.uuid4().hex,
        title=title,
        created_at=now,
        category_id=category_id,
    )
    return task, created
