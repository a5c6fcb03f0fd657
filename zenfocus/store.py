"""Persistent store contract and the two stores ZenFocus ships.

The coordinator only ever asks for three task shapes (see the predicate
constants) plus the full category list. ``upsert_*`` and ``delete`` stage
changes in memory; ``save`` makes them durable and is the only call that
touches disk.
"""

from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path
from typing import Protocol

import yaml

from zenfocus.errors import StoreError
from zenfocus.fileio import read_document, write_document_atomic
from zenfocus.models import Category, StoreFile, Task

logger = logging.getLogger(__name__)

# Predicates
TODAY_OPEN = "today_open"  # isInDailyFocus == YES AND completed == NO, by order index
SOMEDAY_OPEN = "someday_open"  # isInDailyFocus == NO AND completed == NO, by createdAt
COMPLETED = "completed"  # completed == YES, by completedAt

PREDICATES = {TODAY_OPEN, SOMEDAY_OPEN, COMPLETED}
KINDS = {"task", "category"}


def _sort_key_created(task: Task) -> tuple:
    ts = task.created_at
    return (ts.timestamp() if ts else float("-inf"), task.id)


def _sort_key_completed(task: Task) -> tuple:
    ts = task.completed_at
    return (ts.timestamp() if ts else float("-inf"), task.id)


def select_tasks(tasks: list[Task], predicate: str) -> list[Task]:
    """Filter and sort *tasks* for one of the three predicates."""
    if predicate not in PREDICATES:
        raise ValueError(f"Unknown predicate: {predicate}")
    if predicate == TODAY_OPEN:
        rows = [t for t in tasks if t.in_daily_focus and not t.is_completed]
        return sorted(rows, key=lambda t: (t.daily_focus_order, t.id))
    if predicate == SOMEDAY_OPEN:
        rows = [t for t in tasks if not t.in_daily_focus and not t.is_completed]
        return sorted(rows, key=_sort_key_created)
    return sorted((t for t in tasks if t.is_completed), key=_sort_key_completed)


class PersistentStore(Protocol):
    def fetch_tasks(self, predicate: str) -> list[Task]: ...

    def fetch_categories(self) -> list[Category]: ...

    def upsert_task(self, task: Task) -> None: ...

    def upsert_category(self, category: Category) -> None: ...

    def delete(self, record_id: str) -> None: ...

    def batch_delete(self, kind: str) -> None: ...

    def save(self) -> None: ...


class MemoryStore:
    """In-process store. ``fail_saves`` makes every save raise StoreError."""

    def __init__(self, tasks: list[Task] | None = None, categories: list[Category] | None = None):
        self._lock = threading.Lock()
        self._tasks: dict[str, Task] = {t.id: copy.deepcopy(t) for t in tasks or []}
        self._categories: dict[str, Category] = {c.id: copy.deepcopy(c) for c in categories or []}
        self.saved: StoreFile = self._snapshot()
        self.save_count = 0
        self.fail_saves = False

    def _snapshot(self) -> StoreFile:
        return StoreFile(
            tasks=[copy.deepcopy(t) for t in self._tasks.values()],
            categories=[copy.deepcopy(c) for c in self._categories.values()],
        )

    def fetch_tasks(self, predicate: str) -> list[Task]:
        with self._lock:
            rows = [copy.deepcopy(t) for t in self._tasks.values()]
        return select_tasks(rows, predicate)

    def fetch_categories(self) -> list[Category]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._categories.values()]

    def upsert_task(self, task: Task) -> None:
        with self._lock:
            self._tasks[task.id] = copy.deepcopy(task)

    def upsert_category(self, category: Category) -> None:
        with self._lock:
            self._categories[category.id] = copy.deepcopy(category)

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._tasks.pop(record_id, None)
            self._categories.pop(record_id, None)

    def batch_delete(self, kind: str) -> None:
        if kind not in KINDS:
            raise ValueError(f"Unknown record kind: {kind}")
        with self._lock:
            if kind == "task":
                self._tasks.clear()
            else:
                self._categories.clear()

    def save(self) -> None:
        if self.fail_saves:
            raise StoreError("Simulated save failure")
        with self._lock:
            self.saved = self._snapshot()
            self.save_count += 1


class YamlStore(MemoryStore):
    """Store persisted to planner/store.yaml with atomic replace on save."""

    def __init__(self, path: Path):
        self.path = path
        try:
            data = StoreFile.from_dict(read_document(path))
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e
        super().__init__(data.tasks, data.categories)

    def save(self) -> None:
        with self._lock:
            snapshot = self._snapshot()
        try:
            write_document_atomic(self.path, snapshot.to_dict())
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Could not write {self.path}: {e}") from e
        self.saved = snapshot
        self.save_count += 1
        logger.debug(
            "Saved %d tasks, %d categories to %s",
            len(snapshot.tasks),
            len(snapshot.categories),
            self.path,
        )
