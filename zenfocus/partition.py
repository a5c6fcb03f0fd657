"""Ordered, densely indexed collection of task ids.

A task's order index is its position in the sequence, so after any mutation
the indices read in storage order are exactly ``0..n-1``. Out-of-range
indices are clamped and unknown ids are ignored: drag-and-drop and racing UI
events should always land somewhere sane instead of raising.
"""

from __future__ import annotations

from typing import Iterable, Iterator


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class OrderedPartitionSet:
    def __init__(self, name: str, task_ids: Iterable[str] = ()):
        self.name = name
        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        for task_id in task_ids:
            self.append(task_id)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._index

    def __repr__(self) -> str:
        return f"OrderedPartitionSet({self.name!r}, {self._ids!r})"

    # ── Queries ───────────────────────────────────────────────

    def ids(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def index_of(self, task_id: str) -> int | None:
        return self._index.get(task_id)

    def order_indices(self) -> list[int]:
        """Order index of every member, read in storage order."""
        return [self._index[task_id] for task_id in self._ids]

    def is_dense(self) -> bool:
        return self.order_indices() == list(range(len(self._ids)))

    # ── Mutations ─────────────────────────────────────────────

    def append(self, task_id: str) -> None:
        """Add at the end; an existing member moves to the end."""
        if task_id in self._index:
            self._ids.remove(task_id)
        self._ids.append(task_id)
        self._reindex()

    def insert(self, task_id: str, index: int) -> int:
        """Insert at *index* clamped to ``[0, len]``. Returns the index used."""
        if task_id in self._index:
            self._ids.remove(task_id)
        index = clamp(index, 0, len(self._ids))
        self._ids.insert(index, task_id)
        self._reindex()
        return index

    def remove(self, task_id: str) -> bool:
        """Remove if present. Returns whether anything changed."""
        if task_id not in self._index:
            return False
        self._ids.remove(task_id)
        self._reindex()
        return True

    def move(self, from_index: int, to_index: int) -> bool:
        """Pop the entry at *from_index* and re-insert it at *to_index*.

        Both indices are clamped to ``[0, len - 1]``. Returns whether the
        order changed.
        """
        if not self._ids:
            return False
        last = len(self._ids) - 1
        from_index = clamp(from_index, 0, last)
        to_index = clamp(to_index, 0, last)
        if from_index == to_index:
            return False
        self._ids.insert(to_index, self._ids.pop(from_index))
        self._reindex()
        return True

    def clear(self) -> None:
        self._ids.clear()
        self._reindex()

    def _reindex(self) -> None:
        self._index = {task_id: i for i, task_id in enumerate(self._ids)}
