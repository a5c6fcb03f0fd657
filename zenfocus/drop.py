"""Drag-and-drop target resolution.

The pointer's vertical offset inside a list is turned into an insertion index
(row estimate from a fixed row height, clamped to ``[0, len]``). On drop, what
happens depends only on where the dragged task lives *at drop time*, never on
which list started the gesture: the partitions may have changed mid-drag.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from zenfocus.coordinator import DailyFocusCoordinator
from zenfocus.models import SOMEDAY, TODAY, FocusSnapshot


DEFAULT_ROW_HEIGHT = 50.0

# Drop actions
REORDER = "reorder"
INSERT = "insert"
REMOVE = "remove"
NONE = "none"


def resolve_drop_index(pointer_y: float, row_height: float, list_length: int) -> int:
    """Insertion index for a pointer at *pointer_y*, always in ``[0, list_length]``."""
    list_length = max(0, int(list_length))
    if not row_height > 0 or math.isnan(pointer_y):
        return 0
    estimated = pointer_y / row_height
    if math.isnan(estimated) or estimated <= 0:
        return 0
    if estimated >= list_length:
        return list_length
    return math.floor(estimated)


@dataclass(frozen=True)
class DropPlan:
    action: str
    task_id: str
    index: int | None = None  # insertion line shown while dragging
    from_index: int | None = None
    to_index: int | None = None


def plan_drop(
    snapshot: FocusSnapshot,
    task_id: str,
    target: str,
    pointer_y: float,
    row_height: float = DEFAULT_ROW_HEIGHT,
) -> DropPlan:
    """Decide what dropping *task_id* onto the *target* list should do."""
    target_ids = snapshot.today if target == TODAY else snapshot.someday
    index = resolve_drop_index(pointer_y, row_height, len(target_ids))
    source = snapshot.partition_of(task_id)

    if target == TODAY:
        if source == TODAY:
            from_index = snapshot.today.index(task_id)
            # The line sits between rows of the list that still holds the
            # dragged row; past the source it lands one slot earlier.
            to_index = index - 1 if index > from_index else index
            if to_index == from_index:
                return DropPlan(NONE, task_id, index=index)
            return DropPlan(REORDER, task_id, index=index, from_index=from_index, to_index=to_index)
        return DropPlan(INSERT, task_id, index=index, to_index=index)

    if target == SOMEDAY and source == TODAY:
        return DropPlan(REMOVE, task_id, index=index)
    return DropPlan(NONE, task_id, index=index)


def perform_drop(
    coordinator: DailyFocusCoordinator,
    task_id: str,
    target: str,
    pointer_y: float,
    row_height: float = DEFAULT_ROW_HEIGHT,
) -> DropPlan:
    plan = plan_drop(coordinator.snapshot(), task_id, target, pointer_y, row_height)
    if plan.action == REORDER:
        coordinator.reorder_today(plan.from_index, plan.to_index)
    elif plan.action == INSERT:
        coordinator.add_task_to_focus(task_id, plan.to_index)
    elif plan.action == REMOVE:
        coordinator.remove_task_from_focus(task_id)
    return plan
