"""Completed-task history and focus-time breakdowns.

Groups completed tasks by day and month, and sums focused time per
category over a time period (today, yesterday, week, month, year, all time).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable

from zenfocus.categories import UNCATEGORIZED, CategoryTree
from zenfocus.coordinator import DailyFocusCoordinator
from zenfocus.models import Task


TIME_PERIODS = ("today", "yesterday", "week", "month", "year", "all_time")
DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def period_range(period: str, now: datetime, week_start: str = "mon") -> tuple[datetime | None, datetime | None]:
    """Half-open ``[start, end)`` range for *period*; None bounds mean unbounded."""
    if period not in TIME_PERIODS:
        raise ValueError(f"Unknown time period: {period}")
    today = _start_of_day(now)
    if period == "today":
        return today, today + timedelta(days=1)
    if period == "yesterday":
        return today - timedelta(days=1), today
    if period == "week":
        first = DAY_NAMES.index(week_start) if week_start in DAY_NAMES else 0
        start = today - timedelta(days=(today.weekday() - first) % 7)
        return start, start + timedelta(days=7)
    if period == "month":
        start = today.replace(day=1)
        if start.month == 12:
            return start, start.replace(year=start.year + 1, month=1)
        return start, start.replace(month=start.month + 1)
    if period == "year":
        start = today.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1)
    return None, None


def _in_range(value: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    if value is None:
        return False
    bound = start or end
    if bound is not None and (bound.tzinfo is None) != (value.tzinfo is None):
        # Mixed naive/aware: compare wall-clock times.
        value = value.replace(tzinfo=bound.tzinfo)
    if start is not None and value < start:
        return False
    if end is not None and value >= end:
        return False
    return True


def category_time_breakdown(
    tasks: Iterable[Task],
    tree: CategoryTree,
    period: str,
    now: datetime,
    week_start: str = "mon",
) -> list[tuple[str, float]]:
    """Focused seconds per category name for tasks completed in *period*.

    Sorted by time descending, then name. Tasks without a (known) category
    count as "Uncategorized".
    """
    start, end = period_range(period, now, week_start)
    totals: dict[str, float] = defaultdict(float)
    for task in tasks:
        if not _in_range(task.completed_at, start, end):
            continue
        category = tree.get(task.category_id)
        totals[category.name if category else UNCATEGORIZED] += task.focused_duration
    return sorted(totals.items(), key=lambda item: (-item[1], item[0].lower()))


def _local_date(value: datetime, tz: tzinfo | None) -> date:
    if tz is not None and value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.date()


def group_completed_by_day(tasks: Iterable[Task], tz: tzinfo | None = None) -> dict[date, list[Task]]:
    """Completed tasks keyed by completion day, newest day first."""
    groups: dict[date, list[Task]] = defaultdict(list)
    for task in tasks:
        if task.completed_at is not None:
            groups[_local_date(task.completed_at, tz)].append(task)
    return {
        day: sorted(groups[day], key=lambda t: t.completed_at.timestamp(), reverse=True)
        for day in sorted(groups, reverse=True)
    }


def group_completed_by_month(tasks: Iterable[Task], tz: tzinfo | None = None) -> dict[date, dict[date, list[Task]]]:
    """Completed tasks keyed by first-of-month, then by day, newest first."""
    months: dict[date, dict[date, list[Task]]] = {}
    for day, day_tasks in group_completed_by_day(tasks, tz).items():
        months.setdefault(day.replace(day=1), {})[day] = day_tasks
    return months


def today_metrics(coordinator: DailyFocusCoordinator, now: datetime | None = None) -> dict[str, Any]:
    """Focus time, completions and remaining count for today's dashboard."""
    now = now or datetime.now(coordinator.tz)
    start, end = period_range("today", now)
    done_today = [t for t in coordinator.completed_tasks() if _in_range(t.completed_at, start, end)]
    focus_seconds = sum(t.focused_duration for t in coordinator.today_tasks())
    focus_seconds += sum(t.focused_duration for t in done_today)
    return {
        "focus_seconds": round(focus_seconds, 1),
        "completed_today": len(done_today),
        "remaining": len(coordinator.today),
    }
