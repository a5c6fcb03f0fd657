"""Typed dataclasses for the ZenFocus data model.

All persisted models use from_dict/to_dict for YAML/JSON serialization.
camelCase on disk is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


TODAY = "today"
SOMEDAY = "someday"
PARTITIONS = (TODAY, SOMEDAY)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp, passing datetimes through. Bad input -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def parse_number(value: Any, default: float = 0.0) -> float:
    """Coerce a stored number, falling back to *default* for junk or non-finite values."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="seconds")


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    created_at: datetime | None = None
    completed_at: datetime | None = None
    focused_duration: float = 0.0  # seconds
    category_id: str | None = None
    in_daily_focus: bool = False
    daily_focus_order: int = 0
    last_partition: str | None = None  # partition left on completion

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        last = d.get("lastPartition")
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            created_at=parse_timestamp(d.get("createdAt")),
            completed_at=parse_timestamp(d.get("completedAt")),
            focused_duration=max(parse_number(d.get("focusedDuration")), 0.0),
            category_id=d.get("categoryId") or None,
            in_daily_focus=bool(d.get("isInDailyFocus", False)),
            daily_focus_order=int(parse_number(d.get("dailyFocusOrder"))),
            last_partition=last if last in PARTITIONS else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "createdAt": format_timestamp(self.created_at),
            "completedAt": format_timestamp(self.completed_at),
            "focusedDuration": round(self.focused_duration, 3),
            "isInDailyFocus": self.in_daily_focus,
            "dailyFocusOrder": self.daily_focus_order,
        }
        if self.category_id:
            d["categoryId"] = self.category_id
        if self.last_partition:
            d["lastPartition"] = self.last_partition
        return d


# ── Categories ────────────────────────────────────────────────


@dataclass
class Category:
    id: str = ""
    name: str = ""
    color: str = ""  # opaque display value, e.g. "#A6F2BF"
    parent_id: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Category:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            color=str(d.get("color", "")),
            parent_id=d.get("parentId") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "name": self.name, "color": self.color}
        if self.parent_id:
            d["parentId"] = self.parent_id
        return d


# ── Focus state ───────────────────────────────────────────────


@dataclass(frozen=True)
class FocusSnapshot:
    """Read-only view of both partitions, in order."""

    today: tuple[str, ...] = ()
    someday: tuple[str, ...] = ()

    def partition_of(self, task_id: str) -> str | None:
        if task_id in self.today:
            return TODAY
        if task_id in self.someday:
            return SOMEDAY
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"today": list(self.today), "someday": list(self.someday)}


@dataclass
class FocusSession:
    task_id: str = ""
    started_at: datetime | None = None
    paused_at: datetime | None = None
    paused_seconds: float = 0.0
    pauses: int = 0

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def elapsed_seconds(self, now: datetime) -> float:
        """Focused seconds so far, excluding paused time."""
        if self.started_at is None:
            return 0.0
        end = self.paused_at or now
        return max(0.0, (end - self.started_at).total_seconds() - self.paused_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "startedAt": format_timestamp(self.started_at),
            "pausedAt": format_timestamp(self.paused_at),
            "pausedSeconds": round(self.paused_seconds, 1),
            "pauses": self.pauses,
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    row_height: float = 50.0
    log_level: str = "INFO"
    week_start: str = "mon"  # mon, tue, wed, ...

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            row_height=parse_number(d.get("row_height"), 50.0),
            log_level=str(d.get("log_level", "INFO")).upper(),
            week_start=str(d.get("week_start", "mon")).lower(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "row_height": self.row_height,
            "log_level": self.log_level,
            "week_start": self.week_start,
        }


@dataclass
class StoreFile:
    """On-disk layout of planner/store.yaml."""

    tasks: list[Task] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> StoreFile:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            tasks=[Task.from_dict(t) for t in (d.get("tasks") or []) if isinstance(t, dict)],
            categories=[
                Category.from_dict(c) for c in (d.get("categories") or []) if isinstance(c, dict)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "categories": [c.to_dict() for c in self.categories],
        }
