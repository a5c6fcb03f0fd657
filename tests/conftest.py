"""Shared test fixtures for ZenFocus tests."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from zenfocus.config import MemoryConfigStore
from zenfocus.coordinator import DailyFocusCoordinator
from zenfocus.models import Task
from zenfocus.store import MemoryStore


def at(day: int, hour: int = 9, minute: int = 0) -> datetime:
    """A UTC timestamp in January 2026."""
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


def make_task(task_id: str, title: str | None = None, *, today: bool = False, order: int = 0, created_day: int = 1, **kwargs) -> Task:
    return Task(
        id=task_id,
        title=title or task_id,
        created_at=at(created_day),
        in_daily_focus=today,
        daily_focus_order=order,
        **kwargs,
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with standard structure."""
    root = tmp_path / "workspace"
    (root / "planner").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "row_height": 50,
        "log_level": "DEBUG",
        "week_start": "mon",
    }
    (root / "planner" / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    os.environ["ZENFOCUS_ROOT"] = str(root)
    yield root
    if "ZENFOCUS_ROOT" in os.environ:
        del os.environ["ZENFOCUS_ROOT"]


@pytest.fixture
def store() -> MemoryStore:
    """Store seeded with two Today tasks (A, B) and two Someday tasks (S1, S2)."""
    return MemoryStore(
        tasks=[
            make_task("A", today=True, order=0),
            make_task("B", today=True, order=1),
            make_task("S1", created_day=2),
            make_task("S2", created_day=3),
        ]
    )


@pytest.fixture
def config() -> MemoryConfigStore:
    return MemoryConfigStore()


@pytest.fixture
def coordinator(store: MemoryStore, config: MemoryConfigStore) -> DailyFocusCoordinator:
    return DailyFocusCoordinator(store, config, tz=timezone.utc, clock=lambda: at(10))
