"""Workspace root, timezone and path helpers for ZenFocus."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from zenfocus.fileio import read_document
from zenfocus.models import Settings


def workspace_root() -> Path:
    """Get the workspace root directory (contains planner/ and logs/)."""
    return Path(
        os.environ.get("ZENFOCUS_ROOT", str(Path.home() / "zenfocus"))
    ).expanduser().resolve()


def _resolve(root: Path | None) -> Path:
    return workspace_root() if root is None else root


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    return _resolve(root) / "planner" / "settings.yaml"


def state_path(root: Path | None = None) -> Path:
    return _resolve(root) / "planner" / "state.json"


def store_path(root: Path | None = None) -> Path:
    return _resolve(root) / "planner" / "store.yaml"


def logs_dir(root: Path | None = None) -> Path:
    return _resolve(root) / "logs"


# ── Settings & time ───────────────────────────────────────────

def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, defaulting every missing field."""
    return Settings.from_dict(read_document(settings_path(root)))


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))
