"""Key-value config store for scalars that outlive a session.

Documented keys:

- ``lastDailyFocusResetDate``: ISO timestamp of the last Today reset.
- ``lastPlanDate``: ISO timestamp of the last time the day was planned.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from zenfocus.errors import StoreError
from zenfocus.fileio import read_document, write_document_atomic
from zenfocus.models import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

LAST_DAILY_FOCUS_RESET_DATE = "lastDailyFocusResetDate"
LAST_PLAN_DATE = "lastPlanDate"


class ConfigStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryConfigStore:
    def __init__(self, values: dict[str, Any] | None = None):
        self.values: dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonConfigStore:
    """ConfigStore backed by planner/state.json; every write is flushed."""

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        try:
            self._values = read_document(path)
        except (OSError, ValueError) as e:
            logger.error("Unreadable config %s, starting empty: %s", path, e)
            self._values = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._values.pop(key, None) is not None:
                self._flush()

    def _flush(self) -> None:
        try:
            write_document_atomic(self.path, self._values)
        except OSError as e:
            raise StoreError(f"Could not write {self.path}: {e}") from e


def get_datetime(config: ConfigStore, key: str) -> datetime | None:
    return parse_timestamp(config.get(key))


def set_datetime(config: ConfigStore, key: str, value: datetime) -> None:
    config.set(key, format_timestamp(value))
