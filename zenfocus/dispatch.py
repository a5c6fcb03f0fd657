"""Save dispatchers: how a coordinator hands ``store.save`` off after a mutation.

Callers never wait on a save. Failures are logged and reported to the
error callback; nothing is retried or rolled back.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Protocol

from zenfocus.errors import StoreError

logger = logging.getLogger(__name__)

SaveFn = Callable[[], None]
ErrorFn = Callable[[StoreError], None]


def _run_save(save: SaveFn, on_error: ErrorFn) -> None:
    try:
        save()
    except StoreError as e:
        logger.error("Save failed: %s", e)
        on_error(e)


class SaveDispatcher(Protocol):
    def submit(self, save: SaveFn, on_error: ErrorFn) -> None: ...


class InlineDispatcher:
    """Runs the save on the calling thread before returning."""

    def submit(self, save: SaveFn, on_error: ErrorFn) -> None:
        _run_save(save, on_error)


class BackgroundDispatcher:
    """Runs saves on one worker thread, in submission order."""

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="zenfocus-save")
        self._pending: list[Future] = []

    def submit(self, save: SaveFn, on_error: ErrorFn) -> None:
        future = self._executor.submit(_run_save, save, on_error)
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(future)

    def flush(self) -> None:
        """Block until every save submitted so far has finished."""
        for future in list(self._pending):
            future.result()
        self._pending.clear()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
