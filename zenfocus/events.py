"""In-process event notifications.

Fire-and-forget pub/sub: every subscriber of an event is called in
subscription order; one failing subscriber is logged and the rest still run.

Events:
- taskCompleted (no payload)
- taskPauseStateChanged (task_id, is_paused)
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

TASK_COMPLETED = "taskCompleted"
TASK_PAUSE_STATE_CHANGED = "taskPauseStateChanged"

VALID_EVENTS = {TASK_COMPLETED, TASK_PAUSE_STATE_CHANGED}

Callback = Callable[..., Any]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> Callable[[], None]:
        """Register *callback* for *event*. Returns an unsubscribe function."""
        if event not in VALID_EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: str, **payload: Any) -> int:
        """Deliver *event* to its subscribers. Returns how many succeeded."""
        if event not in VALID_EVENTS:
            return 0
        delivered = 0
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(**payload)
                delivered += 1
            except Exception:
                logger.exception("Subscriber for %s failed", event)
        return delivered
