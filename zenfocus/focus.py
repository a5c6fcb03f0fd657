"""Focus session tracking for ZenFocus.

One session at a time. Paused time does not count; when a session stops the
focused seconds are added to the task's ``focused_duration``. Pause changes
and completions are published on the event bus for UI refresh.
"""

from __future__ import annotations

import logging
from datetime import datetime

from zenfocus.coordinator import DailyFocusCoordinator
from zenfocus.events import TASK_COMPLETED, TASK_PAUSE_STATE_CHANGED, EventBus
from zenfocus.models import FocusSession

logger = logging.getLogger(__name__)


class FocusTracker:
    def __init__(self, coordinator: DailyFocusCoordinator, bus: EventBus | None = None):
        self.coordinator = coordinator
        self.bus = bus or EventBus()
        self.active: FocusSession | None = None

    def _now(self, now: datetime | None) -> datetime:
        return now or datetime.now(self.coordinator.tz)

    def start(self, task_id: str, now: datetime | None = None) -> FocusSession:
        """Start a new focus session. Raises if a session is already active."""
        if self.active is not None:
            raise ValueError("A focus session is already active. Stop it first.")
        task = self.coordinator.task(task_id)
        if task is None or task.is_completed:
            raise ValueError(f"No open task to focus on: {task_id}")
        self.active = FocusSession(task_id=task_id, started_at=self._now(now))
        logger.debug("Focus started on %s", task_id)
        return self.active

    def pause(self, now: datetime | None = None) -> FocusSession | None:
        session = self.active
        if session is None or session.is_paused:
            return session
        session.paused_at = self._now(now)
        session.pauses += 1
        self.bus.publish(TASK_PAUSE_STATE_CHANGED, task_id=session.task_id, is_paused=True)
        return session

    def resume(self, now: datetime | None = None) -> FocusSession | None:
        session = self.active
        if session is None or not session.is_paused:
            return session
        session.paused_seconds += max(0.0, (self._now(now) - session.paused_at).total_seconds())
        session.paused_at = None
        self.bus.publish(TASK_PAUSE_STATE_CHANGED, task_id=session.task_id, is_paused=False)
        return session

    def elapsed(self, now: datetime | None = None) -> float:
        if self.active is None:
            return 0.0
        return self.active.elapsed_seconds(self._now(now))

    def stop(self, now: datetime | None = None) -> FocusSession:
        """Stop the active session and log its focused time on the task."""
        session = self.active
        if session is None:
            raise ValueError("No active focus session to stop.")
        seconds = session.elapsed_seconds(self._now(now))
        self.active = None
        self.coordinator.add_focused_time(session.task_id, seconds)
        logger.debug("Focus stopped on %s after %.0fs", session.task_id, seconds)
        return session

    def complete(self, now: datetime | None = None) -> FocusSession:
        """Stop the session and mark its task completed."""
        now = self._now(now)
        session = self.stop(now)
        task = self.coordinator.task(session.task_id)
        if task is None or task.is_completed:
            logger.debug("Focus complete on %s left the task unchanged", session.task_id)
            return session
        self.coordinator.complete_task(session.task_id, now)
        self.bus.publish(TASK_COMPLETED)
        return session
