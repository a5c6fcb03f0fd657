"""Daily focus coordinator: owns the Today and Someday partitions.

Every mutation goes through here. The coordinator updates the in-memory
partitions first (they are the source of truth for the session), stages the
changed records into the persistent store, hands ``store.save`` to the save
dispatcher without waiting, and then notifies change listeners with a fresh
:class:`FocusSnapshot`.

Operations are total: out-of-range indices are clamped and unknown task ids
are no-ops. Only input validation raises (``ValidationError``), and it does so
before touching any state. Store failures are logged and reported to
``on_store_error``; the in-memory change is kept.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Callable, Iterable

from zenfocus.categories import CategoryTree
from zenfocus.config import (
    LAST_DAILY_FOCUS_RESET_DATE,
    LAST_PLAN_DATE,
    ConfigStore,
    JsonConfigStore,
    get_datetime,
    set_datetime,
)
from zenfocus.dispatch import InlineDispatcher, SaveDispatcher
from zenfocus.errors import StoreError
from zenfocus.models import SOMEDAY, TODAY, Category, FocusSnapshot, Task
from zenfocus.partition import OrderedPartitionSet, clamp
from zenfocus.store import COMPLETED, SOMEDAY_OPEN, TODAY_OPEN, MemoryStore, PersistentStore, YamlStore
from zenfocus.suggestions import CategorySuggestionEngine, Suggestions
from zenfocus.tasks import build_task
from zenfocus.workspace import get_user_timezone, state_path, store_path

logger = logging.getLogger(__name__)

Listener = Callable[[FocusSnapshot], None]
ErrorHandler = Callable[[StoreError], None]
Clock = Callable[[], datetime]


class DailyFocusCoordinator:
    def __init__(
        self,
        store: PersistentStore,
        config: ConfigStore,
        *,
        dispatcher: SaveDispatcher | None = None,
        tz: tzinfo | None = None,
        clock: Clock | None = None,
        on_store_error: ErrorHandler | None = None,
    ):
        self.store = store
        self.config = config
        self.dispatcher = dispatcher or InlineDispatcher()
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._on_store_error = on_store_error
        self._listeners: list[Listener] = []

        self.today = OrderedPartitionSet(TODAY)
        self.someday = OrderedPartitionSet(SOMEDAY)
        self._tasks: dict[str, Task] = {}
        self.categories = CategoryTree()
        self.load()

    # ── Loading ───────────────────────────────────────────────

    def load(self) -> None:
        """(Re)build partitions and the category tree from the store."""
        try:
            today = self.store.fetch_tasks(TODAY_OPEN)
            someday = self.store.fetch_tasks(SOMEDAY_OPEN)
            completed = self.store.fetch_tasks(COMPLETED)
            categories = self.store.fetch_categories()
        except StoreError as e:
            logger.error("Error loading tasks: %s", e)
            self._report(e)
            return

        self._tasks = {t.id: t for t in [*today, *someday, *completed]}
        self.today = OrderedPartitionSet(TODAY, [t.id for t in today])
        self.someday = OrderedPartitionSet(SOMEDAY, [t.id for t in someday])
        self.categories = CategoryTree(categories)

        # Stored order values may have gaps; make them dense again.
        renumbered = self._renumber_today()
        if renumbered:
            self._commit(renumbered)
        logger.debug("Loaded %d today, %d someday, %d completed", len(today), len(someday), len(completed))

    # ── Observation ───────────────────────────────────────────

    def snapshot(self) -> FocusSnapshot:
        return FocusSnapshot(today=self.today.ids(), someday=self.someday.ids())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a snapshot after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def partition_of(self, task_id: str) -> str | None:
        if task_id in self.today:
            return TODAY
        if task_id in self.someday:
            return SOMEDAY
        return None

    def today_tasks(self) -> list[Task]:
        return [self._tasks[i] for i in self.today]

    def someday_tasks(self) -> list[Task]:
        return [self._tasks[i] for i in self.someday]

    def completed_tasks(self) -> list[Task]:
        done = [t for t in self._tasks.values() if t.is_completed]
        return sorted(done, key=lambda t: t.completed_at.timestamp() if t.completed_at else 0.0)

    def all_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def category_for(self, task: Task) -> Category | None:
        return self.categories.get(task.category_id)

    def suggest_categories(self, query: str) -> Suggestions:
        return CategorySuggestionEngine(self.categories).suggest(query)

    # ── Partition mutations ───────────────────────────────────

    def add_task_to_focus(self, task_id: str, index: int | None = None) -> None:
        """Move a Someday (or unpartitioned) task into Today at *index*."""
        task = self._tasks.get(task_id)
        if task is None or task.is_completed:
            logger.debug("add_task_to_focus ignored for %s", task_id)
            return

        current = self.today.index_of(task_id)
        if current is not None:
            if index is None:
                return
            target = clamp(index, 0, len(self.today) - 1)
            if target == current:
                return
            self.today.move(current, target)
            self._commit(self._renumber_today())
            return

        self.someday.remove(task_id)
        if index is None:
            self.today.append(task_id)
        else:
            self.today.insert(task_id, index)
        task.in_daily_focus = True
        changed = self._renumber_today()
        changed.append(task)
        self._commit(changed)

    def remove_task_from_focus(self, task_id: str) -> None:
        """Move a Today task to the end of Someday."""
        if not self.today.remove(task_id):
            return
        task = self._tasks[task_id]
        task.in_daily_focus = False
        task.daily_focus_order = 0
        self.someday.append(task_id)
        changed = self._renumber_today()
        changed.append(task)
        self._commit(changed)

    def reorder_today(self, from_index: int, to_index: int) -> None:
        if not self.today.move(from_index, to_index):
            return
        self._commit(self._renumber_today())

    def reset_daily_focus(self, now: datetime | None = None) -> None:
        """Send every Today task back to Someday, in Today order."""
        now = now or self._clock()
        changed = []
        for task_id in self.today:
            task = self._tasks[task_id]
            task.in_daily_focus = False
            task.daily_focus_order = 0
            self.someday.append(task_id)
            changed.append(task)
        self.today.clear()
        self._set_config_datetime(LAST_DAILY_FOCUS_RESET_DATE, now)
        logger.info("Daily focus reset: %d tasks returned to someday", len(changed))
        self._commit(changed)

    def check_and_reset_daily_focus(self, now: datetime | None = None) -> bool:
        """Reset Today once per calendar day. Returns whether a reset happened."""
        now = now or self._clock()
        last = get_datetime(self.config, LAST_DAILY_FOCUS_RESET_DATE)
        if last is None:
            self._set_config_datetime(LAST_DAILY_FOCUS_RESET_DATE, now)
            return False
        if self._local_day(last) == self._local_day(now):
            return False
        self.reset_daily_focus(now)
        return True

    def needs_daily_plan(self, now: datetime | None = None) -> bool:
        """True until the day has been planned via :meth:`record_daily_plan`."""
        now = now or self._clock()
        last = get_datetime(self.config, LAST_PLAN_DATE)
        return last is None or self._local_day(last) != self._local_day(now)

    def record_daily_plan(self, now: datetime | None = None) -> None:
        self._set_config_datetime(LAST_PLAN_DATE, now or self._clock())

    # ── Task lifecycle ────────────────────────────────────────

    def complete_task(self, task_id: str, now: datetime | None = None) -> None:
        task = self._tasks.get(task_id)
        if task is None or task.is_completed:
            return
        task.completed_at = now or self._clock()
        task.last_partition = self.partition_of(task_id)
        task.in_daily_focus = False
        task.daily_focus_order = 0
        changed = [task]
        if self.today.remove(task_id):
            changed.extend(self._renumber_today())
        self.someday.remove(task_id)
        self._commit(changed)

    def toggle_task_completion(self, task_id: str, now: datetime | None = None) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            return
        if not task.is_completed:
            self.complete_task(task_id, now)
            return

        task.completed_at = None
        target = task.last_partition or SOMEDAY
        task.last_partition = None
        if target == TODAY:
            self.today.append(task_id)
            task.in_daily_focus = True
            changed = self._renumber_today()
            changed.append(task)
        else:
            self.someday.append(task_id)
            changed = [task]
        self._commit(changed)

    def add_new_task(self, task: Task, to_daily_focus: bool = False) -> None:
        """Track a freshly created task in exactly one partition."""
        if task.id in self._tasks:
            logger.debug("add_new_task ignored, %s already tracked", task.id)
            return
        task.completed_at = None
        task.in_daily_focus = False
        task.daily_focus_order = 0
        self._tasks[task.id] = task
        if to_daily_focus:
            self.add_task_to_focus(task.id)
            return
        self.someday.append(task.id)
        self._commit([task])

    def create_task(self, text: str, to_daily_focus: bool = False, now: datetime | None = None) -> Task:
        """Parse ``"title @category"`` input and add the task.

        Raises ValidationError for an empty or over-long title.
        """
        task, created = build_task(text, self.categories, now or self._clock())
        for category in created:
            self.store.upsert_category(category)
        self.add_new_task(task, to_daily_focus)
        return task

    def delete_task(self, task_id: str) -> None:
        task = self._tasks.pop(task_id, None)
        if task is None:
            return
        changed = self._renumber_today() if self.today.remove(task_id) else []
        self.someday.remove(task_id)
        try:
            self.store.delete(task_id)
        except StoreError as e:
            logger.error("Error deleting task %s: %s", task_id, e)
            self._report(e)
        self._commit(changed)

    def add_focused_time(self, task_id: str, seconds: float) -> None:
        task = self._tasks.get(task_id)
        if task is None or task.is_completed or seconds <= 0:
            return
        task.focused_duration += seconds
        self._commit([task])

    # ── Categories ────────────────────────────────────────────

    def add_category(self, name: str, parent_id: str | None = None, color: str | None = None) -> Category:
        category = self.categories.add_category(name, parent_id=parent_id, color=color)
        self.store.upsert_category(category)
        self._commit([])
        return category

    def rename_category(self, category_id: str, new_name: str, color: str | None = None) -> Category | None:
        category = self.categories.rename_category(category_id, new_name, color)
        if category is None:
            return None
        self.store.upsert_category(category)
        self._commit([])
        return category

    def delete_category(self, category_id: str) -> list[str]:
        removed = self.categories.delete_category(category_id)
        if not removed:
            return []
        changed = []
        for task in self._tasks.values():
            if task.category_id in removed:
                task.category_id = None
                changed.append(task)
        try:
            for removed_id in removed:
                self.store.delete(removed_id)
        except StoreError as e:
            logger.error("Error deleting category %s: %s", category_id, e)
            self._report(e)
        self._commit(changed)
        return removed

    # ── Internals ─────────────────────────────────────────────

    def _local_day(self, value: datetime):
        if value.tzinfo is not None and self.tz is not None:
            value = value.astimezone(self.tz)
        return value.date()

    def _renumber_today(self) -> list[Task]:
        """Copy Today positions onto the tasks. Returns the tasks that changed."""
        changed = []
        for index, task_id in enumerate(self.today):
            task = self._tasks[task_id]
            if task.daily_focus_order != index or not task.in_daily_focus:
                task.daily_focus_order = index
                task.in_daily_focus = True
                changed.append(task)
        return changed

    def _set_config_datetime(self, key: str, value: datetime) -> None:
        try:
            set_datetime(self.config, key, value)
        except StoreError as e:
            logger.error("Error recording %s: %s", key, e)
            self._report(e)

    def _report(self, error: StoreError) -> None:
        if self._on_store_error is not None:
            self._on_store_error(error)

    def _commit(self, changed: Iterable[Task]) -> None:
        for task in changed:
            self.store.upsert_task(task)
        self.dispatcher.submit(self.store.save, self._report)
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Focus listener failed")


def open_coordinator(
    root: Path | None = None,
    *,
    dispatcher: SaveDispatcher | None = None,
    on_store_error: ErrorHandler | None = None,
) -> DailyFocusCoordinator:
    """Build a coordinator over the workspace's store.yaml and state.json.

    An unreadable store.yaml is reported and left on disk untouched; the
    session then runs on an in-memory store that is never written back.
    """
    store: PersistentStore
    try:
        store = YamlStore(store_path(root))
    except StoreError as e:
        logger.error("Error opening store, changes will not be saved: %s", e)
        if on_store_error is not None:
            on_store_error(e)
        store = MemoryStore()
    return DailyFocusCoordinator(
        store,
        JsonConfigStore(state_path(root)),
        dispatcher=dispatcher,
        tz=get_user_timezone(root),
        on_store_error=on_store_error,
    )
