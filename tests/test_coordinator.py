"""Tests for zenfocus/coordinator.py: Today/Someday partition management."""

from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import at, make_task
from zenfocus.config import LAST_DAILY_FOCUS_RESET_DATE, LAST_PLAN_DATE, MemoryConfigStore
from zenfocus.coordinator import DailyFocusCoordinator, open_coordinator
from zenfocus.errors import StoreError, ValidationError
from zenfocus.models import SOMEDAY, TODAY, FocusSnapshot, format_timestamp
from zenfocus.store import COMPLETED, SOMEDAY_OPEN, TODAY_OPEN, MemoryStore
from zenfocus.workspace import store_path


def saved_task(store: MemoryStore, task_id: str):
    return next(t for t in store.saved.tasks if t.id == task_id)


def build(tasks, config=None, **kwargs) -> DailyFocusCoordinator:
    return DailyFocusCoordinator(
        MemoryStore(tasks=tasks),
        config or MemoryConfigStore(),
        tz=kwargs.pop("tz", timezone.utc),
        clock=lambda: at(10),
        **kwargs,
    )


def assert_exclusive(c: DailyFocusCoordinator) -> None:
    for task in c.all_tasks():
        homes = (task.id in c.today) + (task.id in c.someday)
        assert homes == (0 if task.is_completed else 1), task.id
    assert c.today.is_dense()


# ── Loading ────────────────────────────────────────────────────


def test_load_builds_partitions(coordinator):
    snap = coordinator.snapshot()
    assert snap.today == ("A", "B")
    assert snap.someday == ("S1", "S2")


def test_load_renumbers_gapped_order():
    store = MemoryStore(tasks=[make_task("A", today=True, order=3), make_task("B", today=True, order=7)])
    c = DailyFocusCoordinator(store, MemoryConfigStore())
    assert c.snapshot().today == ("A", "B")
    assert saved_task(store, "A").daily_focus_order == 0
    assert saved_task(store, "B").daily_focus_order == 1


def test_load_without_gaps_does_not_save(coordinator, store):
    assert store.save_count == 0


# ── Adding to Today ────────────────────────────────────────────


def test_add_task_to_focus_at_index(coordinator, store):
    coordinator.add_task_to_focus("S1", 0)
    assert coordinator.snapshot().today == ("S1", "A", "B")
    assert coordinator.snapshot().someday == ("S2",)
    assert [saved_task(store, i).daily_focus_order for i in ("S1", "A", "B")] == [0, 1, 2]
    assert saved_task(store, "S1").in_daily_focus is True


def test_add_task_to_focus_appends_without_index(coordinator):
    coordinator.add_task_to_focus("S2")
    assert coordinator.snapshot().today == ("A", "B", "S2")


def test_add_to_empty_today_clamps_index():
    c = build([make_task("X")])
    c.add_task_to_focus("X", 5)
    assert c.snapshot().today == ("X",)
    assert c.task("X").daily_focus_order == 0


def test_add_unknown_task_is_noop(coordinator, store):
    before = coordinator.snapshot()
    coordinator.add_task_to_focus("nope", 0)
    assert coordinator.snapshot() == before
    assert store.save_count == 0


def test_add_task_already_in_today(coordinator, store):
    coordinator.add_task_to_focus("A")
    assert coordinator.snapshot().today == ("A", "B")
    assert store.save_count == 0

    coordinator.add_task_to_focus("B", 0)
    assert coordinator.snapshot().today == ("B", "A")


def test_add_completed_task_is_noop():
    c = build([make_task("done", completed_at=at(5))])
    c.add_task_to_focus("done", 0)
    assert c.snapshot().today == ()


# ── Removing & reordering ──────────────────────────────────────


def test_remove_task_from_focus(coordinator, store):
    coordinator.remove_task_from_focus("A")
    assert coordinator.snapshot().today == ("B",)
    assert coordinator.snapshot().someday == ("S1", "S2", "A")
    assert saved_task(store, "B").daily_focus_order == 0
    assert saved_task(store, "A").in_daily_focus is False


def test_remove_someday_task_is_noop(coordinator, store):
    coordinator.remove_task_from_focus("S1")
    assert coordinator.snapshot().someday == ("S1", "S2")
    assert store.save_count == 0


def test_reorder_today_to_front():
    c = build([make_task(i, today=True, order=n) for n, i in enumerate("ABC")])
    c.reorder_today(2, 0)
    assert c.snapshot().today == ("C", "A", "B")
    assert [c.task(i).daily_focus_order for i in ("C", "A", "B")] == [0, 1, 2]


def test_reorder_today_clamps(coordinator):
    coordinator.reorder_today(5, -1)
    assert coordinator.snapshot().today == ("B", "A")


def test_reorder_same_position_is_noop(coordinator, store):
    coordinator.reorder_today(1, 1)
    assert coordinator.snapshot().today == ("A", "B")
    assert store.save_count == 0


def test_partitions_stay_exclusive(coordinator):
    coordinator.add_task_to_focus("S1", 1)
    coordinator.remove_task_from_focus("A")
    coordinator.add_task_to_focus("A", 0)
    coordinator.complete_task("B")
    coordinator.reorder_today(0, 9)
    coordinator.toggle_task_completion("B")
    coordinator.add_task_to_focus("S2", -3)
    assert_exclusive(coordinator)


# ── Daily reset ────────────────────────────────────────────────


def test_reset_daily_focus(coordinator, config, store):
    coordinator.reset_daily_focus(at(10, 12))
    assert coordinator.snapshot().today == ()
    assert coordinator.snapshot().someday == ("S1", "S2", "A", "B")
    assert config.values[LAST_DAILY_FOCUS_RESET_DATE] == format_timestamp(at(10, 12))
    assert not any(t.in_daily_focus for t in store.saved.tasks)


def test_check_reset_first_run_only_records(coordinator, config):
    assert coordinator.check_and_reset_daily_focus() is False
    assert coordinator.snapshot().today == ("A", "B")
    assert config.values[LAST_DAILY_FOCUS_RESET_DATE] == format_timestamp(at(10))


def test_check_reset_same_day_is_noop(coordinator, config):
    config.set(LAST_DAILY_FOCUS_RESET_DATE, format_timestamp(at(10, 1)))
    assert coordinator.check_and_reset_daily_focus(at(10, 23)) is False
    assert coordinator.snapshot().today == ("A", "B")


def test_check_reset_new_day_resets_once(coordinator, config):
    config.set(LAST_DAILY_FOCUS_RESET_DATE, format_timestamp(at(9, 22)))
    assert coordinator.check_and_reset_daily_focus(at(10, 8)) is True
    assert coordinator.snapshot().today == ()

    coordinator.add_task_to_focus("S1")
    assert coordinator.check_and_reset_daily_focus(at(10, 8)) is False
    assert coordinator.check_and_reset_daily_focus(at(10, 20)) is False
    assert coordinator.snapshot().today == ("S1",)


def test_check_reset_uses_local_calendar_day():
    config = MemoryConfigStore({LAST_DAILY_FOCUS_RESET_DATE: format_timestamp(at(10, 3))})
    c = build([make_task("A", today=True)], config=config, tz=ZoneInfo("America/New_York"))
    # 03:00 and 04:00 UTC are both January 9th in New York.
    assert c.check_and_reset_daily_focus(at(10, 4)) is False
    assert c.check_and_reset_daily_focus(at(10, 6)) is True


def test_daily_plan_tracking(coordinator, config):
    assert coordinator.needs_daily_plan(at(10)) is True
    coordinator.record_daily_plan(at(10, 7))
    assert config.values[LAST_PLAN_DATE] == format_timestamp(at(10, 7))
    assert coordinator.needs_daily_plan(at(10, 20)) is False
    assert coordinator.needs_daily_plan(at(11, 7)) is True


# ── Completion ─────────────────────────────────────────────────


def test_complete_today_task(coordinator, store):
    coordinator.complete_task("A", at(10, 12))
    assert coordinator.snapshot().today == ("B",)
    assert saved_task(store, "B").daily_focus_order == 0
    task = coordinator.task("A")
    assert task.completed_at == at(10, 12)
    assert task.last_partition == TODAY
    assert [t.id for t in coordinator.completed_tasks()] == ["A"]


def test_toggle_restores_previous_partition(coordinator):
    coordinator.complete_task("A")
    coordinator.complete_task("S1")
    coordinator.toggle_task_completion("A")
    coordinator.toggle_task_completion("S1")
    assert coordinator.snapshot().today == ("B", "A")
    assert coordinator.snapshot().someday == ("S2", "S1")
    assert not coordinator.task("A").is_completed


def test_toggle_without_known_partition_goes_to_someday():
    c = build([make_task("old", completed_at=at(3))])
    c.toggle_task_completion("old")
    assert c.partition_of("old") == SOMEDAY
    assert c.task("old").completed_at is None


def test_toggle_open_task_completes_it(coordinator):
    coordinator.toggle_task_completion("S2")
    assert coordinator.task("S2").is_completed
    assert coordinator.partition_of("S2") is None


def test_completed_tasks_load_into_no_partition():
    store = MemoryStore(tasks=[make_task("done", today=True, completed_at=at(4))])
    c = DailyFocusCoordinator(store, MemoryConfigStore())
    assert c.snapshot().today == ()
    assert [t.id for t in store.fetch_tasks(COMPLETED)] == ["done"]


# ── Store failures ─────────────────────────────────────────────


def test_failed_save_keeps_memory_state(store):
    errors = []
    c = DailyFocusCoordinator(store, MemoryConfigStore(), on_store_error=errors.append)
    store.fail_saves = True
    c.add_task_to_focus("S1", 0)
    assert c.snapshot().today == ("S1", "A", "B")
    assert len(errors) == 1
    assert "Simulated save failure" in str(errors[0])
    assert saved_task(store, "S1").in_daily_focus is False


def test_recovers_after_failed_save(store):
    c = DailyFocusCoordinator(store, MemoryConfigStore(), on_store_error=lambda e: None)
    store.fail_saves = True
    c.add_task_to_focus("S1")
    store.fail_saves = False
    c.reorder_today(0, 2)
    assert [t.id for t in store.fetch_tasks(TODAY_OPEN)] == ["B", "S1", "A"]
    assert saved_task(store, "S1").in_daily_focus is True


# ── Listeners ──────────────────────────────────────────────────


def test_listeners_get_snapshots(coordinator):
    seen = []
    unsubscribe = coordinator.subscribe(seen.append)
    coordinator.add_task_to_focus("S1")
    assert seen[-1].today == ("A", "B", "S1")
    unsubscribe()
    coordinator.remove_task_from_focus("S1")
    assert len(seen) == 1


def test_failing_listener_does_not_block_others(coordinator):
    seen = []

    def broken(snapshot):
        raise RuntimeError("boom")

    coordinator.subscribe(broken)
    coordinator.subscribe(seen.append)
    coordinator.add_task_to_focus("S2")
    assert len(seen) == 1


# ── Task lifecycle ─────────────────────────────────────────────


def test_create_task_with_new_category(coordinator, store):
    task = coordinator.create_task("Write report @Work", to_daily_focus=True)
    assert task.title == "Write report"
    assert coordinator.snapshot().today == ("A", "B", task.id)
    category = coordinator.category_for(task)
    assert category.name == "Work"
    assert coordinator.categories.parent_of(category.id).name == "Uncategorized"
    assert {c.name for c in store.fetch_categories()} == {"Uncategorized", "Work"}


def test_create_task_reuses_category(coordinator):
    first = coordinator.create_task("One @Work")
    second = coordinator.create_task("Two @work")
    assert first.category_id == second.category_id
    assert len(coordinator.categories) == 2
    assert coordinator.snapshot().someday[-2:] == (first.id, second.id)


@pytest.mark.parametrize("text", ["", "   ", "@Work", "x" * 501])
def test_create_task_rejects_bad_titles(coordinator, store, text):
    before = coordinator.snapshot()
    with pytest.raises(ValidationError):
        coordinator.create_task(text)
    assert coordinator.snapshot() == before
    assert store.save_count == 0
    assert len(coordinator.categories) == 0


def test_add_new_task_twice_is_noop(coordinator):
    task = make_task("N")
    coordinator.add_new_task(task)
    coordinator.add_new_task(make_task("N"), to_daily_focus=True)
    assert coordinator.snapshot().someday == ("S1", "S2", "N")
    assert coordinator.snapshot().today == ("A", "B")


def test_delete_task(coordinator, store):
    coordinator.delete_task("A")
    assert coordinator.snapshot().today == ("B",)
    assert coordinator.task("A") is None
    assert "A" not in {t.id for t in store.saved.tasks}
    assert saved_task(store, "B").daily_focus_order == 0


def test_add_focused_time(coordinator, store):
    coordinator.add_focused_time("A", 90)
    coordinator.add_focused_time("A", -5)
    assert coordinator.task("A").focused_duration == 90
    assert saved_task(store, "A").focused_duration == 90


# ── Categories ─────────────────────────────────────────────────


def test_delete_category_unassigns_tasks(coordinator, store):
    task = coordinator.create_task("Gym @Health")
    root = coordinator.categories.parent_of(task.category_id)
    removed = coordinator.delete_category(root.id)
    assert set(removed) == {root.id, task.category_id}
    assert coordinator.task(task.id).category_id is None
    assert store.fetch_categories() == []


def test_rename_category(coordinator):
    category = coordinator.add_category("Work")
    renamed = coordinator.rename_category(category.id, "Deep Work", color="#000000")
    assert renamed.name == "Deep Work"
    assert renamed.color == "#000000"
    assert coordinator.rename_category("missing", "x") is None


# ── Workspace-backed coordinator ───────────────────────────────


def test_open_coordinator_persists(workspace):
    c = open_coordinator(workspace)
    task = c.create_task("Read paper @Research", to_daily_focus=True)
    c.check_and_reset_daily_focus()

    reopened = open_coordinator(workspace)
    assert reopened.snapshot().today == (task.id,)
    assert reopened.category_for(reopened.task(task.id)).name == "Research"
    assert reopened.config.get(LAST_DAILY_FOCUS_RESET_DATE) is not None
    assert [t.id for t in reopened.store.fetch_tasks(SOMEDAY_OPEN)] == []


def test_open_coordinator_tolerates_bad_record_values(workspace):
    store_path(workspace).write_text(
        "tasks:\n"
        "- id: t1\n"
        "  title: Bad numbers\n"
        "  focusedDuration: twenty\n"
        "  isInDailyFocus: true\n"
        "  dailyFocusOrder: first\n",
        encoding="utf-8",
    )
    errors = []
    c = open_coordinator(workspace, on_store_error=errors.append)
    assert errors == []
    assert c.snapshot().today == ("t1",)
    assert c.task("t1").focused_duration == 0.0


def test_open_coordinator_unreadable_store_is_reported(workspace):
    path = store_path(workspace)
    path.write_text("tasks: [unclosed", encoding="utf-8")
    errors = []
    c = open_coordinator(workspace, on_store_error=errors.append)
    assert len(errors) == 1
    assert isinstance(errors[0], StoreError)
    assert c.snapshot() == FocusSnapshot()

    c.create_task("Still works", to_daily_focus=True)
    assert len(c.snapshot().today) == 1
    assert path.read_text(encoding="utf-8") == "tasks: [unclosed"
