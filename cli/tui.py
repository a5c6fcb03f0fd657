#!/usr/bin/env python3
"""ZenFocus TUI: Today / Someday planner in the terminal, powered by Textual."""

from __future__ import annotations

import sys
import threading

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, Label, Static

from zenfocus import (
    SOMEDAY,
    TODAY,
    BackgroundDispatcher,
    DailyFocusCoordinator,
    FocusSnapshot,
    StoreError,
    Task,
    ValidationError,
    extract_category_query,
    load_settings,
    logs_dir,
    open_coordinator,
    setup_logging,
    today_metrics,
    workspace_root,
)


ROLLOVER_CHECK_SECONDS = 60


CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
}

.pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

#today-pane {
    border-right: tall $primary-background-darken-2;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#today-table, #someday-table {
    height: 1fr;
}

#new-task {
    height: 3;
    display: none;
}

#suggestions {
    height: auto;
    max-height: 3;
    padding: 0 1;
    color: $text-muted;
}

#status-bar {
    height: 1;
    background: $primary-background;
    color: $text-muted;
    padding: 0 2;
}
"""


def _duration(seconds: float) -> str:
    minutes = int(seconds // 60)
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60:02d}m"
    return f"{minutes}m"


# ── Main app ───────────────────────────────────────────────────


class ZenFocusApp(App):
    """ZenFocus daily focus planner."""

    TITLE = "ZenFocus"
    CSS = CSS

    BINDINGS = [
        Binding("n", "new_task", "New"),
        Binding("space", "toggle_focus", "Today/Someday"),
        Binding("shift+up,K", "move_up", "Move Up"),
        Binding("shift+down,J", "move_down", "Move Down"),
        Binding("x", "toggle_complete", "Done"),
        Binding("delete,D", "delete_task", "Delete"),
        Binding("R", "reset_focus", "Reset Today"),
        Binding("escape", "cancel_input", "Back"),
        Binding("q", "quit_app", "Quit"),
    ]

    entering_task: reactive[bool] = reactive(False)

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Hide list bindings while the new-task input is open."""
        if action == "cancel_input":
            return True if self.entering_task else None
        if self.entering_task and action != "quit_app":
            return None
        return True

    def __init__(self, coordinator: DailyFocusCoordinator | None = None) -> None:
        super().__init__()
        self._startup_errors: list[str] = []
        self._dispatcher = BackgroundDispatcher()
        self.coordinator = coordinator or open_coordinator(
            dispatcher=self._dispatcher, on_store_error=self._on_store_error
        )
        self._unsubscribe = self.coordinator.subscribe(self._on_focus_changed)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Today", classes="section-title"),
                DataTable(id="today-table", cursor_type="row"),
                id="today-pane",
                classes="pane",
            ),
            Vertical(
                Label("Someday", classes="section-title"),
                DataTable(id="someday-table", cursor_type="row"),
                id="someday-pane",
                classes="pane",
            ),
            id="main-layout",
        )
        yield Input(placeholder="Task title @category", id="new-task")
        yield Static(id="suggestions")
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        for table_id in ("#today-table", "#someday-table"):
            self.query_one(table_id, DataTable).add_columns("#", "Title", "Category", "Focused")
        self.coordinator.check_and_reset_daily_focus()
        self._reload_tables()
        self.set_interval(ROLLOVER_CHECK_SECONDS, self._check_rollover)
        self.query_one("#today-table", DataTable).focus()
        for message in self._startup_errors:
            self.notify(message, title="Store Error", severity="error")
        self._startup_errors.clear()

    def on_unmount(self) -> None:
        self._unsubscribe()
        self._dispatcher.shutdown()

    # ── Rendering ──────────────────────────────────────────────

    def _row(self, position: int, task: Task) -> tuple[str, str, str, str]:
        category = self.coordinator.category_for(task)
        return (
            str(position + 1),
            task.title,
            category.name if category else "",
            _duration(task.focused_duration),
        )

    def _fill(self, table: DataTable, tasks: list[Task]) -> None:
        row = table.cursor_row
        table.clear()
        for i, task in enumerate(tasks):
            table.add_row(*self._row(i, task), key=task.id)
        if tasks:
            table.move_cursor(row=min(row, len(tasks) - 1))

    def _reload_tables(self) -> None:
        self._fill(self.query_one("#today-table", DataTable), self.coordinator.today_tasks())
        self._fill(self.query_one("#someday-table", DataTable), self.coordinator.someday_tasks())
        metrics = today_metrics(self.coordinator)
        self.query_one("#status-bar", Static).update(
            f"Today: {metrics['remaining']} open · {metrics['completed_today']} done"
            f" · {_duration(metrics['focus_seconds'])} focused"
        )
        self.sub_title = workspace_root().name

    def _on_focus_changed(self, snapshot: FocusSnapshot) -> None:
        if threading.current_thread() is threading.main_thread():
            self._reload_tables()
        else:
            self.call_from_thread(self._reload_tables)

    def _on_store_error(self, error: StoreError) -> None:
        if not self.is_running:
            self._startup_errors.append(str(error))
            return
        message = f"Could not save changes: {error}"
        if threading.current_thread() is threading.main_thread():
            self.notify(message, title="Save Failed", severity="error")
        else:
            self.call_from_thread(self.notify, message, title="Save Failed", severity="error")

    # ── Selection helpers ──────────────────────────────────────

    def _active_table(self) -> DataTable | None:
        focused = self.focused
        return focused if isinstance(focused, DataTable) else None

    def _selected(self) -> tuple[str, str, int] | None:
        """(partition, task id, row) under the cursor of the focused list."""
        table = self._active_table()
        if table is None or table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        partition = TODAY if table.id == "today-table" else SOMEDAY
        return partition, str(row_key.value), table.cursor_row

    # ── Actions ────────────────────────────────────────────────

    def action_toggle_focus(self) -> None:
        selected = self._selected()
        if selected is None:
            return
        partition, task_id, _ = selected
        if partition == TODAY:
            self.coordinator.remove_task_from_focus(task_id)
        else:
            self.coordinator.add_task_to_focus(task_id)

    def _move(self, offset: int) -> None:
        selected = self._selected()
        if selected is None or selected[0] != TODAY:
            return
        _, _, row = selected
        self.coordinator.reorder_today(row, row + offset)
        self.query_one("#today-table", DataTable).move_cursor(row=max(0, row + offset))

    def action_move_up(self) -> None:
        self._move(-1)

    def action_move_down(self) -> None:
        self._move(1)

    def action_toggle_complete(self) -> None:
        selected = self._selected()
        if selected is None:
            return
        task = self.coordinator.task(selected[1])
        self.coordinator.toggle_task_completion(selected[1])
        if task is not None and task.is_completed:
            self.notify(f"Completed: {task.title}", title="Done")

    def action_delete_task(self) -> None:
        selected = self._selected()
        if selected is not None:
            self.coordinator.delete_task(selected[1])

    def action_reset_focus(self) -> None:
        self.coordinator.reset_daily_focus()
        self.notify("Today's focus was reset.", title="Reset")

    def action_new_task(self) -> None:
        self.entering_task = True
        task_input = self.query_one("#new-task", Input)
        task_input.value = ""
        task_input.display = True
        task_input.focus()
        self.refresh_bindings()

    def action_cancel_input(self) -> None:
        self._close_input()

    def _close_input(self) -> None:
        self.entering_task = False
        self.query_one("#new-task", Input).display = False
        self.query_one("#suggestions", Static).update("")
        self.query_one("#today-table", DataTable).focus()
        self.refresh_bindings()

    @on(Input.Changed, "#new-task")
    def _on_task_text(self, event: Input.Changed) -> None:
        query = extract_category_query(event.value)
        hint = self.query_one("#suggestions", Static)
        if query is None:
            hint.update("")
            return
        suggestions = self.coordinator.suggest_categories(query)
        parts = list(suggestions.names)
        if suggestions.create_new:
            parts.append(f'+ new "{suggestions.query}"')
        hint.update("  ".join(parts) if parts else "(no categories)")

    @on(Input.Submitted, "#new-task")
    def _on_task_submitted(self, event: Input.Submitted) -> None:
        try:
            task = self.coordinator.create_task(event.value, to_daily_focus=True)
        except ValidationError as e:
            self.notify("; ".join(e.errors), title="Invalid Task", severity="warning")
            return
        self._close_input()
        self.notify(f"Added to Today: {task.title}")

    # ── Rollover ───────────────────────────────────────────────

    def _check_rollover(self) -> None:
        if self.coordinator.check_and_reset_daily_focus():
            self.notify(
                "New day: yesterday's focus moved back to Someday.",
                title="Daily Reset", severity="information",
            )

    def action_quit_app(self) -> None:
        self._dispatcher.flush()
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set ZENFOCUS_ROOT or create the directory first.")
        sys.exit(1)

    settings = load_settings(root)
    setup_logging(settings.log_level, logs_dir(root), console=False)
    app = ZenFocusApp()
    app.run()


if __name__ == "__main__":
    main()
