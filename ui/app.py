from __future__ import annotations

import functools
import os
import secrets
import threading
from datetime import datetime
from typing import Any, Callable

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from zenfocus import (
    TIME_PERIODS,
    TODAY,
    BackgroundDispatcher,
    PARTITIONS,
    DailyFocusCoordinator,
    EventBus,
    FocusTracker,
    StoreError,
    Task,
    ValidationError,
    category_time_breakdown,
    group_completed_by_day,
    load_settings,
    logs_dir,
    open_coordinator,
    perform_drop,
    plan_drop,
    setup_logging,
    today_metrics,
)


# ── Services ──────────────────────────────────────────────────


class Services:
    """Everything one running API needs: coordinator, focus tracker, notices."""

    def __init__(
        self,
        coordinator: DailyFocusCoordinator | None = None,
        row_height: float = 50.0,
        week_start: str = "mon",
    ):
        self.notices: list[str] = []
        self.lock = threading.Lock()
        self._notice_lock = threading.Lock()
        self.coordinator = coordinator or open_coordinator(
            dispatcher=BackgroundDispatcher(), on_store_error=self.add_notice
        )
        self.bus = EventBus()
        self.tracker = FocusTracker(self.coordinator, self.bus)
        self.row_height = row_height
        self.week_start = week_start

    def add_notice(self, error: StoreError) -> None:
        with self._notice_lock:
            self.notices.append(f"Could not save changes: {error}")

    def drain_notices(self) -> list[str]:
        with self._notice_lock:
            out, self.notices = self.notices, []
        return out


_services: Services | None = None


def get_services() -> Services:
    global _services
    if _services is None:
        settings = load_settings()
        setup_logging(settings.log_level, logs_dir())
        _services = Services(row_height=settings.row_height, week_start=settings.week_start)
    return _services


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="ZenFocus API", version="0.1.0")

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("ZENFOCUS_USERNAME", "")
    expected_password = os.environ.get("ZENFOCUS_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Helpers ───────────────────────────────────────────────────


def serialized(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """Run *endpoint* while holding the services lock.

    FastAPI calls sync handlers from a worker thread pool and the coordinator
    does no locking of its own, so requests that touch it take turns here.
    """

    @functools.wraps(endpoint)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with kwargs["services"].lock:
            return endpoint(*args, **kwargs)

    return wrapper


def _task_json(coordinator: DailyFocusCoordinator, task: Task) -> dict[str, Any]:
    d = task.to_dict()
    category = coordinator.category_for(task)
    d["category"] = {"name": category.name, "color": category.color} if category else None
    d["partition"] = coordinator.partition_of(task.id)
    return d


def _focus_json(services: Services) -> dict[str, Any]:
    c = services.coordinator
    return {
        "today": [_task_json(c, t) for t in c.today_tasks()],
        "someday": [_task_json(c, t) for t in c.someday_tasks()],
        "needs_plan": c.needs_daily_plan(),
        "notices": services.drain_notices(),
    }


def _require_task(coordinator: DailyFocusCoordinator, task_id: str) -> Task:
    task = coordinator.task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return task


def _int_field(payload: dict[str, Any], key: str, required: bool = True) -> int | None:
    value = payload.get(key)
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"Missing {key}")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{key} must be an integer")


# ── Focus partitions ──────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/focus")
@serialized
def api_focus(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Today and Someday, in order, with category display info."""
    return _focus_json(services)


@app.post("/api/focus/add")
@serialized
def api_focus_add(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    task_id = str(payload.get("task_id", ""))
    _require_task(services.coordinator, task_id)
    services.coordinator.add_task_to_focus(task_id, _int_field(payload, "index", required=False))
    return {"ok": True, **_focus_json(services)}


@app.post("/api/focus/remove")
@serialized
def api_focus_remove(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    services.coordinator.remove_task_from_focus(str(payload.get("task_id", "")))
    return {"ok": True, **_focus_json(services)}


@app.post("/api/focus/reorder")
@serialized
def api_focus_reorder(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    services.coordinator.reorder_today(_int_field(payload, "from_index"), _int_field(payload, "to_index"))
    return {"ok": True, **_focus_json(services)}


@app.get("/api/focus/drop_preview")
@serialized
def api_drop_preview(task_id: str, target: str = TODAY, pointer_y: float = 0.0, username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Insertion line for a drag hovering over *target*."""
    if target not in PARTITIONS:
        raise HTTPException(status_code=400, detail=f"Invalid target: {target}")
    plan = plan_drop(services.coordinator.snapshot(), task_id, target, pointer_y, services.row_height)
    return {"index": plan.index, "action": plan.action}


@app.post("/api/focus/drop")
@serialized
def api_focus_drop(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    target = str(payload.get("target", TODAY))
    if target not in PARTITIONS:
        raise HTTPException(status_code=400, detail=f"Invalid target: {target}")
    try:
        pointer_y = float(payload.get("pointer_y", 0.0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="pointer_y must be a number")
    plan = perform_drop(services.coordinator, str(payload.get("task_id", "")), target, pointer_y, services.row_height)
    return {"ok": True, "action": plan.action, "index": plan.index, **_focus_json(services)}


@app.post("/api/focus/reset")
@serialized
def api_focus_reset(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    services.coordinator.reset_daily_focus()
    return {"ok": True, **_focus_json(services)}


@app.post("/api/focus/check_reset")
@serialized
def api_focus_check_reset(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Daily rollover check; clients call this on launch and periodically."""
    did_reset = services.coordinator.check_and_reset_daily_focus()
    return {"ok": True, "reset": did_reset}


@app.post("/api/plan")
@serialized
def api_record_plan(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    services.coordinator.record_daily_plan()
    return {"ok": True, "needs_plan": services.coordinator.needs_daily_plan()}


# ── Tasks ─────────────────────────────────────────────────────

@app.post("/api/tasks")
@serialized
def api_create_task(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Create a task from "title @category" input."""
    try:
        task = services.coordinator.create_task(
            str(payload.get("text", "")),
            to_daily_focus=bool(payload.get("to_daily_focus", False)),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail="; ".join(e.errors))
    return {"ok": True, "task": _task_json(services.coordinator, task)}


@app.post("/api/tasks/{task_id}/complete")
@serialized
def api_complete_task(task_id: str, username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    _require_task(services.coordinator, task_id)
    services.coordinator.complete_task(task_id)
    return {"ok": True, **_focus_json(services)}


@app.post("/api/tasks/{task_id}/toggle")
@serialized
def api_toggle_task(task_id: str, username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    task = _require_task(services.coordinator, task_id)
    services.coordinator.toggle_task_completion(task_id)
    return {"ok": True, "completed": task.is_completed, **_focus_json(services)}


@app.delete("/api/tasks/{task_id}")
@serialized
def api_delete_task(task_id: str, username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    _require_task(services.coordinator, task_id)
    services.coordinator.delete_task(task_id)
    return {"ok": True, "task_id": task_id}


@app.get("/api/tasks/completed")
@serialized
def api_completed_tasks(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Completed tasks grouped by day, newest first."""
    c = services.coordinator
    groups = group_completed_by_day(c.completed_tasks(), c.tz)
    return {
        "days": [
            {"date": day.isoformat(), "tasks": [_task_json(c, t) for t in tasks]}
            for day, tasks in groups.items()
        ]
    }


# ── Categories ────────────────────────────────────────────────

@app.get("/api/categories")
@serialized
def api_list_categories(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    return {"categories": [c.to_dict() for c in services.coordinator.categories]}


@app.get("/api/categories/suggest")
@serialized
def api_suggest_categories(q: str = "", username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    suggestions = services.coordinator.suggest_categories(q)
    return {
        "query": suggestions.query,
        "suggestions": [c.to_dict() for c in suggestions.categories],
        "create_new": suggestions.create_new,
    }


@app.post("/api/categories")
@serialized
def api_create_category(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    try:
        category = services.coordinator.add_category(
            str(payload.get("name", "")),
            parent_id=payload.get("parent_id") or None,
            color=payload.get("color") or None,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail="; ".join(e.errors))
    return {"ok": True, "category": category.to_dict()}


@app.put("/api/categories/{category_id}")
@serialized
def api_update_category(category_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    try:
        category = services.coordinator.rename_category(
            category_id, str(payload.get("name", "")), color=payload.get("color") or None
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail="; ".join(e.errors))
    if category is None:
        raise HTTPException(status_code=404, detail=f"Category not found: {category_id}")
    return {"ok": True, "category": category.to_dict()}


@app.delete("/api/categories/{category_id}")
@serialized
def api_delete_category(category_id: str, username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    removed = services.coordinator.delete_category(category_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Category not found: {category_id}")
    return {"ok": True, "removed": removed}


# ── Focus sessions & metrics ──────────────────────────────────

@app.get("/api/session")
@serialized
def api_session(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    session = services.tracker.active
    return {
        "active_session": session.to_dict() if session else None,
        "elapsed_seconds": round(services.tracker.elapsed(), 1),
    }


@app.post("/api/session/{action}")
@serialized
def api_session_action(action: str, payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """start (needs task_id), pause, resume, stop, complete."""
    tracker = services.tracker
    try:
        if action == "start":
            session = tracker.start(str(payload.get("task_id", "")))
        elif action == "pause":
            session = tracker.pause()
        elif action == "resume":
            session = tracker.resume()
        elif action == "stop":
            session = tracker.stop()
        elif action == "complete":
            session = tracker.complete()
        else:
            raise HTTPException(status_code=404, detail=f"Unknown session action: {action}")
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "session": session.to_dict() if session else None}


@app.get("/api/metrics/today")
@serialized
def api_today_metrics(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    return today_metrics(services.coordinator)


@app.get("/api/history/breakdown")
@serialized
def api_category_breakdown(period: str = "week", username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Focused time per category for tasks completed in *period*."""
    if period not in TIME_PERIODS:
        raise HTTPException(status_code=400, detail=f"Invalid period: {period}")
    c = services.coordinator
    rows = category_time_breakdown(c.completed_tasks(), c.categories, period, datetime.now(c.tz), services.week_start)
    return {
        "period": period,
        "categories": [{"name": name, "seconds": round(seconds, 1)} for name, seconds in rows],
    }


@app.get("/api/notices")
@serialized
def api_notices(username: str = Depends(get_current_user), services: Services = Depends(get_services)) -> dict[str, Any]:
    """Non-fatal save failures since the last call."""
    return {"notices": services.drain_notices()}
