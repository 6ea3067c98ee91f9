"""Elevate HTTP surface — JSON endpoints for presentation collaborators.

Run with:  uvicorn api.app:app
"""

from __future__ import annotations

import logging
import os
import secrets
import threading
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from elevate import Tracker, recent_history, workspace_root


def setup_logging() -> logging.Logger:
    logging.basicConfig(
        level=os.environ.get("ELEVATE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return logging.getLogger(__name__)


logger = setup_logging()

_tracker: Tracker | None = None
_tracker_lock = threading.Lock()


def get_tracker() -> Tracker:
    """The process-wide tracker; opened lazily from ELEVATE_ROOT."""
    global _tracker
    with _tracker_lock:
        if _tracker is None:
            _tracker = Tracker.open(workspace_root())
        return _tracker


def reset_tracker(tracker: Tracker | None = None) -> None:
    global _tracker
    _tracker = tracker


@asynccontextmanager
async def lifespan(_app: FastAPI):
    result = get_tracker().check_automatic_rollover()
    if result.get("message"):
        logger.info(result["message"])
    yield


app = FastAPI(title="Elevate", version="0.1.0", lifespan=lifespan)

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("ELEVATE_USERNAME", "")
    expected_password = os.environ.get("ELEVATE_PASSWORD", "")

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


def _result_json(result: dict[str, Any]) -> dict[str, Any]:
    """Make a rollover/end-day result JSON-safe."""
    out = dict(result)
    archived = out.get("archived")
    if archived is not None:
        out["archived"] = archived.to_dict()
    metrics = out.get("metrics")
    if metrics is not None:
        out["metrics"] = metrics.to_dict()
    out.pop("keys", None)
    return out


# ── Metrics & state ───────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/metrics")
def api_metrics(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Live evaluator output plus level and weekly average."""
    tracker = get_tracker()
    return {
        **tracker.evaluate().to_dict(),
        "weeklyProgress": tracker.weekly_progress(),
        "level": tracker.level().to_dict(),
        "xp": tracker.profile.xp,
        "unsaved": sorted(tracker.unsaved_keys),
    }


@app.get("/api/state")
def api_state(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Full state dump."""
    state = get_tracker().state
    return {
        "profile": state.profile.to_dict(),
        "aiConfig": state.ai_config.to_dict(),
        "theme": state.theme,
        "tasks": [t.to_dict() for t in state.tasks],
        "history": [e.to_dict() for e in state.history],
        "lastActiveDate": state.last_active_date,
        "autoSpeech": state.auto_speech,
    }


@app.get("/api/history")
def api_history(n: int = 30, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Last N archived days, newest first."""
    recent = recent_history(get_tracker().state.history, n)
    return {"count": len(recent), "history": [e.to_dict() for e in recent]}


# ── Rollover ──────────────────────────────────────────────────

@app.post("/api/rollover/check")
def api_rollover_check(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return _result_json(get_tracker().check_automatic_rollover())


@app.post("/api/end_day")
def api_end_day(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Conclude the day. The client confirms with the user before calling."""
    return _result_json(get_tracker().end_day())


# ── Tasks ─────────────────────────────────────────────────────

@app.get("/api/tasks")
def api_list_tasks(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"tasks": [t.to_dict() for t in get_tracker().tasks]}


@app.post("/api/tasks")
def api_create_task(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    task, errors = get_tracker().add_task(payload)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    return {"ok": True, "task": task.to_dict()}


@app.put("/api/tasks/{task_id}")
def api_update_task(task_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    tracker = get_tracker()
    if not any(t.id == task_id for t in tracker.tasks):
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    updated, errors = tracker.update_task(task_id, payload)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    return {"ok": True, "task": updated.to_dict()}


@app.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Delete a task and its sessions. The client confirms before calling."""
    if not get_tracker().delete_task(task_id):
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return {"ok": True, "task_id": task_id}


@app.post("/api/tasks/{task_id}/sessions")
def api_record_session(task_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Record a finished focus session: {"duration_ms": int}."""
    tracker = get_tracker()
    if not any(t.id == task_id for t in tracker.tasks):
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    updated, errors = tracker.record_focus_session(task_id, payload.get("duration_ms"))
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    return {"ok": True, "task": updated.to_dict(), "xp": tracker.profile.xp}


# ── Profile, preferences, coach ───────────────────────────────

@app.get("/api/profile")
def api_get_profile(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return get_tracker().profile.to_dict()


@app.put("/api/profile")
def api_update_profile(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Update presentation fields (name, onboarded, ...). XP is read-only."""
    return get_tracker().update_profile(payload).to_dict()


@app.get("/api/preferences")
def api_get_preferences(username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = get_tracker().state
    return {"theme": state.theme, "autoSpeech": state.auto_speech, "aiConfig": state.ai_config.to_dict()}


@app.put("/api/preferences")
def api_update_preferences(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    tracker = get_tracker()
    if "theme" in payload:
        tracker.set_theme(str(payload["theme"]))
    if "autoSpeech" in payload:
        tracker.set_auto_speech(payload["autoSpeech"] is True)
    if isinstance(payload.get("aiConfig"), dict):
        tracker.set_ai_config(payload["aiConfig"])
    return api_get_preferences(username)


@app.get("/api/coach/context")
def api_coach_context(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """System context for an external model, plus the offline fallback text."""
    tracker = get_tracker()
    return {"context": tracker.coach_context(), "fallback": tracker.evaluate().summary}
