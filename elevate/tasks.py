"""Task validation, CRUD, focus sessions and daily reset for Elevate.

Functions here operate on the live task list in place and return
``(value, errors)`` tuples for anything the user can get wrong. XP is
not awarded here; the tracker compares before/after snapshots.
"""

from __future__ import annotations

import secrets
from typing import Any, Sequence

from elevate.evaluator import round_half_up
from elevate.models import TASK_TYPES, Session, Task


DEFAULT_UNITS = {"count": "reps", "duration": "min"}
MS_PER_MINUTE = 60_000


# ── Validation ────────────────────────────────────────────────


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate task fields and return list of errors (empty if valid)."""
    errors = []
    title = task.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append("Title must not be blank")
    if task.get("type", "count") not in TASK_TYPES:
        errors.append(f"Invalid task type: {task.get('type')}")
    target = task.get("target", 1)
    if not _is_int(target) or target <= 0:
        errors.append("target must be a positive integer")
    current = task.get("current", 0)
    if not _is_int(current) or current < 0:
        errors.append("current must be a non-negative integer")
    if "tags" in task and not isinstance(task["tags"], list):
        errors.append("tags must be a list")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def new_task_id() -> str:
    return secrets.token_hex(6)


def find_task(tasks: Sequence[Task], task_id: str) -> Task | None:
    """Find a task by ID."""
    for t in tasks:
        if t.id == task_id:
            return t
    return None


def create_task(tasks: list[Task], task_data: dict[str, Any], now: int) -> tuple[Task, list[str]]:
    """Create and add a new task with zeroed progress. Returns (task, errors)."""
    errors = validate_task(task_data)
    if errors:
        return Task(), errors

    task_id = str(task_data.get("id") or new_task_id())
    if find_task(tasks, task_id):
        return Task(), [f"Task ID already exists: {task_id}"]

    task_type = task_data.get("type", "count")
    unit = DEFAULT_UNITS["duration"] if task_type == "duration" else (
        str(task_data.get("unit") or DEFAULT_UNITS["count"])
    )
    task = Task(
        id=task_id,
        title=task_data["title"].strip(),
        category=str(task_data.get("category") or "General"),
        type=task_type,
        target=task_data.get("target", 1),
        unit=unit,
        current=0,
        sessions=[],
        tags=[str(t) for t in task_data.get("tags", [])],
        created_at=now,
        updated_at=now,
    )
    tasks.append(task)
    return task, []


def update_task(
    tasks: list[Task], task_id: str, updates: dict[str, Any], now: int
) -> tuple[Task | None, list[str]]:
    """Replace a task by ID with *updates* applied. Returns (updated_task, errors).

    Identity, creation time and recorded sessions are not updatable.
    """
    task = find_task(tasks, task_id)
    if not task:
        return None, [f"Task not found: {task_id}"]

    task_dict = task.to_dict()
    task_dict.update({k: v for k, v in updates.items() if k not in {"id", "createdAt", "sessions"}})

    errors = validate_task(task_dict)
    if errors:
        return None, errors

    updated = Task.from_dict(task_dict)
    updated.sessions = list(task.sessions)
    updated.updated_at = now
    for i, t in enumerate(tasks):
        if t.id == task_id:
            tasks[i] = updated
            break
    return updated, []


def delete_task(tasks: list[Task], task_id: str) -> bool:
    """Remove a task and its sessions. The caller confirms beforehand."""
    for i, t in enumerate(tasks):
        if t.id == task_id:
            tasks.pop(i)
            return True
    return False


# ── Progress ──────────────────────────────────────────────────


def record_focus_session(
    tasks: list[Task], task_id: str, duration_ms: int, now: int
) -> tuple[Task | None, int, list[str]]:
    """Append a finished focus session to a task.

    Duration tasks advance ``current`` by the session length rounded to
    whole minutes. Returns (updated_task, minutes, errors).
    """
    task = find_task(tasks, task_id)
    if not task:
        return None, 0, [f"Task not found: {task_id}"]
    if not _is_int(duration_ms) or duration_ms < 0:
        return None, 0, ["duration_ms must be a non-negative integer"]

    minutes = round_half_up(duration_ms / MS_PER_MINUTE)
    updated = task.snapshot()
    updated.sessions.append(Session(start_ts=now - duration_ms, end_ts=now, duration_ms=duration_ms))
    if updated.type == "duration":
        updated.current += minutes
    updated.updated_at = now
    for i, t in enumerate(tasks):
        if t.id == task_id:
            tasks[i] = updated
            break
    return updated, minutes, []


def has_progress(tasks: Sequence[Task]) -> bool:
    return any(t.current > 0 for t in tasks)


def reset_tasks(tasks: list[Task], now: int) -> None:
    """Zero progress and clear sessions in place; identities are kept."""
    for task in tasks:
        task.current = 0
        task.sessions = []
        task.updated_at = now


def snapshot_tasks(tasks: Sequence[Task]) -> tuple[Task, ...]:
    return tuple(t.snapshot() for t in tasks)
