"""Archived-day construction and the append-only history log for Elevate."""

from __future__ import annotations

from typing import Sequence

from elevate.evaluator import total_focus_time_ms
from elevate.models import DayLog, DayStats, Task
from elevate.tasks import snapshot_tasks


def build_day_log(day: str, tasks: Sequence[Task], completion_rate: int) -> DayLog:
    """Freeze the given tasks into a DayLog for *day*.

    The log holds deep copies, so later task edits never reach history.
    """
    snapshot = snapshot_tasks(tasks)
    return DayLog(
        date=day,
        tasks=snapshot,
        stats=DayStats(
            completion_rate=min(100, max(0, int(completion_rate))),
            total_focus_time_ms=total_focus_time_ms(snapshot),
        ),
    )


def append_day_log(history: list[DayLog], log: DayLog, limit: int = 0) -> list[DayLog]:
    """Append *log* in place, dropping the oldest entries beyond *limit* (0 = no cap)."""
    history.append(log)
    if limit > 0 and len(history) > limit:
        del history[: len(history) - limit]
    return history


def recent_history(history: Sequence[DayLog], n: int = 7) -> list[DayLog]:
    """Last *n* archived days, newest first."""
    if n <= 0:
        return []
    return list(history)[-n:][::-1]
