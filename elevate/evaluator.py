"""Completion rate, streak and summary evaluation for Elevate.

Everything here is a pure function of its inputs: nothing is mutated,
nothing is persisted, and no input makes it raise.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from elevate.leveling import level_of
from elevate.models import DayLog, Metrics, Task, UserProfile


STREAK_THRESHOLD = 50
GOOD_DAY_RATE = 80
WEEK_DAYS = 7


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def task_ratio(task: Task) -> float:
    """Clamped completion ratio in [0, 1]. Malformed targets count as done."""
    target = task.target
    if not isinstance(target, (int, float)) or target <= 0:
        return 1.0
    current = task.current if isinstance(task.current, (int, float)) else 0
    return min(max(current, 0) / target, 1.0)


def completion_rate(tasks: Sequence[Task]) -> int:
    """Mean clamped completion percentage, 0 for an empty task set."""
    if not tasks:
        return 0
    total = sum(task_ratio(t) * 100 for t in tasks)
    return round_half_up(total / len(tasks))


def compute_streak(history: Sequence[DayLog], threshold: int = STREAK_THRESHOLD) -> int:
    """Count qualifying days walking backward from the most recent entry."""
    streak = 0
    for entry in reversed(history):
        if entry.stats.completion_rate < threshold:
            break
        streak += 1
    return streak


def weekly_progress(history: Sequence[DayLog]) -> int:
    """Average completion rate over the last seven archived days."""
    recent = list(history)[-WEEK_DAYS:]
    if not recent:
        return 0
    return round_half_up(sum(e.stats.completion_rate for e in recent) / len(recent))


def total_focus_time_ms(tasks: Iterable[Task]) -> int:
    return sum(t.focus_time_ms() for t in tasks)


def summarize(rate: int, streak: int, profile: UserProfile | None = None) -> str:
    """Build a one-line status from completion and streak.

    Stands in for a coach reply when none is available, so it must stay
    deterministic for the same inputs.
    """
    if rate >= 100:
        lead, advice = "Complete", "Every target hit. Bank it and rest well."
    elif rate >= GOOD_DAY_RATE:
        lead, advice = "Strong", "Close out the last target to finish clean."
    elif rate >= STREAK_THRESHOLD:
        lead, advice = "On track", "Pick the furthest-behind goal and push it next."
    elif rate > 0:
        lead, advice = "Behind", "Start one focus block now on your smallest goal."
    else:
        lead, advice = "Idle", "No progress logged yet. One small win gets things moving."

    parts = [f"{rate}% complete"]
    if streak > 0:
        parts.append(f"{streak}-day streak")
    else:
        parts.append("no active streak")
    if profile is not None:
        parts.append(f"level {level_of(profile.xp).level}")
    return f"[{lead}] {', '.join(parts)}. {advice}"


def evaluate(
    tasks: Sequence[Task],
    history: Sequence[DayLog],
    profile: UserProfile | None = None,
    threshold: int = STREAK_THRESHOLD,
) -> Metrics:
    """Compute live metrics. The current day never counts toward the streak."""
    rate = completion_rate(tasks)
    streak = compute_streak(history, threshold)
    return Metrics(completion_rate=rate, streak=streak, summary=summarize(rate, streak, profile))
