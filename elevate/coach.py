"""Coach context and degraded replies: the boundary to an external AI model.

Elevate never talks to a model itself. It builds the system-context
string a collaborator sends along with the user's message, and it turns
whatever comes back (a string, or a failure) into the text shown to the
user. When the model is unavailable the evaluator summary is used
instead, so the user always gets feedback.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from elevate.evaluator import STREAK_THRESHOLD, evaluate, weekly_progress
from elevate.leveling import level_of
from elevate.models import AIConfig, DayLog, Metrics, Task, UserProfile

logger = logging.getLogger(__name__)

GREETING = "Tracker active. Engine ready. How are we executing today?"
EMPTY_REPLY = "I'm listening, but I can't generate a response right now."
NO_BACKEND = "No coach backend configured"

Generator = Callable[[str], str]


def greeting(profile: UserProfile) -> str | None:
    """Opening message for onboarded users, None before onboarding."""
    return GREETING if profile.onboarded else None


def _task_line(task: Task) -> str:
    unit = f" {task.unit}" if task.unit else ""
    done = " (done)" if task.target > 0 and task.current >= task.target else ""
    return f"- {task.title}: {task.current}/{task.target}{unit}{done}"


def build_coach_context(
    profile: UserProfile,
    ai_config: AIConfig,
    theme: str,
    metrics: Metrics,
    tasks: Sequence[Task],
    history: Sequence[DayLog] = (),
) -> str:
    """System instruction describing the persona and the user's live numbers."""
    lvl = level_of(profile.xp)
    roles = ", ".join(ai_config.roles) or "Coach"
    behaviors = ", ".join(ai_config.behaviors) or "Supportive"
    who = profile.name or "the user"

    lines = [
        f"You are {ai_config.name}, a {ai_config.gender.lower()} {roles} for {who}.",
        f"Behave: {behaviors}. Keep replies short and actionable.",
        f"Interface theme: {theme}.",
        "",
        f"Today: {metrics.completion_rate}% complete across {len(tasks)} goal(s).",
        f"Streak: {metrics.streak} day(s). Weekly average: {weekly_progress(history)}%.",
        f"Level {lvl.level} ({lvl.progress}% to next), {profile.xp} XP.",
    ]
    if tasks:
        lines.append("Goals:")
        lines.extend(_task_line(t) for t in tasks)
    else:
        lines.append("No goals defined yet; encourage adding one.")
    lines.append(f"Evaluator summary: {metrics.summary}")
    return "\n".join(lines)


def coach_reply(
    message: str,
    generate: Generator | None,
    profile: UserProfile,
    ai_config: AIConfig,
    theme: str,
    tasks: Sequence[Task],
    history: Sequence[DayLog],
    threshold: int = STREAK_THRESHOLD,
) -> dict[str, Any]:
    """Ask *generate* for a reply, degrading to the evaluator summary on failure.

    Returns {"ok", "text", "offline", "error"}; never raises.
    """
    metrics = evaluate(tasks, history, profile, threshold)
    try:
        if generate is None:
            raise RuntimeError(NO_BACKEND)
        context = build_coach_context(profile, ai_config, theme, metrics, tasks, history)
        text = generate(f"System Context: {context}\n\nUser: {message}")
        return {"ok": True, "text": text or EMPTY_REPLY, "offline": False, "error": None}
    except Exception as e:
        reason = str(e) or "Connection failed"
        logger.warning("Coach backend failed, using evaluator summary: %s", reason)
        return {
            "ok": False,
            "text": f"Offline Mode ({reason}). Evaluator says: {metrics.summary}",
            "offline": True,
            "error": reason,
        }
