"""Day rollover state machine for Elevate.

Two entry points close out a day:

- ``check_automatic_rollover`` runs on every process start. It compares
  the persisted last-active day key with today and, on a change,
  archives the stale day (only if any task made progress) and resets
  the task counters. Running it again for the same today is a no-op.
- ``end_day`` is the user's explicit "conclude the day". It always
  archives, resets, and pays the day-end XP bonus.

Each step persists its keys as soon as it is applied. Write failures are
collected into the result's ``unsaved`` list; state already changed in
memory is kept.
"""

from __future__ import annotations

import logging
from typing import Any

from elevate.evaluator import evaluate
from elevate.history import append_day_log, build_day_log
from elevate.leveling import award_xp, day_end_bonus
from elevate.models import DayLog, Metrics, Settings
from elevate.state import AppState, save_keys
from elevate.storage import KeyValueStore
from elevate.tasks import has_progress, reset_tasks
from elevate.workspace import HISTORY_KEY, LAST_DATE_KEY, PROFILE_KEY, TASKS_KEY

logger = logging.getLogger(__name__)

SAME_DAY = "same_day"
NEW_DAY = "new_day"
FIRST_RUN = "first_run"

END_DAY_KEYS = (HISTORY_KEY, TASKS_KEY, PROFILE_KEY, LAST_DATE_KEY)


def day_state(last_active_date: str | None, today: str) -> str:
    if not last_active_date:
        return FIRST_RUN
    if last_active_date == today:
        return SAME_DAY
    return NEW_DAY


def archive_day(state: AppState, day: str, settings: Settings) -> tuple[DayLog, Metrics]:
    """Evaluate the live tasks and append a frozen DayLog for *day*."""
    metrics = evaluate(state.tasks, state.history, state.profile, settings.streak_threshold)
    log = build_day_log(day, state.tasks, metrics.completion_rate)
    append_day_log(state.history, log, settings.history_limit)
    logger.info("Archived %s at %d%% completion", day, metrics.completion_rate)
    return log, metrics


def check_automatic_rollover(
    state: AppState,
    store: KeyValueStore,
    today: str,
    now: int,
    settings: Settings,
) -> dict[str, Any]:
    """Archive and reset if the day changed since the app was last active."""
    status = day_state(state.last_active_date, today)

    if status == SAME_DAY:
        return {"ok": True, "state": SAME_DAY, "today": today, "archived": None, "keys": [], "unsaved": []}

    if status == FIRST_RUN:
        state.last_active_date = today
        unsaved = save_keys(store, state, LAST_DATE_KEY)
        return {
            "ok": True, "state": FIRST_RUN, "today": today, "archived": None,
            "keys": [LAST_DATE_KEY], "unsaved": unsaved,
        }

    previous = state.last_active_date
    keys = [TASKS_KEY, LAST_DATE_KEY]
    unsaved: list[str] = []
    archived = None
    if has_progress(state.tasks):
        archived, _metrics = archive_day(state, previous, settings)
        unsaved += save_keys(store, state, HISTORY_KEY)
        keys.append(HISTORY_KEY)

    reset_tasks(state.tasks, now)
    unsaved += save_keys(store, state, TASKS_KEY)

    state.last_active_date = today
    unsaved += save_keys(store, state, LAST_DATE_KEY)

    logger.info("New day %s detected (last active %s)", today, previous)
    return {
        "ok": True,
        "state": NEW_DAY,
        "today": today,
        "previous_date": previous,
        "archived": archived,
        "message": f"New day detected. Previous data from {previous} has been archived.",
        "keys": keys,
        "unsaved": unsaved,
    }


def end_day(
    state: AppState,
    store: KeyValueStore,
    today: str,
    now: int,
    settings: Settings,
) -> dict[str, Any]:
    """Archive today unconditionally, reset tasks and award the day-end bonus.

    ``reward`` is set when the streak reported alongside the archived
    completion rate is positive; the collaborator decides how to celebrate.
    """
    log, metrics = archive_day(state, today, settings)
    unsaved = save_keys(store, state, HISTORY_KEY)

    reset_tasks(state.tasks, now)
    unsaved += save_keys(store, state, TASKS_KEY)

    bonus = day_end_bonus(metrics.completion_rate)
    level_up = award_xp(state.profile, bonus)
    logger.debug("Awarded %d XP for ending %s (total %d)", bonus, today, state.profile.xp)
    unsaved += save_keys(store, state, PROFILE_KEY)

    state.last_active_date = today
    unsaved += save_keys(store, state, LAST_DATE_KEY)

    return {
        "ok": True,
        "day": today,
        "archived": log,
        "metrics": metrics,
        "bonus_xp": bonus,
        "level_up": level_up,
        "message": f"Day archived. You gained {bonus} XP. Summary: {metrics.summary}",
        "reward": {"streak": metrics.streak} if metrics.streak > 0 else None,
        "keys": list(END_DAY_KEYS),
        "unsaved": unsaved,
    }
