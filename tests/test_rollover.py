"""Tests for elevate/rollover.py — automatic rollover, end day, idempotency."""

import copy
import logging

from conftest import NOW, FailingStore, make_history, make_task
from elevate.models import Session, Settings, UserProfile
from elevate.rollover import (
    FIRST_RUN,
    NEW_DAY,
    SAME_DAY,
    check_automatic_rollover,
    day_state,
    end_day,
)
from elevate.state import AppState, load_state
from elevate.workspace import HISTORY_KEY, LAST_DATE_KEY, TASKS_KEY

SETTINGS = Settings()


def _state(**kw) -> AppState:
    kw.setdefault("tasks", [
        make_task("a", target=10, current=5, unit="reps", sessions=[Session(NOW - 60_000, NOW, 60_000)]),
        make_task("b", target=4, current=4, unit="pages"),
    ])
    return AppState(**kw)


def test_day_state():
    assert day_state(None, "2026-02-11") == FIRST_RUN
    assert day_state("", "2026-02-11") == FIRST_RUN
    assert day_state("2026-02-11", "2026-02-11") == SAME_DAY
    assert day_state("2026-02-10", "2026-02-11") == NEW_DAY


def test_first_run_initializes_date_only(store):
    state = _state()
    before = copy.deepcopy(state.tasks)

    result = check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)

    assert result["state"] == FIRST_RUN
    assert state.last_active_date == "2026-02-11"
    assert state.tasks == before
    assert state.history == []
    assert store.read(LAST_DATE_KEY) is not None
    assert store.read(HISTORY_KEY) is None


def test_same_day_is_noop(store):
    state = _state(last_active_date="2026-02-11")
    before = copy.deepcopy(state)

    result = check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)

    assert result["state"] == SAME_DAY
    assert state == before
    assert store.data == {}


def test_new_day_archives_stale_date_and_resets(store):
    state = _state(last_active_date="2026-02-10", history=make_history(90))

    result = check_automatic_rollover(state, store, "2026-02-11", NOW + 1, SETTINGS)

    assert result["state"] == NEW_DAY
    assert result["previous_date"] == "2026-02-10"
    assert "2026-02-10" in result["message"]
    assert len(state.history) == 2
    log = state.history[-1]
    assert log is result["archived"]
    assert log.date == "2026-02-10"
    assert log.stats.completion_rate == 75
    assert log.stats.total_focus_time_ms == 60_000
    assert [t.current for t in log.tasks] == [5, 4]
    assert all(t.current == 0 and t.sessions == [] and t.updated_at == NOW + 1 for t in state.tasks)
    assert state.last_active_date == "2026-02-11"
    assert result["unsaved"] == []


def test_new_day_without_progress_skips_archive(store):
    state = _state(last_active_date="2026-02-10", tasks=[make_task("a", current=0)])

    result = check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)

    assert result["state"] == NEW_DAY
    assert result["archived"] is None
    assert state.history == []
    assert store.read(HISTORY_KEY) is None
    assert state.last_active_date == "2026-02-11"


def test_automatic_rollover_is_idempotent(store):
    state = _state(last_active_date="2026-02-10")
    check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)
    after_first = (copy.deepcopy(state), dict(store.data))

    result = check_automatic_rollover(state, store, "2026-02-11", NOW + 5000, SETTINGS)

    assert result["state"] == SAME_DAY
    assert (state, store.data) == after_first


def test_persisted_state_matches_memory(store):
    state = _state(last_active_date="2026-02-10")
    check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)
    reloaded = load_state(store)
    assert reloaded.tasks == state.tasks
    assert reloaded.history == state.history
    assert reloaded.last_active_date == "2026-02-11"


def test_archive_is_not_aliased_to_live_tasks(store):
    state = _state(last_active_date="2026-02-10")
    check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)
    state.tasks[0].current = 99
    state.tasks[0].tags.append("late")
    log = state.history[-1]
    assert log.tasks[0].current == 5
    assert log.tasks[0].tags == []


def test_end_day_archives_and_resets(store):
    state = _state(last_active_date="2026-02-11", profile=UserProfile(xp=0))
    ids = [(t.id, t.title, t.target, t.unit) for t in state.tasks]

    result = end_day(state, store, "2026-02-11", NOW, SETTINGS)

    assert len(state.history) == 1
    assert state.history[0].date == "2026-02-11"
    assert [(t.id, t.title, t.target, t.unit) for t in state.tasks] == ids
    assert all(t.current == 0 and t.sessions == [] for t in state.tasks)
    assert result["metrics"].completion_rate == 75
    assert result["bonus_xp"] == 50
    assert state.profile.xp == 50
    assert result["message"].startswith("Day archived. You gained 50 XP. Summary: ")


def test_end_day_zero_progress_still_archives(store):
    state = _state(tasks=[make_task("a", current=0), make_task("b", current=0)])

    result = end_day(state, store, "2026-02-11", NOW, SETTINGS)

    assert len(state.history) == 1
    assert result["archived"].stats.completion_rate == 0
    assert result["bonus_xp"] == 0
    assert store.read(HISTORY_KEY) is not None


def test_end_day_full_bonus_and_level_up(store):
    state = _state(tasks=[make_task("a", target=1, current=1)], profile=UserProfile(xp=50))
    result = end_day(state, store, "2026-02-11", NOW, SETTINGS)
    assert result["bonus_xp"] == 100
    assert result["level_up"] is True
    assert state.profile.xp == 150


def test_end_day_logs_bonus(store, caplog):
    state = _state(tasks=[make_task("a", target=1, current=1)])
    with caplog.at_level(logging.DEBUG, logger="elevate.rollover"):
        end_day(state, store, "2026-02-11", NOW, SETTINGS)
    assert "Awarded 100 XP for ending 2026-02-11" in caplog.text


def test_end_day_reward_when_streak_positive(store):
    state = _state(history=make_history(80, 90))
    result = end_day(state, store, "2026-02-11", NOW, SETTINGS)
    assert result["reward"] == {"streak": 2}

    state = _state(history=make_history(90, 10))
    assert end_day(state, store, "2026-02-11", NOW, SETTINGS)["reward"] is None


def test_end_day_then_automatic_check_is_noop(store):
    state = _state(last_active_date="2026-02-10")
    end_day(state, store, "2026-02-11", NOW, SETTINGS)
    result = check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)
    assert result["state"] == SAME_DAY
    assert len(state.history) == 1


def test_history_limit(store):
    state = _state(history=make_history(10, 20, 30))
    end_day(state, store, "2026-02-11", NOW, Settings(history_limit=3))
    assert [e.stats.completion_rate for e in state.history] == [20, 30, 75]


def test_storage_failure_keeps_memory_changes():
    store = FailingStore({HISTORY_KEY, TASKS_KEY})
    state = _state(last_active_date="2026-02-10")

    result = check_automatic_rollover(state, store, "2026-02-11", NOW, SETTINGS)

    assert sorted(result["unsaved"]) == sorted([HISTORY_KEY, TASKS_KEY])
    assert len(state.history) == 1
    assert all(t.current == 0 for t in state.tasks)
    assert state.last_active_date == "2026-02-11"
    assert store.read(LAST_DATE_KEY) is not None
