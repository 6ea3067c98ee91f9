"""Tests for elevate/state.py — per-key loading with fallback, and saving."""

import json

from conftest import FailingStore
from elevate.models import Task
from elevate.state import AppState, encode_key, load_state, save_keys
from elevate.storage import FileStore, MemoryStore, StorageError
from elevate.workspace import ALL_KEYS, HISTORY_KEY, PROFILE_KEY, TASKS_KEY


def test_load_workspace(workspace):
    state = load_state(FileStore(workspace))
    assert state.profile.name == "Sam"
    assert state.profile.xp == 120
    assert [t.id for t in state.tasks] == ["pushups", "reading"]
    assert state.tasks[1].sessions[0].duration_ms == 3_600_000
    assert [e.stats.completion_rate for e in state.history] == [90, 60]
    assert state.last_active_date == "2026-02-10"
    assert state.theme == "Focus"
    assert state.auto_speech is False


def test_load_empty_store_gives_defaults():
    state = load_state(MemoryStore())
    assert state == AppState()
    assert state.last_active_date is None


def test_malformed_keys_fall_back_independently():
    store = MemoryStore({
        "profile.json": b"{not json",
        "tasks.yaml": b"tasks: [unclosed",
        "history.json": b'{"date": "not a list"}',
        "last_date.json": b'"yesterday"',
        "auto_speech.json": b'"yes"',
        "theme.json": b'"Midnight"',
        "ai_config.json": b"\xff\xfe",
    })
    state = load_state(store)
    assert state.profile.xp == 0
    assert state.tasks == []
    assert state.history == []
    assert state.last_active_date is None
    assert state.auto_speech is False
    assert state.ai_config.name == "Coach"
    # the one well-formed key still loads
    assert state.theme == "Midnight"


def test_tasks_accept_bare_list():
    store = MemoryStore({"tasks.yaml": b"- id: a\n  title: A\n  target: 2\n"})
    assert [t.id for t in load_state(store).tasks] == ["a"]


def test_read_failure_falls_back():
    class BrokenReads(MemoryStore):
        def read(self, key):
            raise StorageError(key, OSError("io"))

    assert load_state(BrokenReads()) == AppState()


def test_save_and_reload_round_trip():
    store = MemoryStore()
    state = AppState(tasks=[Task(id="a", title="A", target=3, current=1)], theme="Dawn")
    state.last_active_date = "2026-02-11"
    assert save_keys(store, state, *ALL_KEYS) == []
    assert load_state(store) == state


def test_save_keys_reports_failures():
    store = FailingStore({HISTORY_KEY})
    failed = save_keys(store, AppState(), TASKS_KEY, HISTORY_KEY, PROFILE_KEY)
    assert failed == [HISTORY_KEY]
    assert store.read(TASKS_KEY) is not None
    assert store.read(PROFILE_KEY) is not None


def test_history_encoded_as_json_list():
    data = json.loads(encode_key(AppState(), HISTORY_KEY))
    assert data == []
