"""Tests for elevate/storage.py and elevate/workspace.py."""

from unittest.mock import patch

import pytest

from elevate.storage import FileStore, MemoryStore, StorageError
from elevate.workspace import load_settings, today_str
from elevate.models import Settings


def test_file_store_missing_key(tmp_path):
    assert FileStore(tmp_path).read("tasks.yaml") is None


def test_file_store_write_read(tmp_path):
    store = FileStore(tmp_path / "nested")
    store.write("history.json", b"[]\n")
    assert store.read("history.json") == b"[]\n"
    assert not list((tmp_path / "nested").glob(".tmp_*"))


def test_file_store_rejects_path_keys(tmp_path):
    store = FileStore(tmp_path)
    with pytest.raises(ValueError):
        store.read("../escape.json")
    with pytest.raises(ValueError):
        store.write(".hidden", b"")


def test_file_store_write_failure(tmp_path):
    store = FileStore(tmp_path)
    with patch("elevate.storage.atomic_write", side_effect=OSError("read-only")):
        with pytest.raises(StorageError) as exc:
            store.write("profile.json", b"{}")
    assert exc.value.key == "profile.json"


def test_memory_store():
    store = MemoryStore()
    assert store.read("x") is None
    store.write("x", b"1")
    assert store.read("x") == b"1"


def test_load_settings_defaults(tmp_path):
    s = load_settings(tmp_path)
    assert s == Settings()


def test_load_settings_bad_timezone(tmp_path):
    (tmp_path / "settings.yaml").write_text("timezone: Mars/Olympus\nstreak_threshold: 60\n")
    s = load_settings(tmp_path)
    assert s.timezone == "UTC"
    assert s.streak_threshold == 60


def test_load_settings_unparsable(tmp_path):
    (tmp_path / "settings.yaml").write_text("timezone: [unclosed\n")
    assert load_settings(tmp_path) == Settings()


def test_today_str_format():
    day = today_str(Settings(timezone="Pacific/Auckland"))
    assert len(day) == 10
    assert day[4] == "-" and day[7] == "-"
