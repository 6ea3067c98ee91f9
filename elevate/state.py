"""Application state aggregate and its per-key persistence for Elevate.

Every storage key is decoded independently. A missing, unreadable or
malformed key falls back to its default instead of failing the load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable

import yaml

from elevate.fileio import decode_json, decode_yaml, encode_json, encode_yaml
from elevate.models import AIConfig, DayLog, Task, UserProfile
from elevate.storage import KeyValueStore, StorageError
from elevate.workspace import (
    AI_CONFIG_KEY,
    AUTO_SPEECH_KEY,
    HISTORY_KEY,
    LAST_DATE_KEY,
    PROFILE_KEY,
    TASKS_KEY,
    THEME_KEY,
)

logger = logging.getLogger(__name__)

DEFAULT_THEME = "Focus"

DECODE_ERRORS = (
    json.JSONDecodeError,
    yaml.YAMLError,
    UnicodeDecodeError,
    ValueError,
    TypeError,
    AttributeError,
    KeyError,
)


@dataclass
class AppState:
    profile: UserProfile = field(default_factory=UserProfile)
    ai_config: AIConfig = field(default_factory=AIConfig)
    theme: str = DEFAULT_THEME
    tasks: list[Task] = field(default_factory=list)
    history: list[DayLog] = field(default_factory=list)
    last_active_date: str | None = None
    auto_speech: bool = False


# ── Decoders ──────────────────────────────────────────────────


def _expect(value: Any, kind: type, key: str) -> Any:
    if not isinstance(value, kind):
        raise TypeError(f"{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _profile(data: Any) -> UserProfile:
    return UserProfile.from_dict(_expect(data, dict, PROFILE_KEY))


def _ai_config(data: Any) -> AIConfig:
    return AIConfig.from_dict(_expect(data, dict, AI_CONFIG_KEY))


def _theme(data: Any) -> str:
    theme = _expect(data, str, THEME_KEY).strip()
    return theme or DEFAULT_THEME


def _tasks(data: Any) -> list[Task]:
    if isinstance(data, dict):
        data = data.get("tasks") or []
    items = _expect(data, list, TASKS_KEY)
    return [Task.from_dict(t) for t in items if isinstance(t, dict)]


def _history(data: Any) -> list[DayLog]:
    items = _expect(data, list, HISTORY_KEY)
    return [DayLog.from_dict(e) for e in items if isinstance(e, dict)]


def _last_date(data: Any) -> str:
    return date.fromisoformat(_expect(data, str, LAST_DATE_KEY)).isoformat()


def _auto_speech(data: Any) -> bool:
    return _expect(data, bool, AUTO_SPEECH_KEY)


_DECODERS: dict[str, tuple[Callable[[bytes], Any], Callable[[Any], Any], str]] = {
    PROFILE_KEY: (decode_json, _profile, "profile"),
    AI_CONFIG_KEY: (decode_json, _ai_config, "ai_config"),
    THEME_KEY: (decode_json, _theme, "theme"),
    TASKS_KEY: (decode_yaml, _tasks, "tasks"),
    HISTORY_KEY: (decode_json, _history, "history"),
    LAST_DATE_KEY: (decode_json, _last_date, "last_active_date"),
    AUTO_SPEECH_KEY: (decode_json, _auto_speech, "auto_speech"),
}


def load_state(store: KeyValueStore) -> AppState:
    """Load every key into a fresh AppState, defaulting per key."""
    state = AppState()
    for key, (decode, build, attr) in _DECODERS.items():
        try:
            raw = store.read(key)
        except StorageError as e:
            logger.warning("Could not read %s, using default: %s", key, e)
            continue
        if raw is None:
            continue
        try:
            setattr(state, attr, build(decode(raw)))
        except DECODE_ERRORS as e:
            logger.warning("Malformed %s, using default: %s", key, e)
    return state


# ── Encoders ──────────────────────────────────────────────────


def encode_key(state: AppState, key: str) -> bytes:
    """Serialize the part of *state* stored under *key*."""
    if key == PROFILE_KEY:
        return encode_json(state.profile.to_dict())
    if key == AI_CONFIG_KEY:
        return encode_json(state.ai_config.to_dict())
    if key == THEME_KEY:
        return encode_json(state.theme)
    if key == TASKS_KEY:
        return encode_yaml({"tasks": [t.to_dict() for t in state.tasks]})
    if key == HISTORY_KEY:
        return encode_json([e.to_dict() for e in state.history])
    if key == LAST_DATE_KEY:
        return encode_json(state.last_active_date)
    if key == AUTO_SPEECH_KEY:
        return encode_json(state.auto_speech)
    raise KeyError(f"Unknown storage key: {key}")


def save_keys(store: KeyValueStore, state: AppState, *keys: str) -> list[str]:
    """Write each key, returning the keys that failed. Never raises StorageError."""
    failed = []
    for key in keys:
        try:
            store.write(key, encode_key(state, key))
        except StorageError as e:
            logger.error("Failed to persist %s: %s", key, e)
            failed.append(key)
    return failed
