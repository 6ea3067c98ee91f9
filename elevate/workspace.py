"""Workspace root, settings, timezone and storage key names for Elevate."""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from elevate.fileio import read_yaml
from elevate.models import Settings

logger = logging.getLogger(__name__)


# ── Storage keys ──────────────────────────────────────────────

PROFILE_KEY = "profile.json"
AI_CONFIG_KEY = "ai_config.json"
THEME_KEY = "theme.json"
TASKS_KEY = "tasks.yaml"
HISTORY_KEY = "history.json"
LAST_DATE_KEY = "last_date.json"
AUTO_SPEECH_KEY = "auto_speech.json"

ALL_KEYS = (
    PROFILE_KEY,
    AI_CONFIG_KEY,
    THEME_KEY,
    TASKS_KEY,
    HISTORY_KEY,
    LAST_DATE_KEY,
    AUTO_SPEECH_KEY,
)


def workspace_root() -> Path:
    """Get the workspace root directory (holds one file per storage key)."""
    return Path(
        os.environ.get("ELEVATE_ROOT", str(Path.home() / "elevate"))
    ).expanduser().resolve()


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, falling back to defaults for anything unusable."""
    try:
        data = read_yaml(settings_path(root))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable settings.yaml: %s", e)
        data = {}
    settings = Settings.from_dict(data)
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in settings, using UTC", settings.timezone)
        settings.timezone = "UTC"
    return settings


def get_timezone(settings: Settings | None = None) -> ZoneInfo:
    """Timezone used for every day key, defaulting to UTC."""
    if settings is None:
        settings = load_settings()
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def today_str(settings: Settings | None = None) -> str:
    """Get today's day key (YYYY-MM-DD) in the configured timezone."""
    return datetime.now(get_timezone(settings)).date().isoformat()


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)
