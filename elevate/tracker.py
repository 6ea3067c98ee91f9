"""The Tracker: one controller owning the application state.

Presentation code talks to a Tracker instead of touching storage or the
task list directly. Every mutating method applies its change in memory
first and then persists the keys it touched; keys that failed to save
are kept in ``unsaved_keys`` until a later write succeeds.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from elevate import rollover
from elevate import tasks as task_ops
from elevate.coach import Generator, build_coach_context, coach_reply
from elevate.evaluator import evaluate, weekly_progress
from elevate.hooks import run_hooks
from elevate.leveling import (
    TASK_CREATED_XP,
    TARGET_REACHED_XP,
    award_xp,
    focus_xp,
    level_of,
    reached_target,
)
from elevate.models import AIConfig, LevelInfo, Metrics, Settings, Task, UserProfile
from elevate.state import AppState, load_state, save_keys
from elevate.storage import FileStore, KeyValueStore
from elevate.workspace import (
    AI_CONFIG_KEY,
    AUTO_SPEECH_KEY,
    PROFILE_KEY,
    TASKS_KEY,
    THEME_KEY,
    load_settings,
    now_ms,
    today_str,
    workspace_root,
)

logger = logging.getLogger(__name__)


class Tracker:
    def __init__(
        self,
        store: KeyValueStore,
        settings: Settings | None = None,
        root: Path | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.store = store
        self.settings = settings or Settings()
        # hooks are only looked up when a workspace directory is known
        self.root = root
        self.clock = clock or now_ms
        self.state: AppState = load_state(store)
        self.unsaved_keys: set[str] = set()
        # serializes state transitions; API endpoints run on a thread pool
        self._lock = threading.RLock()

    @classmethod
    def open(cls, root: Path | None = None) -> Tracker:
        """Tracker backed by the file store in *root* (default: ELEVATE_ROOT)."""
        if root is None:
            root = workspace_root()
        return cls(FileStore(root), load_settings(root), root=root)

    # ── Internals ────────────────────────────────────────────

    def _today(self) -> str:
        return today_str(self.settings)

    def _track(self, failed: list[str], *keys: str) -> list[str]:
        self.unsaved_keys.difference_update(k for k in keys if k not in failed)
        self.unsaved_keys.update(failed)
        return failed

    def _persist(self, *keys: str) -> list[str]:
        return self._track(save_keys(self.store, self.state, *keys), *keys)

    def _hook(self, hook_point: str, context: dict[str, Any]) -> None:
        if self.root is not None:
            run_hooks(hook_point, context, self.root)

    def _award(self, amount: int, reason: str) -> bool:
        if amount <= 0:
            return False
        level_up = award_xp(self.state.profile, amount)
        logger.debug("Awarded %d XP for %s (total %d)", amount, reason, self.state.profile.xp)
        if level_up:
            lvl = level_of(self.state.profile.xp)
            self._hook("on_level_up", {"level": lvl.level, "xp": self.state.profile.xp})
        return level_up

    def _after_progress(self, old: Task | None, new: Task) -> bool:
        if not reached_target(old, new):
            return False
        self._award(TARGET_REACHED_XP, f"completing {new.id}")
        self._hook("on_task_complete", {"task": new.to_dict()})
        return True

    # ── Read-only views ──────────────────────────────────────

    @property
    def tasks(self) -> list[Task]:
        return self.state.tasks

    @property
    def profile(self) -> UserProfile:
        return self.state.profile

    def evaluate(self) -> Metrics:
        return evaluate(
            self.state.tasks, self.state.history, self.state.profile, self.settings.streak_threshold
        )

    def level(self) -> LevelInfo:
        return level_of(self.state.profile.xp)

    def weekly_progress(self) -> int:
        return weekly_progress(self.state.history)

    def coach_context(self) -> str:
        return build_coach_context(
            self.state.profile,
            self.state.ai_config,
            self.state.theme,
            self.evaluate(),
            self.state.tasks,
            self.state.history,
        )

    def coach_reply(self, message: str, generate: Generator | None) -> dict[str, Any]:
        return coach_reply(
            message,
            generate,
            self.state.profile,
            self.state.ai_config,
            self.state.theme,
            self.state.tasks,
            self.state.history,
            self.settings.streak_threshold,
        )

    # ── Rollover ─────────────────────────────────────────────

    def check_automatic_rollover(self, today: str | None = None) -> dict[str, Any]:
        """Run on every start; archives and resets only when the day changed."""
        with self._lock:
            result = rollover.check_automatic_rollover(
                self.state, self.store, today or self._today(), self.clock(), self.settings
            )
            self._track(result["unsaved"], *result["keys"])
        if result["state"] == rollover.NEW_DAY:
            archived = result["archived"]
            self._hook("post_rollover", {
                "previous_date": result["previous_date"],
                "today": result["today"],
                "archived": archived.to_dict() if archived else None,
            })
        return result

    def end_day(self, today: str | None = None) -> dict[str, Any]:
        """Conclude the day on user request. Confirmation is the caller's job."""
        with self._lock:
            result = rollover.end_day(
                self.state, self.store, today or self._today(), self.clock(), self.settings
            )
            self._track(result["unsaved"], *result["keys"])
            xp = self.state.profile.xp
        metrics = result["metrics"]
        self._hook("post_end_day", {
            "day": result["day"],
            "completionRate": metrics.completion_rate,
            "streak": metrics.streak,
            "bonusXp": result["bonus_xp"],
        })
        if result["level_up"]:
            self._hook("on_level_up", {"level": level_of(xp).level, "xp": xp})
        if result["reward"]:
            self._hook("on_streak_reward", result["reward"])
        return result

    # ── Task mutations ───────────────────────────────────────

    def add_task(self, task_data: dict[str, Any]) -> tuple[Task, list[str]]:
        with self._lock:
            task, errors = task_ops.create_task(self.state.tasks, task_data, self.clock())
            if errors:
                return task, errors
            self._award(TASK_CREATED_XP, f"creating {task.id}")
            self._persist(TASKS_KEY, PROFILE_KEY)
        return task, []

    def update_task(self, task_id: str, updates: dict[str, Any]) -> tuple[Task | None, list[str]]:
        with self._lock:
            old = task_ops.find_task(self.state.tasks, task_id)
            old = old.snapshot() if old else None
            updated, errors = task_ops.update_task(self.state.tasks, task_id, updates, self.clock())
            if errors:
                return None, errors
            keys = [TASKS_KEY]
            if self._after_progress(old, updated):
                keys.append(PROFILE_KEY)
            self._persist(*keys)
        return updated, []

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            if not task_ops.delete_task(self.state.tasks, task_id):
                return False
            self._persist(TASKS_KEY)
        return True

    def record_focus_session(self, task_id: str, duration_ms: int) -> tuple[Task | None, list[str]]:
        with self._lock:
            old = task_ops.find_task(self.state.tasks, task_id)
            old = old.snapshot() if old else None
            updated, minutes, errors = task_ops.record_focus_session(
                self.state.tasks, task_id, duration_ms, self.clock()
            )
            if errors:
                return None, errors
            self._after_progress(old, updated)
            self._award(focus_xp(updated, minutes), f"{minutes} focus minutes on {task_id}")
            self._persist(TASKS_KEY, PROFILE_KEY)
        return updated, []

    # ── Profile & preferences ────────────────────────────────

    def update_profile(self, fields: dict[str, Any]) -> UserProfile:
        """Merge presentation fields into the profile. XP cannot be set here."""
        with self._lock:
            data = self.state.profile.to_dict()
            data.update({k: v for k, v in fields.items() if k != "xp"})
            profile = UserProfile.from_dict(data)
            profile.xp = self.state.profile.xp
            self.state.profile = profile
            self._persist(PROFILE_KEY)
        return profile

    def set_ai_config(self, data: dict[str, Any]) -> AIConfig:
        with self._lock:
            merged = self.state.ai_config.to_dict()
            merged.update(data)
            self.state.ai_config = AIConfig.from_dict(merged)
            self._persist(AI_CONFIG_KEY)
            return self.state.ai_config

    def set_theme(self, theme: str) -> str:
        with self._lock:
            self.state.theme = theme.strip() or self.state.theme
            self._persist(THEME_KEY)
            return self.state.theme

    def set_auto_speech(self, enabled: bool) -> bool:
        with self._lock:
            self.state.auto_speech = bool(enabled)
            self._persist(AUTO_SPEECH_KEY)
            return self.state.auto_speech
