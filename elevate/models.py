"""Typed dataclasses for the Elevate data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase on disk is mapped to snake_case in Python.
Unknown keys are ignored (UserProfile keeps them); missing keys use defaults.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


TASK_TYPES = ("count", "duration")


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _bool(value: Any, default: bool = False) -> bool:
    return value if isinstance(value, bool) else default


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    streak_threshold: int = 50
    history_limit: int = 0  # 0 = keep everything

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        threshold = min(100, max(0, _int(d.get("streak_threshold"), 50)))
        return cls(
            timezone=str(d.get("timezone") or "UTC"),
            streak_threshold=threshold,
            history_limit=max(0, _int(d.get("history_limit"), 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "streak_threshold": self.streak_threshold,
            "history_limit": self.history_limit,
        }


# ── Tasks ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Session:
    """One completed focus interval. Never edited once recorded."""

    start_ts: int = 0
    end_ts: int = 0
    duration_ms: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Session:
        return cls(
            start_ts=_int(d.get("startTs")),
            end_ts=_int(d.get("endTs")),
            duration_ms=max(0, _int(d.get("durationMs"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"startTs": self.start_ts, "endTs": self.end_ts, "durationMs": self.duration_ms}


@dataclass
class Task:
    id: str = ""
    title: str = ""
    category: str = "General"
    type: str = "count"  # count, duration
    target: int = 1
    unit: str = ""
    current: int = 0
    sessions: list[Session] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        sessions = d.get("sessions")
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            category=str(d.get("category") or "General"),
            type=str(d.get("type") or "count"),
            # a missing target stays 0 so evaluation treats the task as complete
            target=_int(d.get("target"), 0),
            unit=str(d.get("unit") or ""),
            current=max(0, _int(d.get("current"))),
            sessions=[Session.from_dict(s) for s in sessions if isinstance(s, dict)]
            if isinstance(sessions, list) else [],
            tags=_str_list(d.get("tags")),
            created_at=_int(d.get("createdAt")),
            updated_at=_int(d.get("updatedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "type": self.type,
            "target": self.target,
            "unit": self.unit,
            "current": self.current,
            "sessions": [s.to_dict() for s in self.sessions],
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def snapshot(self) -> Task:
        """Independent deep copy; mutating it never touches this task."""
        return copy.deepcopy(self)

    def focus_time_ms(self) -> int:
        return sum(s.duration_ms for s in self.sessions)


# ── History ───────────────────────────────────────────────────


@dataclass(frozen=True)
class DayStats:
    completion_rate: int = 0
    total_focus_time_ms: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DayStats:
        if not isinstance(d, dict):
            return cls()
        return cls(
            completion_rate=min(100, max(0, _int(d.get("completionRate")))),
            total_focus_time_ms=max(0, _int(d.get("totalFocusTimeMs"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "completionRate": self.completion_rate,
            "totalFocusTimeMs": self.total_focus_time_ms,
        }


@dataclass(frozen=True)
class DayLog:
    """One archived day. The task tuple is a private snapshot."""

    date: str = ""
    tasks: tuple[Task, ...] = ()
    stats: DayStats = field(default_factory=DayStats)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DayLog:
        tasks = d.get("tasks")
        return cls(
            date=str(d.get("date", "")),
            tasks=tuple(Task.from_dict(t) for t in tasks if isinstance(t, dict))
            if isinstance(tasks, list) else (),
            stats=DayStats.from_dict(d.get("stats") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "tasks": [t.to_dict() for t in self.tasks],
            "stats": self.stats.to_dict(),
        }


# ── Profile ───────────────────────────────────────────────────


@dataclass
class UserProfile:
    onboarded: bool = False
    xp: int = 0
    name: str = ""
    # presentation fields written by onboarding/settings forms, kept verbatim
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserProfile:
        if not d or not isinstance(d, dict):
            return cls()
        extra = {k: v for k, v in d.items() if k not in {"onboarded", "xp", "name"}}
        return cls(
            onboarded=_bool(d.get("onboarded")),
            xp=max(0, _int(d.get("xp"))),
            name=str(d.get("name") or ""),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({"onboarded": self.onboarded, "xp": self.xp, "name": self.name})
        return d


@dataclass
class AIConfig:
    name: str = "Coach"
    gender: str = "Male"
    voice: str = "Deep"
    roles: list[str] = field(default_factory=lambda: ["Coach", "Strategist"])
    behaviors: list[str] = field(default_factory=lambda: ["Straightforward", "Focus-driven"])

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AIConfig:
        if not d or not isinstance(d, dict):
            return cls()
        default = cls()
        return cls(
            name=str(d.get("name") or default.name),
            gender=str(d.get("gender") or default.gender),
            voice=str(d.get("voice") or default.voice),
            roles=_str_list(d.get("roles")) if "roles" in d else default.roles,
            behaviors=_str_list(d.get("behaviors")) if "behaviors" in d else default.behaviors,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "gender": self.gender,
            "voice": self.voice,
            "roles": list(self.roles),
            "behaviors": list(self.behaviors),
        }


# ── Evaluation ────────────────────────────────────────────────


@dataclass(frozen=True)
class Metrics:
    completion_rate: int = 0
    streak: int = 0
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "completionRate": self.completion_rate,
            "streak": self.streak,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class LevelInfo:
    level: int = 1
    progress: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "progress": self.progress}
