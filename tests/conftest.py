"""Shared test fixtures for Elevate tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from elevate.models import DayLog, DayStats, Task
from elevate.storage import MemoryStore, StorageError


NOW = 1_760_000_000_000


def make_task(task_id: str = "t1", target: int = 10, current: int = 0, **kw) -> Task:
    return Task(id=task_id, title=kw.pop("title", f"Task {task_id}"), target=target, current=current, **kw)


def make_history(*rates: int) -> list[DayLog]:
    return [
        DayLog(date=f"2026-02-{i + 1:02d}", stats=DayStats(completion_rate=r))
        for i, r in enumerate(rates)
    ]


class FailingStore(MemoryStore):
    """MemoryStore whose writes fail for the given keys."""

    def __init__(self, failing: set[str], data: dict[str, bytes] | None = None):
        super().__init__(data)
        self.failing = set(failing)

    def write(self, key: str, data: bytes) -> None:
        if key in self.failing:
            raise StorageError(key, OSError("disk full"))
        super().write(key, data)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with one file per storage key."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    (root / "settings.yaml").write_text(
        yaml.dump({"timezone": "UTC", "streak_threshold": 50}, default_flow_style=False),
        encoding="utf-8",
    )

    profile = {"onboarded": True, "xp": 120, "name": "Sam", "goal": "Ship the thesis"}
    (root / "profile.json").write_text(json.dumps(profile, indent=2), encoding="utf-8")

    tasks = {
        "tasks": [
            {
                "id": "pushups",
                "title": "Pushups",
                "category": "Fitness",
                "type": "count",
                "target": 50,
                "unit": "reps",
                "current": 20,
                "sessions": [],
                "tags": ["health"],
                "createdAt": NOW - 86_400_000,
                "updatedAt": NOW - 3_600_000,
            },
            {
                "id": "reading",
                "title": "Deep reading",
                "category": "General",
                "type": "duration",
                "target": 60,
                "unit": "min",
                "current": 60,
                "sessions": [
                    {"startTs": NOW - 3_600_000, "endTs": NOW, "durationMs": 3_600_000},
                ],
                "tags": [],
                "createdAt": NOW - 86_400_000,
                "updatedAt": NOW,
            },
        ],
    }
    (root / "tasks.yaml").write_text(yaml.dump(tasks, default_flow_style=False), encoding="utf-8")

    history = [
        {"date": "2026-02-09", "tasks": [], "stats": {"completionRate": 90, "totalFocusTimeMs": 0}},
        {"date": "2026-02-10", "tasks": [], "stats": {"completionRate": 60, "totalFocusTimeMs": 0}},
    ]
    (root / "history.json").write_text(json.dumps(history, indent=2), encoding="utf-8")
    (root / "last_date.json").write_text(json.dumps("2026-02-10"), encoding="utf-8")

    os.environ["ELEVATE_ROOT"] = str(root)
    yield root
    if "ELEVATE_ROOT" in os.environ:
        del os.environ["ELEVATE_ROOT"]
