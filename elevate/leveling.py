"""Experience curve and XP award rules for Elevate.

Level L spans [100 * (L - 1)^2, 100 * L^2) experience points, so each
level needs a wider band than the last.
"""

from __future__ import annotations

import math

from elevate.models import LevelInfo, Task, UserProfile


XP_PER_LEVEL_UNIT = 100

TASK_CREATED_XP = 10
TARGET_REACHED_XP = 50
FOCUS_XP_PER_MINUTE = 2

BONUS_STRONG_RATE = 80
BONUS_STRONG_XP = 100
BONUS_FAIR_RATE = 50
BONUS_FAIR_XP = 50


def level_threshold(level: int) -> int:
    """Experience needed to reach *level* (level 1 starts at 0)."""
    return XP_PER_LEVEL_UNIT * (max(1, level) - 1) ** 2


def level_of(xp: int) -> LevelInfo:
    """Level and percent progress through the current level's band."""
    xp = max(0, int(xp))
    level = math.isqrt(xp // XP_PER_LEVEL_UNIT) + 1
    floor, ceiling = level_threshold(level), level_threshold(level + 1)
    progress = (xp - floor) * 100 // (ceiling - floor)
    return LevelInfo(level=level, progress=int(progress))


def reached_target(old: Task | None, new: Task) -> bool:
    """True when *new* is at/above target and *old* was still below it.

    A task with no previous snapshot has nothing to cross from.
    """
    if old is None:
        return False
    return old.current < old.target and new.current >= new.target


def focus_xp(task: Task, minutes: int) -> int:
    if task.type != "duration" or minutes <= 0:
        return 0
    return minutes * FOCUS_XP_PER_MINUTE


def day_end_bonus(rate: int) -> int:
    if rate >= BONUS_STRONG_RATE:
        return BONUS_STRONG_XP
    if rate >= BONUS_FAIR_RATE:
        return BONUS_FAIR_XP
    return 0


def award_xp(profile: UserProfile, amount: int) -> bool:
    """Add *amount* XP (never negative). Returns True if the level went up."""
    if amount <= 0:
        return False
    before = level_of(profile.xp).level
    profile.xp += amount
    return level_of(profile.xp).level > before
