"""
XP awards and level math.

Task XP:
    base = {EASY: 50, MEDIUM: 100, HARD: 200}[difficulty]   (MEDIUM when unknown)
    +20% of base (floored) when the task took less than estimated and
    estimated / actual > 1.2

Levels:
    level = floor(sqrt(total_xp / 100))
    XP for the next level = (level + 1)^2 * 100 - level^2 * 100
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from src.db.models import Difficulty

BASE_XP: dict[Difficulty, int] = {
    Difficulty.EASY: 50,
    Difficulty.MEDIUM: 100,
    Difficulty.HARD: 200,
}
SPEED_BONUS_RATE = 0.2
SPEED_BONUS_THRESHOLD = 1.2
XP_PER_LEVEL_UNIT = 100


def calculate_task_xp(
    difficulty: Difficulty | None,
    estimated_minutes: int,
    actual_minutes: int,
) -> int:
    """XP for one completed task."""
    xp = BASE_XP.get(difficulty or Difficulty.MEDIUM, BASE_XP[Difficulty.MEDIUM])

    if 0 < actual_minutes < estimated_minutes:
        if estimated_minutes / actual_minutes > SPEED_BONUS_THRESHOLD:
            xp += math.floor(xp * SPEED_BONUS_RATE)

    return xp


@dataclass
class LevelProgress:
    """Level derived from a total XP amount."""
    total_xp: int
    level: int
    xp_progress: int
    xp_needed: int

    @property
    def progress_ratio(self) -> float:
        return self.xp_progress / self.xp_needed if self.xp_needed else 0.0


def level_for(total_xp: int) -> int:
    if total_xp <= 0:
        return 0
    return math.isqrt(total_xp // XP_PER_LEVEL_UNIT)


def xp_for_level(level: int) -> int:
    """Total XP at which a level starts."""
    return level * level * XP_PER_LEVEL_UNIT


def level_progress(total_xp: int) -> LevelProgress:
    level = level_for(total_xp)
    return LevelProgress(
        total_xp=total_xp,
        level=level,
        xp_progress=total_xp - xp_for_level(level),
        xp_needed=xp_for_level(level + 1) - xp_for_level(level),
    )
