"""Enumerations stored on track, mission and ledger rows."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    DSA = "DSA"
    SYSTEM_DESIGN = "SYSTEM_DESIGN"
    AI_ML = "AI_ML"
    CS_FUNDAMENTALS = "CS_FUNDAMENTALS"
    OPEN_SOURCE = "OPEN_SOURCE"


class Difficulty(str, Enum):
    """Per-item difficulty, drives load balancing and XP."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class DifficultyLevel(str, Enum):
    """Track-level difficulty tier."""

    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class MissionStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.SKIPPED)


class TaskType(str, Enum):
    TRACK_ITEM = "TRACK_ITEM"
    BRAIN_TEASER = "BRAIN_TEASER"
    REFLECTION = "REFLECTION"


class XPSource(str, Enum):
    TASK_COMPLETION = "TASK_COMPLETION"
    BRAIN_TEASER = "BRAIN_TEASER"
    OSS_CONTRIBUTION = "OSS_CONTRIBUTION"
    STREAK_BONUS = "STREAK_BONUS"
    PENALTY = "PENALTY"
