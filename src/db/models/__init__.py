# SQLAlchemy models
from .base import Base
from .enums import (
    Category,
    Difficulty,
    DifficultyLevel,
    MissionStatus,
    TaskStatus,
    TaskType,
    XPSource,
)
from .gamification import Streak, XPTransaction
from .missions import DailyMission, MissionTask
from .tracks import Track, TrackItem
from .users import User, UserSettings

__all__ = [
    # Base
    "Base",
    # Enums
    "Category",
    "Difficulty",
    "DifficultyLevel",
    "MissionStatus",
    "TaskStatus",
    "TaskType",
    "XPSource",
    # Users
    "User",
    "UserSettings",
    # Tracks
    "Track",
    "TrackItem",
    # Missions
    "DailyMission",
    "MissionTask",
    # Gamification
    "Streak",
    "XPTransaction",
]
