"""
Core Module - Shared primitives used across the mission engine.

Components:
- clock: Timezone-aware "now" and "today" (FixedClock for tests)
- exceptions: Domain error taxonomy (not found, conflict, invalid input)
- log_setup: Loguru sink configuration
"""

from src.core.clock import Clock, FixedClock, end_of_day_utc, resolve_timezone
from src.core.exceptions import (
    ConflictError,
    InvalidInputError,
    MasteryFlowError,
    MissionAlreadyExistsError,
    NotFoundError,
    TaskAlreadyCompletedError,
)

__all__ = [
    "Clock",
    "FixedClock",
    "end_of_day_utc",
    "resolve_timezone",
    "MasteryFlowError",
    "NotFoundError",
    "ConflictError",
    "MissionAlreadyExistsError",
    "TaskAlreadyCompletedError",
    "InvalidInputError",
]
