"""
Streak continuity.

One rule serves both the per-track and the global streak:
- last activity yesterday  -> streak continues (+1)
- last activity today      -> unchanged (same-day re-activity)
- anything else            -> gap detected, streak resets to 1

With freezes enabled, a gap of N missed days is bridged when the streak has
at least N freezes available; the freezes move from freeze_count to
freeze_used and the streak continues.
"""
from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from uuid import UUID

from loguru import logger
from sqlalchemy.orm import Session

from src.core.exceptions import InvalidInputError
from src.db import queries
from src.db.models import Streak


class StreakOutcome(str, Enum):
    STARTED = "started"
    CONTINUED = "continued"
    UNCHANGED = "unchanged"
    FROZEN = "frozen"
    RESET = "reset"


def apply_activity(streak: Streak, today: date, freezes_enabled: bool = False) -> StreakOutcome:
    """
    Record activity on `today` against an existing streak, in place.

    Returns:
        What happened to the streak
    """
    last = streak.last_activity_date
    current = streak.current_streak or 0

    if last is not None and last >= today:
        # Already counted, or recorded under a later local date
        return StreakOutcome.UNCHANGED
    if last == today - timedelta(days=1):
        current += 1
        outcome = StreakOutcome.CONTINUED
    else:
        missed = (today - last).days - 1 if last is not None else None
        if (
            freezes_enabled
            and missed is not None
            and 0 < missed <= (streak.freeze_count or 0)
        ):
            streak.freeze_count -= missed
            streak.freeze_used = (streak.freeze_used or 0) + missed
            current += 1
            outcome = StreakOutcome.FROZEN
        else:
            current = 1
            outcome = StreakOutcome.RESET

    streak.current_streak = current
    streak.longest_streak = max(streak.longest_streak or 0, current)
    streak.last_activity_date = today
    return outcome


class StreakService:
    """Reads, creates and advances streak rows under row locks."""

    def __init__(self, session: Session, freezes_enabled: bool = False):
        self._session = session
        self._freezes_enabled = freezes_enabled

    def record_activity(
        self, user_id: UUID, track_id: UUID | None, today: date
    ) -> tuple[Streak, StreakOutcome]:
        """
        Advance the user's streak for a track (None = global), creating it if absent.
        """
        streak = queries.get_streak_for_update(self._session, user_id, track_id)
        if streak is None:
            streak = Streak(
                user_id=user_id,
                track_id=track_id,
                current_streak=1,
                longest_streak=1,
                last_activity_date=today,
                freeze_count=0,
                freeze_used=0,
            )
            self._session.add(streak)
            self._session.flush()
            return streak, StreakOutcome.STARTED

        outcome = apply_activity(streak, today, self._freezes_enabled)
        if outcome is StreakOutcome.FROZEN:
            logger.info(
                f"Streak {streak.id} bridged a gap with freezes ({streak.freeze_count} left)"
            )
        return streak, outcome

    def grant_freezes(self, user_id: UUID, amount: int = 1) -> Streak:
        """Add freezes to the user's global streak."""
        if amount < 1:
            raise InvalidInputError("Freeze amount must be at least 1")

        queries.get_user(self._session, user_id)
        streak = queries.get_streak_for_update(self._session, user_id, None)
        if streak is None:
            streak = Streak(
                user_id=user_id,
                track_id=None,
                current_streak=0,
                longest_streak=0,
                freeze_count=0,
                freeze_used=0,
            )
            self._session.add(streak)

        streak.freeze_count = (streak.freeze_count or 0) + amount
        self._session.flush()
        logger.info(f"Granted {amount} streak freeze(s) to user {user_id}")
        return streak
