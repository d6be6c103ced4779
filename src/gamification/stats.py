"""Gamification statistics derived from the XP ledger and streak rows."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from src.core.clock import Clock
from src.db import queries
from src.db.models import Streak
from src.gamification.xp import LevelProgress, level_progress


@dataclass
class GamificationStats:
    """Level, XP and streak summary for one user."""
    progress: LevelProgress
    global_streak: int = 0
    longest_streak: int = 0
    freeze_count: int = 0
    streaks: list[Streak] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_xp": self.progress.total_xp,
            "level": self.progress.level,
            "xp_progress": self.progress.xp_progress,
            "xp_needed": self.progress.xp_needed,
            "global_streak": self.global_streak,
            "longest_streak": self.longest_streak,
            "freeze_count": self.freeze_count,
            "streaks": [
                {
                    "id": str(s.id),
                    "track_id": str(s.track_id) if s.track_id else None,
                    "current_streak": s.current_streak,
                    "longest_streak": s.longest_streak,
                    "last_activity_date": (
                        s.last_activity_date.isoformat() if s.last_activity_date else None
                    ),
                    "freeze_count": s.freeze_count,
                    "freeze_used": s.freeze_used,
                }
                for s in self.streaks
            ],
        }


def get_stats(session: Session, user_id: UUID) -> GamificationStats:
    """Sum the ledger and collect streaks for a user."""
    queries.get_user(session, user_id)
    total_xp = queries.get_total_xp(session, user_id)
    streaks = queries.get_user_streaks(session, user_id)
    global_streak = next((s for s in streaks if s.is_global), None)

    return GamificationStats(
        progress=level_progress(total_xp),
        global_streak=global_streak.current_streak if global_streak else 0,
        longest_streak=global_streak.longest_streak if global_streak else 0,
        freeze_count=global_streak.freeze_count if global_streak else 0,
        streaks=streaks,
    )


def streaks_at_risk(session: Session, clock: Clock) -> list[Streak]:
    """
    Global streaks that break unless the user is active today.

    "Today" is each owner's local date, so a streak is at risk when its last
    activity was the day before that. Notification logic uses the result to
    decide whom to warn.
    """
    utc_today = clock.today("UTC")
    # Local dates differ from the UTC date by at most one day either way
    candidates = queries.get_global_streaks_active_between(
        session, utc_today - timedelta(days=2), utc_today
    )
    return [
        streak
        for streak, tz_name in candidates
        if streak.last_activity_date == clock.today(tz_name) - timedelta(days=1)
    ]
