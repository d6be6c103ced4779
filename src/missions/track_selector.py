"""
Track Rotation Selector.

Ranks a user's active tracks and picks the few that get attention today.
Each track is scored on three signals:
- Recency: tracks missing from recent missions are more urgent
- Priority: the user's own rotation weight (1-10)
- Progress: tracks with more remaining work rank higher

score = 10 * days_since_engagement + 5 * rotation_priority + 10 * (1 - completion_rate)
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from loguru import logger

from src.db.models import Track


@dataclass
class SelectorConfig:
    """Weights and limits for track rotation."""
    tracks_per_day: int = 3
    window_days: int = 7
    recency_weight: int = 10
    priority_weight: int = 5
    progress_weight: int = 10


@dataclass
class TrackScore:
    """Score breakdown for one track."""
    track: Track
    recency_score: float
    priority_score: float
    progress_score: float

    @property
    def total(self) -> float:
        return self.recency_score + self.priority_score + self.progress_score


def completion_rate(track: Track) -> float:
    """Completed fraction of a track, 0 when it has no items."""
    total = track.total_items or 0
    if total <= 0:
        return 0.0
    return (track.completed_items or 0) / total


class TrackSelector:
    """
    Picks today's tracks from the active set.

    Ordering is a stable sort on score, so tracks with equal scores keep
    the order they were passed in (rotation priority order from the query).
    """

    def __init__(self, config: Optional[SelectorConfig] = None):
        self.config = config or SelectorConfig()

    def days_since_engagement(self, appearances: int) -> int:
        """
        Approximate days since a track was last worked on.

        Args:
            appearances: Missions in the trailing window that included the track

        Returns:
            window_days when unseen, otherwise window_days - appearances (floored at 0)
        """
        if appearances <= 0:
            return self.config.window_days
        return max(0, self.config.window_days - appearances)

    def score_track(self, track: Track, appearances: int) -> TrackScore:
        return TrackScore(
            track=track,
            recency_score=self.config.recency_weight * self.days_since_engagement(appearances),
            priority_score=self.config.priority_weight * (track.rotation_priority or 0),
            progress_score=self.config.progress_weight * (1 - completion_rate(track)),
        )

    def rank(
        self,
        tracks: Sequence[Track],
        engagement: Mapping[UUID, int],
    ) -> list[TrackScore]:
        """Score every track and sort by total, highest first."""
        scores = [self.score_track(t, engagement.get(t.id, 0)) for t in tracks]
        return sorted(scores, key=lambda s: s.total, reverse=True)

    def select(
        self,
        tracks: Sequence[Track],
        engagement: Mapping[UUID, int],
    ) -> list[Track]:
        """
        Select today's tracks.

        Args:
            tracks: Active tracks in rotation priority order
            engagement: track_id -> appearances in the trailing window

        Returns:
            Up to tracks_per_day tracks; empty when there are no active tracks
        """
        if not tracks:
            return []

        ranked = self.rank(tracks, engagement)
        selected = ranked[: self.config.tracks_per_day]

        logger.debug(
            "Track scores: "
            + ", ".join(f"{s.track.name}={s.total:.1f}" for s in ranked)
        )
        return [s.track for s in selected]
