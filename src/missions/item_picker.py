"""
Item Picker.

Finds the next unit of work in each selected track. Progress is only known
as an aggregate counter, so the resume point is estimated as
floor(completion_rate * item_count) over the items ordered by index.
"""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from uuid import UUID

from src.db.models import Difficulty, Track, TrackItem
from src.missions.track_selector import completion_rate


@dataclass
class CandidateItem:
    """A track item proposed for today's mission."""
    item_id: UUID
    track_id: UUID
    title: str
    difficulty: Difficulty
    estimated_minutes: int
    order_index: int

    @classmethod
    def from_item(cls, item: TrackItem, track_id: UUID) -> CandidateItem:
        return cls(
            item_id=item.id,
            track_id=track_id,
            title=item.title,
            difficulty=item.difficulty or Difficulty.MEDIUM,
            estimated_minutes=item.estimated_minutes,
            order_index=item.order_index,
        )


class ItemPicker:
    """Chooses one candidate item per selected track."""

    @staticmethod
    def resume_index(track: Track, item_count: int) -> int:
        """Estimated position of the first unworked item."""
        return math.floor(completion_rate(track) * item_count)

    def pick_for_track(self, track: Track, items: Sequence[TrackItem]) -> TrackItem | None:
        """
        Pick the next item of a track.

        Falls back to the first item when the estimated index runs past the
        end; a track without items contributes nothing.
        """
        if not items:
            return None
        index = self.resume_index(track, len(items))
        if 0 <= index < len(items):
            return items[index]
        return items[0]

    def pick(
        self,
        tracks: Sequence[Track],
        items_by_track: Mapping[UUID, Sequence[TrackItem]],
        max_items: int,
    ) -> list[CandidateItem]:
        """
        Collect candidates across tracks in selection order.

        Args:
            tracks: Selected tracks
            items_by_track: track_id -> items ordered by order_index
            max_items: Stop once this many candidates are collected

        Returns:
            Candidate items annotated with their track
        """
        candidates: list[CandidateItem] = []
        for track in tracks:
            if len(candidates) >= max_items:
                break
            item = self.pick_for_track(track, items_by_track.get(track.id, []))
            if item is not None:
                candidates.append(CandidateItem.from_item(item, track.id))
        return candidates
