"""
Track management.

Create, edit and retire tracks and append item batches. Tracks referenced by
missions are never hard-deleted; deactivate them instead.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from loguru import logger
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from src.core.exceptions import ConflictError, InvalidInputError
from src.db import queries
from src.db.models import Category, Difficulty, DifficultyLevel, Track, TrackItem


class TrackItemInput(BaseModel):
    """One item in an add-items batch."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_minutes: int = Field(30, ge=1)
    tags: list[str] = Field(default_factory=list)
    resource_links: list[dict[str, str]] = Field(default_factory=list)


class TrackUpdate(BaseModel):
    """Editable track fields; None leaves a field unchanged."""

    name: str | None = Field(None, min_length=1)
    category: Category | None = None
    difficulty_level: DifficultyLevel | None = None
    is_active: bool | None = None
    rotation_priority: int | None = Field(None, ge=1, le=10)


class TrackService:
    """Track CRUD scoped to one owner."""

    def __init__(self, session: Session):
        self._session = session

    def create_track(
        self,
        user_id: UUID,
        name: str,
        category: Category | str,
        difficulty_level: DifficultyLevel | str = DifficultyLevel.INTERMEDIATE,
        rotation_priority: int = 1,
        estimated_days: int | None = None,
        source_url: str | None = None,
    ) -> Track:
        """Create an empty, active track."""
        if not name or not category:
            raise InvalidInputError("Name and category are required")
        if not 1 <= rotation_priority <= 10:
            raise InvalidInputError("rotation_priority must be between 1 and 10")
        try:
            category = Category(category)
            difficulty_level = DifficultyLevel(difficulty_level)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        queries.get_user(self._session, user_id)
        track = Track(
            user_id=user_id,
            name=name,
            category=category,
            difficulty_level=difficulty_level,
            rotation_priority=rotation_priority,
            estimated_days=estimated_days,
            source_url=source_url,
            total_items=0,
            completed_items=0,
            is_active=True,
        )
        self._session.add(track)
        self._session.flush()
        logger.info(f"Created track {track.id} ({track.name}) for user {user_id}")
        return track

    def list_tracks(self, user_id: UUID) -> list[Track]:
        queries.get_user(self._session, user_id)
        return queries.get_user_tracks(self._session, user_id)

    def get_track(self, user_id: UUID, track_id: UUID) -> tuple[Track, list[TrackItem]]:
        """A track with its items in order."""
        track = queries.get_track(self._session, track_id, user_id=user_id)
        return track, queries.get_track_items(self._session, track.id)

    def update_track(self, user_id: UUID, track_id: UUID, changes: TrackUpdate) -> Track:
        track = queries.get_track(self._session, track_id, user_id=user_id, for_update=True)
        for field_name, value in changes.model_dump(exclude_none=True).items():
            setattr(track, field_name, value)
        self._session.flush()
        return track

    def deactivate_track(self, user_id: UUID, track_id: UUID) -> Track:
        return self.update_track(user_id, track_id, TrackUpdate(is_active=False))

    def delete_track(self, user_id: UUID, track_id: UUID) -> None:
        """
        Hard-delete a track that no mission references.

        Raises:
            ConflictError: missions reference the track; deactivate it instead
        """
        track = queries.get_track(self._session, track_id, user_id=user_id)
        if queries.track_has_mission_tasks(self._session, track.id):
            raise ConflictError(
                f"Track {track_id} is referenced by missions; deactivate it instead"
            )
        self._session.delete(track)
        self._session.flush()
        logger.info(f"Deleted track {track_id}")

    def add_items(
        self,
        user_id: UUID,
        track_id: UUID,
        items: Sequence[TrackItemInput | dict[str, Any]],
    ) -> list[TrackItem]:
        """
        Append a batch of items after the track's last order index.

        Raises:
            InvalidInputError: the batch is not a non-empty list of valid items
        """
        if not isinstance(items, (list, tuple)) or not items:
            raise InvalidInputError("Items array is required")
        try:
            parsed = [
                i if isinstance(i, TrackItemInput) else TrackItemInput.model_validate(i)
                for i in items
            ]
        except ValidationError as e:
            raise InvalidInputError(f"Invalid track item: {e.errors()[0]['msg']}") from e

        track = queries.get_track(self._session, track_id, user_id=user_id, for_update=True)
        next_index = queries.get_max_order_index(self._session, track.id) + 1

        created = []
        for offset, data in enumerate(parsed):
            item = TrackItem(
                track_id=track.id,
                order_index=next_index + offset,
                **data.model_dump(),
            )
            self._session.add(item)
            created.append(item)

        track.total_items += len(created)
        self._session.flush()
        logger.info(f"Added {len(created)} items to track {track.id} (total {track.total_items})")
        return created
