"""
Tracks API Router.

Track CRUD and item batches for one user.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from src.db.database import get_db
from src.db.models import Category, Difficulty, DifficultyLevel
from src.tracks.track_service import TrackService, TrackUpdate

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class TrackCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    category: Category
    difficulty_level: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    rotation_priority: int = Field(1, ge=1, le=10)
    estimated_days: int | None = Field(None, ge=1)
    source_url: str | None = None


class AddItemsRequest(BaseModel):
    # Validated by the service so that empty batches get a domain error
    items: Any = Field(..., description="List of items to append")


class TrackItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    difficulty: Difficulty
    estimated_minutes: int
    order_index: int
    tags: list[str] | None
    resource_links: list[dict] | None


class TrackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: Category
    difficulty_level: DifficultyLevel | None
    total_items: int
    completed_items: int
    is_active: bool
    rotation_priority: int
    estimated_days: int | None
    source_url: str | None
    created_at: datetime | None


class TrackDetailResponse(BaseModel):
    track: TrackResponse
    items: list[TrackItemResponse]


# ========================================
# Endpoints
# ========================================


@router.get("/{user_id}/tracks")
def list_tracks(user_id: UUID, db: Session = Depends(get_db)) -> dict:
    tracks = TrackService(db).list_tracks(user_id)
    return {"tracks": [TrackResponse.model_validate(t) for t in tracks]}


@router.post("/{user_id}/tracks", status_code=status.HTTP_201_CREATED)
def create_track(user_id: UUID, request: TrackCreateRequest, db: Session = Depends(get_db)) -> dict:
    track = TrackService(db).create_track(user_id, **request.model_dump())
    return {"track": TrackResponse.model_validate(track)}


@router.get("/{user_id}/tracks/{track_id}", response_model=TrackDetailResponse)
def get_track(user_id: UUID, track_id: UUID, db: Session = Depends(get_db)):
    track, items = TrackService(db).get_track(user_id, track_id)
    return TrackDetailResponse(
        track=TrackResponse.model_validate(track),
        items=[TrackItemResponse.model_validate(i) for i in items],
    )


@router.patch("/{user_id}/tracks/{track_id}")
def update_track(
    user_id: UUID, track_id: UUID, changes: TrackUpdate, db: Session = Depends(get_db)
) -> dict:
    track = TrackService(db).update_track(user_id, track_id, changes)
    return {"track": TrackResponse.model_validate(track)}


@router.delete("/{user_id}/tracks/{track_id}")
def delete_track(user_id: UUID, track_id: UUID, db: Session = Depends(get_db)) -> dict:
    """Delete an unreferenced track (409 when missions reference it)."""
    TrackService(db).delete_track(user_id, track_id)
    return {"success": True}


@router.post("/{user_id}/tracks/{track_id}/items", status_code=status.HTTP_201_CREATED)
def add_items(
    user_id: UUID, track_id: UUID, request: AddItemsRequest, db: Session = Depends(get_db)
) -> dict:
    items = TrackService(db).add_items(user_id, track_id, request.items)
    return {"items": [TrackItemResponse.model_validate(i) for i in items]}
