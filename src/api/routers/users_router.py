"""
Users API Router.

Registration and gamification stats. Authentication is handled upstream;
the user id is taken from the path.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from src.db.database import get_db
from src.gamification.stats import get_stats
from src.users.user_service import register_user

router = APIRouter()


class UserRegisterRequest(BaseModel):
    """Request model for registering a user."""

    external_id: str = Field(..., min_length=1, description="Identity provider user id")
    email: str = Field(..., min_length=3)
    username: str | None = None
    timezone: str | None = Field(None, description="IANA timezone, e.g. Asia/Kolkata")
    cognitive_load_max: int | None = Field(None, ge=1, le=20, description="Max tasks per day")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    external_id: str
    email: str
    username: str | None
    timezone: str
    cognitive_load_max: int | None


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


@router.post("", response_model=RegisterResponse)
def register(request: UserRegisterRequest, response: Response, db: Session = Depends(get_db)):
    """Register a user (idempotent on external_id)."""
    user, created = register_user(db, **request.model_dump())
    if created:
        response.status_code = status.HTTP_201_CREATED
        return RegisterResponse(
            message="User created successfully", user=UserResponse.model_validate(user)
        )
    return RegisterResponse(message="User already exists", user=UserResponse.model_validate(user))


@router.get("/{user_id}/stats")
def user_stats(user_id: UUID, db: Session = Depends(get_db)) -> dict:
    """Total XP, level progress and streaks."""
    return {"stats": get_stats(db, user_id).to_dict()}
