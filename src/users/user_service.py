"""
User registration.

Identity is handled by an external provider; registering maps its id to a
local User and seeds the rows the mission engine expects (settings and the
global streak).
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy.orm import Session

from config import get_settings
from src.core.clock import resolve_timezone
from src.core.exceptions import InvalidInputError
from src.db import queries
from src.db.models import Streak, User, UserSettings


def register_user(
    session: Session,
    external_id: str,
    email: str,
    username: str | None = None,
    timezone: str | None = None,
    cognitive_load_max: int | None = None,
) -> tuple[User, bool]:
    """
    Create a user, or return the existing one for the same external id.

    Returns:
        (user, created)
    """
    if not external_id or not email:
        raise InvalidInputError("external_id and email are required")
    if cognitive_load_max is not None and cognitive_load_max < 1:
        raise InvalidInputError("cognitive_load_max must be at least 1")

    existing = queries.find_user_by_external_id(session, external_id)
    if existing is not None:
        return existing, False

    settings = get_settings()
    tz_name = timezone or settings.default_timezone
    # Normalize unknown names to the default rather than storing them
    tz_name = resolve_timezone(tz_name, settings.default_timezone).key

    user = User(
        external_id=external_id,
        email=email,
        username=username or "User",
        timezone=tz_name,
        cognitive_load_max=cognitive_load_max or settings.default_max_tasks,
    )
    session.add(user)
    session.flush()

    session.add(UserSettings(user_id=user.id))
    session.add(
        Streak(
            user_id=user.id,
            track_id=None,
            current_streak=0,
            longest_streak=0,
            freeze_count=0,
            freeze_used=0,
        )
    )
    session.flush()
    logger.info(f"Registered user {user.id} ({external_id})")
    return user, True
