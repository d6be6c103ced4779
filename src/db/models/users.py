"""
User models.

Identity lives in an external provider; a User row carries the provider key
plus the preferences the mission engine reads (timezone, cognitive load).
"""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class User(Base):
    """A learner with mission preferences."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    external_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str | None] = mapped_column(Text)
    timezone: Mapped[str] = mapped_column(Text, default="UTC", nullable=False)

    # Preferences
    daily_mission_time: Mapped[time | None] = mapped_column(Time, default=time(6, 0))
    cognitive_load_max: Mapped[int | None] = mapped_column(Integer, default=5)

    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    # Relationships
    settings: Mapped[UserSettings | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("cognitive_load_max IS NULL OR cognitive_load_max >= 1", name="load_max_positive"),
    )

    def __repr__(self) -> str:
        return f"<User {self.external_id} tz={self.timezone}>"


class UserSettings(Base):
    """Per-user toggles for assignment and display."""

    __tablename__ = "user_settings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    auto_assign_missions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    enable_nudges: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_xp: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_streaks: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    user: Mapped[User] = relationship(back_populates="settings")
