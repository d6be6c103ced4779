"""
Daily mission models.

One DailyMission per user per calendar date, enforced by a unique
constraint rather than an application-level check.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import Difficulty, MissionStatus, TaskStatus, TaskType


class DailyMission(Base):
    """The set of tasks assigned to a user for one date."""

    __tablename__ = "daily_missions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    mission_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[MissionStatus] = mapped_column(
        Enum(MissionStatus, name="mission_status"), default=MissionStatus.PENDING, nullable=False
    )

    # Assignment metadata
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Cognitive load tracking
    total_estimated_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    actual_minutes_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    tasks: Mapped[list[MissionTask]] = relationship(
        back_populates="mission", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "mission_date", name="uq_daily_mission_user_date"),
        Index("idx_daily_missions_status_deadline", "status", "deadline"),
    )

    def __repr__(self) -> str:
        return f"<DailyMission {self.mission_date} user={self.user_id} {self.status.value}>"


class MissionTask(Base):
    """One assigned unit of work inside a mission."""

    __tablename__ = "mission_tasks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    mission_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_missions.id", ondelete="CASCADE"), nullable=False
    )
    track_id: Mapped[UUID | None] = mapped_column(ForeignKey("tracks.id", ondelete="SET NULL"))
    track_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("track_items.id", ondelete="SET NULL")
    )

    task_type: Mapped[TaskType] = mapped_column(
        Enum(TaskType, name="task_type"), default=TaskType.TRACK_ITEM, nullable=False
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status"), default=TaskStatus.PENDING, nullable=False
    )
    # Copied from the item at assembly time; None for non-track tasks
    difficulty: Mapped[Difficulty | None] = mapped_column(Enum(Difficulty, name="difficulty"))

    # Time tracking
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    actual_minutes: Mapped[int | None] = mapped_column(Integer, default=0)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Effort tracking (1-5)
    difficulty_rating: Mapped[int | None] = mapped_column(Integer)
    effort_rating: Mapped[int | None] = mapped_column(Integer)

    mission: Mapped[DailyMission] = relationship(back_populates="tasks")

    __table_args__ = (
        CheckConstraint(
            "difficulty_rating IS NULL OR difficulty_rating BETWEEN 1 AND 5",
            name="difficulty_rating_range",
        ),
        CheckConstraint(
            "effort_rating IS NULL OR effort_rating BETWEEN 1 AND 5",
            name="effort_rating_range",
        ),
        Index("idx_mission_tasks_mission", "mission_id"),
        Index("idx_mission_tasks_track", "track_id"),
    )

    def __repr__(self) -> str:
        return f"<MissionTask {self.id} {self.task_type.value} {self.status.value}>"
