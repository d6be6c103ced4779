"""
Track models.

A Track is an ordered list of TrackItems. Progress is the aggregate
completed_items counter; individual items carry no completion state.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import Category, Difficulty, DifficultyLevel


class Track(Base):
    """User-defined learning path."""

    __tablename__ = "tracks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Category] = mapped_column(Enum(Category, name="category"), nullable=False)
    difficulty_level: Mapped[DifficultyLevel] = mapped_column(
        Enum(DifficultyLevel, name="difficulty_level"), default=DifficultyLevel.INTERMEDIATE
    )

    # Progress counters
    total_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Rotation
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rotation_priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Metadata
    estimated_days: Mapped[int | None] = mapped_column(Integer)
    source_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    # Relationships
    items: Mapped[list[TrackItem]] = relationship(
        back_populates="track",
        order_by="TrackItem.order_index",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("total_items >= 0", name="total_items_non_negative"),
        CheckConstraint(
            "completed_items >= 0 AND completed_items <= total_items",
            name="completed_within_total",
        ),
        CheckConstraint("rotation_priority BETWEEN 1 AND 10", name="rotation_priority_range"),
        Index("idx_tracks_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Track {self.name!r} {self.completed_items}/{self.total_items}>"

    @property
    def completion_rate(self) -> float:
        """Fraction of items completed (0 for an empty track)."""
        if self.total_items <= 0:
            return 0.0
        return self.completed_items / self.total_items


class TrackItem(Base):
    """One unit of work within a track."""

    __tablename__ = "track_items"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    track_id: Mapped[UUID] = mapped_column(
        ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, name="difficulty"), default=Difficulty.MEDIUM, nullable=False
    )
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    resource_links: Mapped[list[dict]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(default=func.now())

    track: Mapped[Track] = relationship(back_populates="items")

    __table_args__ = (
        UniqueConstraint("track_id", "order_index", name="uq_track_item_order"),
        CheckConstraint("estimated_minutes >= 1", name="estimated_minutes_positive"),
    )

    def __repr__(self) -> str:
        return f"<TrackItem #{self.order_index} {self.title!r} {self.difficulty.value}>"
