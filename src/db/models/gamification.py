"""
Streak and XP ledger models.

XP is never stored as a running total: the ledger is append-only and totals
are computed by summation.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import XPSource


class Streak(Base):
    """
    Consecutive-day activity counter.

    track_id NULL marks the user's global streak; otherwise the streak is
    scoped to one track.
    """

    __tablename__ = "streaks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    track_id: Mapped[UUID | None] = mapped_column(ForeignKey("tracks.id", ondelete="CASCADE"))

    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[date | None] = mapped_column(Date)

    # Streak protection
    freeze_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    freeze_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "track_id", name="uq_streak_user_track"),
        # NULLs are distinct in unique constraints, so the global row needs its own index
        Index(
            "uq_streak_user_global",
            "user_id",
            unique=True,
            postgresql_where=text("track_id IS NULL"),
            sqlite_where=text("track_id IS NULL"),
        ),
        CheckConstraint("longest_streak >= current_streak", name="longest_covers_current"),
        CheckConstraint("freeze_count >= 0 AND freeze_used >= 0", name="freezes_non_negative"),
    )

    def __repr__(self) -> str:
        scope = self.track_id or "global"
        return f"<Streak {scope} current={self.current_streak} longest={self.longest_streak}>"

    @property
    def is_global(self) -> bool:
        return self.track_id is None


class XPTransaction(Base):
    """Immutable XP ledger entry."""

    __tablename__ = "xp_transactions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[XPSource] = mapped_column(Enum(XPSource, name="xp_source"), nullable=False)
    source_id: Mapped[UUID | None] = mapped_column(Uuid)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=func.now())

    __table_args__ = (Index("idx_xp_transactions_user", "user_id"),)

    def __repr__(self) -> str:
        return f"<XPTransaction {self.amount:+d} {self.source.value}>"
