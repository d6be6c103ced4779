"""
Centralized Queries for the Application.

Every cross-entity read used by the mission engine lives here as an explicit
function returning ORM records or plain values. Services never navigate
relationships implicitly; each read is a call with its own failure mode.

Usage:
    from src.db import queries

    tracks = queries.get_active_tracks(session, user_id)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import distinct, exists, func, select
from sqlalchemy.orm import Session

from src.core.exceptions import NotFoundError
from src.db.models import (
    DailyMission,
    MissionStatus,
    MissionTask,
    Streak,
    Track,
    TrackItem,
    User,
    UserSettings,
    XPTransaction,
)

# =============================================================================
# USERS
# =============================================================================


def get_user(session: Session, user_id: UUID) -> User:
    """Load a user or raise NotFoundError."""
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def find_user_by_external_id(session: Session, external_id: str) -> User | None:
    return session.scalars(select(User).where(User.external_id == external_id)).first()


def get_auto_assign_users(session: Session) -> list[User]:
    """Users the daily batch should assemble for (no settings row counts as enabled)."""
    stmt = (
        select(User)
        .outerjoin(UserSettings, UserSettings.user_id == User.id)
        .where(
            (UserSettings.id.is_(None)) | (UserSettings.auto_assign_missions.is_(True))
        )
        .order_by(User.created_at, User.id)
    )
    return list(session.scalars(stmt))


# =============================================================================
# TRACKS
# =============================================================================


def get_track(
    session: Session, track_id: UUID, user_id: UUID | None = None, for_update: bool = False
) -> Track:
    """
    Load a track, optionally scoped to its owner.

    A track owned by someone else is reported as missing.
    """
    track = session.get(Track, track_id, with_for_update=for_update)
    if track is None or (user_id is not None and track.user_id != user_id):
        raise NotFoundError("Track", track_id)
    return track


def get_user_tracks(session: Session, user_id: UUID) -> list[Track]:
    stmt = select(Track).where(Track.user_id == user_id).order_by(Track.created_at, Track.id)
    return list(session.scalars(stmt))


def get_active_tracks(session: Session, user_id: UUID) -> list[Track]:
    """Active tracks in rotation priority order (ties broken by age)."""
    stmt = (
        select(Track)
        .where(Track.user_id == user_id, Track.is_active.is_(True))
        .order_by(Track.rotation_priority.asc(), Track.created_at, Track.id)
    )
    return list(session.scalars(stmt))


def get_track_items(session: Session, track_id: UUID) -> list[TrackItem]:
    stmt = select(TrackItem).where(TrackItem.track_id == track_id).order_by(TrackItem.order_index)
    return list(session.scalars(stmt))


def get_items_for_tracks(
    session: Session, track_ids: Iterable[UUID]
) -> dict[UUID, list[TrackItem]]:
    """track_id -> items ordered by order_index."""
    track_ids = list(track_ids)
    result: dict[UUID, list[TrackItem]] = {tid: [] for tid in track_ids}
    if not track_ids:
        return result

    stmt = (
        select(TrackItem)
        .where(TrackItem.track_id.in_(track_ids))
        .order_by(TrackItem.track_id, TrackItem.order_index)
    )
    for item in session.scalars(stmt):
        result[item.track_id].append(item)
    return result


def get_max_order_index(session: Session, track_id: UUID) -> int:
    """Highest order index in a track, -1 when empty."""
    value = session.scalar(
        select(func.max(TrackItem.order_index)).where(TrackItem.track_id == track_id)
    )
    return -1 if value is None else value


def track_has_mission_tasks(session: Session, track_id: UUID) -> bool:
    return bool(session.scalar(select(exists().where(MissionTask.track_id == track_id))))


def get_track_engagement(
    session: Session, user_id: UUID, since: date, until: date
) -> dict[UUID, int]:
    """
    Count, per track, the missions in [since, until) that had a task from it.

    Returns:
        track_id -> number of missions (tracks with no appearances are absent)
    """
    stmt = (
        select(MissionTask.track_id, func.count(distinct(DailyMission.id)))
        .join(DailyMission, MissionTask.mission_id == DailyMission.id)
        .where(
            DailyMission.user_id == user_id,
            DailyMission.mission_date >= since,
            DailyMission.mission_date < until,
            MissionTask.track_id.is_not(None),
        )
        .group_by(MissionTask.track_id)
    )
    return {track_id: count for track_id, count in session.execute(stmt)}


# =============================================================================
# MISSIONS
# =============================================================================


def find_mission(session: Session, user_id: UUID, mission_date: date) -> DailyMission | None:
    stmt = select(DailyMission).where(
        DailyMission.user_id == user_id, DailyMission.mission_date == mission_date
    )
    return session.scalars(stmt).first()


def get_mission(session: Session, mission_id: UUID, for_update: bool = False) -> DailyMission:
    stmt = select(DailyMission).where(DailyMission.id == mission_id)
    if for_update:
        stmt = stmt.with_for_update()
    mission = session.scalars(stmt).first()
    if mission is None:
        raise NotFoundError("Mission", mission_id)
    return mission


def get_mission_tasks(session: Session, mission_id: UUID) -> list[MissionTask]:
    stmt = select(MissionTask).where(MissionTask.mission_id == mission_id).order_by(MissionTask.id)
    return list(session.scalars(stmt))


def get_task(session: Session, task_id: UUID, for_update: bool = False) -> MissionTask:
    """Load a mission task, locking the row when asked."""
    stmt = select(MissionTask).where(MissionTask.id == task_id)
    if for_update:
        stmt = stmt.with_for_update()
    task = session.scalars(stmt).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def get_overdue_missions(session: Session, now) -> list[DailyMission]:
    stmt = select(DailyMission).where(
        DailyMission.status.in_([MissionStatus.PENDING, MissionStatus.IN_PROGRESS]),
        DailyMission.deadline < now,
    )
    return list(session.scalars(stmt))


# =============================================================================
# STREAKS & XP
# =============================================================================


def get_streak_for_update(
    session: Session, user_id: UUID, track_id: UUID | None
) -> Streak | None:
    """Lock and return the user's streak for a track (None = global)."""
    stmt = select(Streak).where(Streak.user_id == user_id)
    if track_id is None:
        stmt = stmt.where(Streak.track_id.is_(None))
    else:
        stmt = stmt.where(Streak.track_id == track_id)
    return session.scalars(stmt.with_for_update()).first()


def get_user_streaks(session: Session, user_id: UUID) -> list[Streak]:
    stmt = (
        select(Streak)
        .where(Streak.user_id == user_id)
        .order_by(Streak.track_id.is_not(None), Streak.current_streak.desc())
    )
    return list(session.scalars(stmt))


def get_global_streaks_active_between(
    session: Session, since: date, until: date
) -> list[tuple[Streak, str]]:
    """Live global streaks last active in [since, until], with the owner's timezone."""
    stmt = (
        select(Streak, User.timezone)
        .join(User, Streak.user_id == User.id)
        .where(
            Streak.track_id.is_(None),
            Streak.last_activity_date >= since,
            Streak.last_activity_date <= until,
            Streak.current_streak > 0,
        )
        .order_by(Streak.user_id)
    )
    return [(streak, tz_name) for streak, tz_name in session.execute(stmt)]


def get_total_xp(session: Session, user_id: UUID) -> int:
    total = session.scalar(
        select(func.coalesce(func.sum(XPTransaction.amount), 0)).where(
            XPTransaction.user_id == user_id
        )
    )
    return int(total or 0)


def get_xp_history(session: Session, user_id: UUID, limit: int = 20) -> list[XPTransaction]:
    stmt = (
        select(XPTransaction)
        .where(XPTransaction.user_id == user_id)
        .order_by(XPTransaction.created_at.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt))

