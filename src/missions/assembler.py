"""
Mission Assembler.

Builds and persists a user's DailyMission:
    user preferences -> TrackSelector -> ItemPicker -> CognitiveLoadBalancer -> insert

At most one mission exists per (user, date). The existence check is only a
fast path; the unique constraint on daily_missions is what holds under
concurrent triggers, and a losing insert is reported as the same conflict.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from src.core.clock import Clock, end_of_day_utc
from src.core.exceptions import MissionAlreadyExistsError
from src.db import queries
from src.db.models import DailyMission, MissionStatus, MissionTask, TaskStatus, TaskType, User
from src.missions.item_picker import ItemPicker
from src.missions.load_balancer import CognitiveLoadBalancer, LoadBudget
from src.missions.track_selector import SelectorConfig, TrackSelector

DUPLICATE_MISSION_CONSTRAINT = "uq_daily_mission_user_date"


@dataclass
class AssemblyResult:
    """A freshly persisted mission."""
    mission: DailyMission
    tasks: list[MissionTask]

    @property
    def tasks_created(self) -> int:
        return len(self.tasks)

    @property
    def total_estimated_minutes(self) -> int:
        return self.mission.total_estimated_minutes


class MissionAssembler:
    """
    Assemble one day's mission for one user.

    The caller owns the transaction: on any exception the session must be
    rolled back (session_scope does this).
    """

    def __init__(
        self,
        session: Session,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self._session = session
        self._clock = clock or Clock()
        self._settings = settings or get_settings()
        self._selector = TrackSelector(
            SelectorConfig(
                tracks_per_day=self._settings.tracks_per_mission,
                window_days=self._settings.engagement_window_days,
            )
        )
        self._picker = ItemPicker()
        self._balancer = CognitiveLoadBalancer()

    def budget_for(self, user: User) -> LoadBudget:
        """Resolve the user's cognitive load limits."""
        return LoadBudget(
            max_minutes=self._settings.mission_minute_budget,
            max_tasks=user.cognitive_load_max or self._settings.default_max_tasks,
        )

    def today_for(self, user: User) -> date:
        return self._clock.today(user.timezone or self._settings.default_timezone)

    def assemble(self, user_id: UUID, mission_date: date | None = None) -> AssemblyResult | None:
        """
        Generate and persist the mission for a user and date.

        Args:
            user_id: User to assemble for
            mission_date: Target date (default: today in the user's timezone)

        Returns:
            AssemblyResult, or None when there is nothing to assign

        Raises:
            NotFoundError: user does not exist
            MissionAlreadyExistsError: a mission exists for the date
        """
        session = self._session
        user = queries.get_user(session, user_id)
        mission_date = mission_date or self.today_for(user)

        if queries.find_mission(session, user.id, mission_date) is not None:
            raise MissionAlreadyExistsError(user.id, mission_date)

        budget = self.budget_for(user)

        # 1. Track rotation
        active_tracks = queries.get_active_tracks(session, user.id)
        if not active_tracks:
            logger.info(f"No active tracks for user {user.id}, nothing to assign")
            return None

        window_start = mission_date - timedelta(days=self._selector.config.window_days)
        engagement = queries.get_track_engagement(session, user.id, window_start, mission_date)
        selected = self._selector.select(active_tracks, engagement)

        # 2. Next item per track
        items_by_track = queries.get_items_for_tracks(session, [t.id for t in selected])
        candidates = self._picker.pick(selected, items_by_track, budget.max_tasks)
        if not candidates:
            logger.info(f"No items available for user {user.id} on {mission_date}")
            return None

        # 3. Cognitive load
        load = self._balancer.balance(candidates, budget)
        if not load.items:
            logger.info(f"No candidate fits the budget for user {user.id} on {mission_date}")
            return None

        # 4. Persist
        mission = DailyMission(
            user_id=user.id,
            mission_date=mission_date,
            status=MissionStatus.PENDING,
            assigned_at=self._clock.now(),
            deadline=end_of_day_utc(mission_date, user.timezone or self._settings.default_timezone),
            total_estimated_minutes=load.total_minutes,
            actual_minutes_spent=0,
        )
        tasks = [
            MissionTask(
                track_id=candidate.track_id,
                track_item_id=candidate.item_id,
                task_type=TaskType.TRACK_ITEM,
                status=TaskStatus.PENDING,
                difficulty=candidate.difficulty,
                estimated_minutes=candidate.estimated_minutes,
            )
            for candidate in load.items
        ]
        mission.tasks = tasks

        session.add(mission)
        try:
            session.flush()
        except IntegrityError as e:
            if not _is_duplicate_mission(e):
                raise
            # Lost the race against a concurrent assembly for the same day
            logger.warning(f"Concurrent mission insert for user {user.id} on {mission_date}: {e.orig}")
            raise MissionAlreadyExistsError(user.id, mission_date) from e

        logger.info(
            f"Assembled mission {mission.id} for user {user.id} on {mission_date}: "
            f"{len(tasks)} tasks, {mission.total_estimated_minutes} min"
        )
        return AssemblyResult(mission=mission, tasks=tasks)


def _is_duplicate_mission(error: IntegrityError) -> bool:
    """True when the violation is the one-mission-per-user-and-date constraint."""
    message = str(error.orig)
    # Postgres names the constraint, SQLite lists its columns
    return DUPLICATE_MISSION_CONSTRAINT in message or (
        "daily_missions.user_id" in message and "daily_missions.mission_date" in message
    )


def get_today_mission(
    session: Session, user_id: UUID, clock: Optional[Clock] = None
) -> tuple[DailyMission, list[MissionTask]] | None:
    """The user's mission for their local today, with tasks, if one exists."""
    clock = clock or Clock()
    user = queries.get_user(session, user_id)
    mission = queries.find_mission(
        session, user.id, clock.today(user.timezone or get_settings().default_timezone)
    )
    if mission is None:
        return None
    return mission, queries.get_mission_tasks(session, mission.id)
