"""
Completion Settlement.

Runs once per task completion, in a single transaction:
1. Mark the task COMPLETED with its actuals
2. Award XP (one ledger entry)
3. Advance the track's completed_items counter
4. Advance the track streak, then the global streak
5. Roll the mission status up from its tasks

The task row and each streak row are read FOR UPDATE, so concurrent
completions for the same user serialize instead of losing updates.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.orm import Session

from config import Settings, get_settings
from src.core.clock import Clock
from src.core.exceptions import ConflictError, InvalidInputError, TaskAlreadyCompletedError
from src.db import queries
from src.db.models import (
    MissionStatus,
    MissionTask,
    Streak,
    TaskStatus,
    XPSource,
    XPTransaction,
)
from src.gamification.streaks import StreakOutcome, StreakService
from src.gamification.xp import calculate_task_xp

RATING_RANGE = range(1, 6)


@dataclass
class SettlementResult:
    """Outcome of settling one completed task."""
    task: MissionTask
    xp_awarded: int
    track_streak: Streak | None = None
    global_streak: Streak | None = None
    track_streak_outcome: StreakOutcome | None = None
    global_streak_outcome: StreakOutcome | None = None


def _validate_rating(name: str, value: int | None) -> int | None:
    if value is None:
        return None
    if value not in RATING_RANGE:
        raise InvalidInputError(f"{name} must be between 1 and 5, got {value}")
    return value


class SettlementEngine:
    """Task lifecycle transitions and completion settlement."""

    def __init__(
        self,
        session: Session,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self._session = session
        self._clock = clock or Clock()
        self._settings = settings or get_settings()
        self._streaks = StreakService(session, freezes_enabled=self._settings.streak_freezes_enabled)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_task(self, task_id: UUID) -> MissionTask:
        """PENDING -> IN_PROGRESS."""
        task = queries.get_task(self._session, task_id, for_update=True)
        if task.status is not TaskStatus.PENDING:
            raise ConflictError(f"Task {task_id} cannot be started from {task.status.value}")

        task.status = TaskStatus.IN_PROGRESS
        task.started_at = self._clock.now()

        mission = queries.get_mission(self._session, task.mission_id, for_update=True)
        if mission.status is MissionStatus.PENDING:
            mission.status = MissionStatus.IN_PROGRESS
        self._session.flush()
        return task

    def skip_task(self, task_id: UUID) -> MissionTask:
        """PENDING / IN_PROGRESS -> SKIPPED (no XP, no streak activity)."""
        task = queries.get_task(self._session, task_id, for_update=True)
        if task.status is TaskStatus.COMPLETED:
            raise TaskAlreadyCompletedError(task_id)
        if task.status is TaskStatus.SKIPPED:
            raise ConflictError(f"Task {task_id} is already skipped")

        task.status = TaskStatus.SKIPPED
        self._roll_up_mission(task, minutes=0)
        self._session.flush()
        logger.info(f"Task {task_id} skipped")
        return task

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def complete_task(
        self,
        task_id: UUID,
        actual_minutes: int | None = None,
        difficulty_rating: int | None = None,
        effort_rating: int | None = None,
    ) -> SettlementResult:
        """
        Settle a task completion.

        Args:
            task_id: Task to complete
            actual_minutes: Minutes spent (None or 0 means "as estimated")
            difficulty_rating: Optional 1-5 self-rating
            effort_rating: Optional 1-5 self-rating

        Returns:
            SettlementResult with the updated task and the XP awarded

        Raises:
            NotFoundError: task (or its mission) does not exist
            TaskAlreadyCompletedError: task was already completed
            ConflictError: task was skipped
            InvalidInputError: negative minutes or ratings out of range
        """
        if actual_minutes is not None and actual_minutes < 0:
            raise InvalidInputError(f"actual_minutes must not be negative, got {actual_minutes}")
        difficulty_rating = _validate_rating("difficulty_rating", difficulty_rating)
        effort_rating = _validate_rating("effort_rating", effort_rating)

        session = self._session
        task = queries.get_task(session, task_id, for_update=True)
        if task.status is TaskStatus.COMPLETED:
            raise TaskAlreadyCompletedError(task_id)
        if task.status is TaskStatus.SKIPPED:
            raise ConflictError(f"Task {task_id} was skipped and cannot be completed")

        mission = queries.get_mission(session, task.mission_id, for_update=True)
        user = queries.get_user(session, mission.user_id)
        today = self._clock.today(user.timezone or self._settings.default_timezone)
        minutes = actual_minutes or task.estimated_minutes

        # 1. Task
        task.status = TaskStatus.COMPLETED
        task.completed_at = self._clock.now()
        task.actual_minutes = minutes
        task.difficulty_rating = difficulty_rating
        task.effort_rating = effort_rating

        # 2. XP
        xp = calculate_task_xp(task.difficulty, task.estimated_minutes, minutes)
        session.add(
            XPTransaction(
                user_id=user.id,
                amount=xp,
                source=XPSource.TASK_COMPLETION,
                source_id=task.id,
                description="Completed task from mission",
            )
        )

        result = SettlementResult(task=task, xp_awarded=xp)

        # 3-4. Track progress and track streak
        if task.track_id is not None:
            track = queries.get_track(session, task.track_id, for_update=True)
            if track.completed_items < track.total_items:
                track.completed_items += 1
            result.track_streak, result.track_streak_outcome = self._streaks.record_activity(
                user.id, track.id, today
            )

        # 5. Global streak
        result.global_streak, result.global_streak_outcome = self._streaks.record_activity(
            user.id, None, today
        )

        self._roll_up_mission(task, minutes=minutes)
        session.flush()

        logger.info(
            f"Settled task {task.id}: +{xp} XP, global streak "
            f"{result.global_streak.current_streak} ({result.global_streak_outcome.value})"
        )
        return result

    def _roll_up_mission(self, task: MissionTask, minutes: int) -> None:
        """Update the parent mission's minutes and status from its tasks."""
        mission = queries.get_mission(self._session, task.mission_id, for_update=True)
        mission.actual_minutes_spent = (mission.actual_minutes_spent or 0) + minutes

        # A mission past its deadline stays failed
        if mission.status in (MissionStatus.FAILED, MissionStatus.COMPLETED):
            return

        self._session.flush()
        tasks = queries.get_mission_tasks(self._session, mission.id)
        if all(t.status.is_terminal for t in tasks):
            mission.status = MissionStatus.COMPLETED
            mission.completed_at = self._clock.now()
        else:
            mission.status = MissionStatus.IN_PROGRESS
