"""
Daily Assembly Batch.

Fans mission assembly out over every auto-assign user. Each user runs in its
own transaction; one user's failure is logged and counted, never propagated.
"""
from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import AbstractContextManager
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.orm import Session

from config import get_settings
from src.core.clock import Clock
from src.core.exceptions import MissionAlreadyExistsError
from src.db import queries
from src.db.database import session_scope
from src.missions.assembler import MissionAssembler


class AssemblyOutcome(str, Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    ERROR = "error"


class BatchStats:
    """Statistics for a batch assembly run."""

    def __init__(self, run_date: date | None = None) -> None:
        self.run_date = run_date
        self.total_users = 0
        self.generated = 0
        self.skipped = 0
        self.errors = 0
        self.start_time = datetime.now()
        self.end_time: datetime | None = None

    def record(self, outcome: AssemblyOutcome) -> None:
        if outcome is AssemblyOutcome.GENERATED:
            self.generated += 1
        elif outcome is AssemblyOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def complete(self) -> None:
        self.end_time = datetime.now()

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, int | float | str | None]:
        return {
            "date": self.run_date.isoformat() if self.run_date else None,
            "total_users": self.total_users,
            "generated": self.generated,
            "skipped": self.skipped,
            "errors": self.errors,
            "duration_seconds": round(self.duration_seconds, 2),
        }


def assemble_for_user(
    user_id: UUID,
    clock: Clock,
    scope: Callable[[], AbstractContextManager[Session]] = session_scope,
) -> AssemblyOutcome:
    """Assemble today's mission for one user in its own transaction."""
    try:
        with scope() as session:
            result = MissionAssembler(session, clock=clock).assemble(user_id)
    except MissionAlreadyExistsError:
        return AssemblyOutcome.SKIPPED
    return AssemblyOutcome.GENERATED if result is not None else AssemblyOutcome.SKIPPED


def run_daily_assembly(
    clock: Optional[Clock] = None,
    max_workers: int | None = None,
    scope: Callable[[], AbstractContextManager[Session]] = session_scope,
) -> BatchStats:
    """
    Assemble today's mission for every auto-assign user.

    Args:
        clock: Source of "today" (each user's own timezone applies)
        max_workers: Thread pool size (default from settings)
        scope: Transaction factory, one scope per user

    Returns:
        BatchStats with generated / skipped / error counts
    """
    clock = clock or Clock()
    max_workers = max_workers or get_settings().batch_max_workers
    stats = BatchStats(run_date=clock.today(get_settings().default_timezone))

    with scope() as session:
        user_ids = [user.id for user in queries.get_auto_assign_users(session)]
    stats.total_users = len(user_ids)
    logger.info(f"Daily assembly started for {len(user_ids)} users ({max_workers} workers)")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_user = {
            executor.submit(assemble_for_user, user_id, clock, scope): user_id
            for user_id in user_ids
        }

        for future in as_completed(future_to_user):
            user_id = future_to_user[future]
            try:
                outcome = future.result()
            except Exception as e:  # Intentionally broad - one user must not abort the batch
                logger.error(f"Mission assembly failed for user {user_id}: {e}")
                outcome = AssemblyOutcome.ERROR
            stats.record(outcome)

    stats.complete()
    logger.info(
        f"Daily assembly finished: {stats.generated} generated, {stats.skipped} skipped, "
        f"{stats.errors} errors in {stats.duration_seconds:.1f}s"
    )
    return stats
