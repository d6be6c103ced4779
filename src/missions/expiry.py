"""Mark missions whose deadline passed unmet as FAILED."""
from __future__ import annotations

from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from src.db import queries
from src.db.models import MissionStatus


def expire_overdue_missions(session: Session, now: datetime) -> int:
    """
    Fail every PENDING/IN_PROGRESS mission with a deadline before `now`.

    Returns:
        Number of missions marked FAILED
    """
    overdue = queries.get_overdue_missions(session, now)
    for mission in overdue:
        mission.status = MissionStatus.FAILED
    session.flush()

    if overdue:
        logger.info(f"Marked {len(overdue)} overdue missions as FAILED")
    return len(overdue)
