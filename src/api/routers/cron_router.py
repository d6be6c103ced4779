"""
Scheduled trigger endpoints.

Protected by a bearer secret (CRON_SECRET). The batch commits per user, so
these endpoints do not use the request-scoped session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, status

from config import get_settings
from src.api.dependencies import get_clock
from src.core.clock import Clock
from src.db.database import session_scope
from src.missions.batch import run_daily_assembly
from src.missions.expiry import expire_overdue_missions

router = APIRouter()


def verify_cron_secret(authorization: str | None = Header(None)) -> None:
    secret = get_settings().cron_secret
    if not secret or authorization != f"Bearer {secret}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/daily-missions", dependencies=[Depends(verify_cron_secret)])
def daily_missions(clock: Clock = Depends(get_clock)) -> dict:
    """Assemble today's mission for every auto-assign user."""
    stats = run_daily_assembly(clock=clock)
    return {"success": True, **stats.to_dict()}


@router.post("/expire-missions", dependencies=[Depends(verify_cron_secret)])
def expire_missions(clock: Clock = Depends(get_clock)) -> dict:
    """Fail missions whose deadline passed unmet."""
    with session_scope() as session:
        failed = expire_overdue_missions(session, clock.now())
    return {"success": True, "failed": failed}
