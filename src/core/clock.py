"""
Clock abstraction for "today".

Assembly and settlement never read the wall clock directly; they receive a
Clock so that dates can be pinned in tests and batch runs.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

END_OF_DAY = time(23, 59, 59, 999000)


def resolve_timezone(name: str | None, default: str = "UTC") -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to the default on unknown names."""
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using {default}")
        return ZoneInfo(default)


class Clock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self, tz_name: str | None = None) -> date:
        """Calendar date in the given timezone."""
        return self.now().astimezone(resolve_timezone(tz_name)).date()


class FixedClock(Clock):
    """Clock pinned to a single instant."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, days: int = 0, **kwargs) -> None:
        self._instant = self._instant + timedelta(days=days, **kwargs)


def end_of_day_utc(day: date, tz_name: str | None = None) -> datetime:
    """Last millisecond of `day` in the given timezone, expressed in UTC."""
    local = datetime.combine(day, END_OF_DAY, tzinfo=resolve_timezone(tz_name))
    return local.astimezone(timezone.utc)
