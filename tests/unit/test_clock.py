"""Unit tests for timezone-aware dates and deadlines."""
from datetime import date, datetime, timezone

from src.core.clock import FixedClock, end_of_day_utc, resolve_timezone


class TestClock:
    def test_today_follows_timezone(self):
        clock = FixedClock(datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc))

        assert clock.today("UTC") == date(2024, 3, 1)
        assert clock.today("Asia/Kolkata") == date(2024, 3, 2)
        assert clock.today("America/Los_Angeles") == date(2024, 3, 1)

    def test_naive_instant_is_utc(self):
        clock = FixedClock(datetime(2024, 3, 1, 12, 0))
        assert clock.now().tzinfo is timezone.utc

    def test_advance(self):
        clock = FixedClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))

        clock.advance(days=2)

        assert clock.today() == date(2024, 3, 3)


class TestEndOfDay:
    def test_utc(self):
        assert end_of_day_utc(date(2024, 3, 1)) == datetime(
            2024, 3, 1, 23, 59, 59, 999000, tzinfo=timezone.utc
        )

    def test_local_timezone_converted_to_utc(self):
        deadline = end_of_day_utc(date(2024, 3, 2), "Asia/Kolkata")
        assert deadline == datetime(2024, 3, 2, 18, 29, 59, 999000, tzinfo=timezone.utc)

    def test_unknown_timezone_falls_back(self):
        assert resolve_timezone("Mars/Olympus").key == "UTC"
