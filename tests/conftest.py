"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Tests run against an in-memory SQLite database unless TEST_DATABASE_URL
points somewhere else; the variable must be set before config is imported.
"""
import os
import sys
from datetime import datetime, timezone
from itertools import count
from pathlib import Path

import pytest

os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ["LOG_FILE"] = ""
os.environ["CRON_SECRET"] = "test-cron-secret"

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def db_session():
    """Fresh schema and a session per test."""
    from src.db.database import SessionLocal, drop_db, init_db

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        drop_db()


@pytest.fixture
def clock():
    """Clock pinned to midday UTC on 2024-03-01."""
    from src.core.clock import FixedClock

    return FixedClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_user(db_session):
    """Factory registering users with a global streak and default settings."""
    from src.users.user_service import register_user

    sequence = count(1)

    def _make(timezone_name="UTC", cognitive_load_max=5, auto_assign=True):
        n = next(sequence)
        user, _ = register_user(
            db_session,
            external_id=f"ext-user-{n}",
            email=f"learner{n}@example.com",
            username=f"learner{n}",
            timezone=timezone_name,
            cognitive_load_max=cognitive_load_max,
        )
        user.settings.auto_assign_missions = auto_assign
        db_session.flush()
        return user

    return _make


@pytest.fixture
def make_track(db_session):
    """
    Factory creating a track with items.

    items: list of (difficulty, estimated_minutes) tuples
    """
    from src.db.models import Category
    from src.tracks.track_service import TrackService

    service = TrackService(db_session)

    def _make(user, name="Track", items=(), rotation_priority=1, completed_items=0, is_active=True):
        track = service.create_track(
            user.id, name=name, category=Category.DSA, rotation_priority=rotation_priority
        )
        if items:
            service.add_items(
                user.id,
                track.id,
                [
                    {"title": f"{name} item {i}", "difficulty": d, "estimated_minutes": m}
                    for i, (d, m) in enumerate(items)
                ],
            )
        track.completed_items = completed_items
        track.is_active = is_active
        db_session.flush()
        return track

    return _make
