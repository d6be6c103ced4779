"""
Integration tests for mission assembly against a real schema.

Covers the full selector -> picker -> balancer -> persist pipeline, the
one-mission-per-day guarantee and the "nothing to assign" outcome.
"""
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from config import get_settings
from src.core.exceptions import MissionAlreadyExistsError, NotFoundError
from src.db import queries
from src.db.models import DailyMission, Difficulty, MissionStatus, TaskStatus, TaskType
from src.missions import assembler as assembler_module
from src.missions.assembler import MissionAssembler, get_today_mission

E, M, H = Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD


@pytest.fixture
def learner(make_user, make_track):
    """A user with three tracks: HARD 60, MEDIUM 30 and EASY 20 up next."""
    user = make_user()
    make_track(user, "Graphs", items=[(H, 60), (H, 90)], rotation_priority=3)
    make_track(user, "Caching", items=[(M, 30), (M, 45)], rotation_priority=2)
    make_track(user, "Warmups", items=[(E, 20)], rotation_priority=1)
    return user


class TestAssemble:
    """End-to-end assembly."""

    def test_assembles_balanced_mission(self, db_session, clock, learner):
        result = MissionAssembler(db_session, clock=clock).assemble(learner.id)

        assert result is not None
        assert result.tasks_created == 3
        assert result.total_estimated_minutes == 110
        assert [t.difficulty for t in result.tasks] == [H, M, E]

        mission = result.mission
        assert mission.mission_date == date(2024, 3, 1)
        assert mission.status is MissionStatus.PENDING
        assert mission.deadline == datetime(2024, 3, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)
        for task in result.tasks:
            assert task.task_type is TaskType.TRACK_ITEM
            assert task.status is TaskStatus.PENDING
            assert task.track_item_id is not None

    def test_tasks_copy_item_estimates(self, db_session, clock, learner):
        result = MissionAssembler(db_session, clock=clock).assemble(learner.id)

        for task in result.tasks:
            item = next(
                i
                for i in queries.get_track_items(db_session, task.track_id)
                if i.id == task.track_item_id
            )
            assert task.estimated_minutes == item.estimated_minutes
            assert task.difficulty == item.difficulty

    def test_resumes_from_track_progress(self, db_session, clock, make_user, make_track):
        user = make_user()
        make_track(user, "Graphs", items=[(H, 60), (H, 90)], completed_items=1)

        result = MissionAssembler(db_session, clock=clock).assemble(user.id)

        assert [t.estimated_minutes for t in result.tasks] == [90]

    def test_explicit_date(self, db_session, clock, learner):
        result = MissionAssembler(db_session, clock=clock).assemble(learner.id, date(2024, 4, 1))
        assert result.mission.mission_date == date(2024, 4, 1)

    def test_date_and_deadline_follow_user_timezone(self, db_session, make_user, make_track):
        from src.core.clock import FixedClock

        user = make_user(timezone_name="Asia/Kolkata")
        make_track(user, "Warmups", items=[(E, 20)])
        clock = FixedClock(datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc))

        result = MissionAssembler(db_session, clock=clock).assemble(user.id)

        assert result.mission.mission_date == date(2024, 3, 2)
        assert result.mission.deadline == datetime(
            2024, 3, 2, 18, 29, 59, 999000, tzinfo=timezone.utc
        )

    def test_task_cap_from_user_preference(self, db_session, clock, make_user, make_track):
        user = make_user(cognitive_load_max=2)
        for n in range(3):
            make_track(user, f"T{n}", items=[(E, 10)])

        result = MissionAssembler(db_session, clock=clock).assemble(user.id)

        assert result.tasks_created == 2

    def test_get_today_mission(self, db_session, clock, learner):
        assert get_today_mission(db_session, learner.id, clock=clock) is None

        created = MissionAssembler(db_session, clock=clock).assemble(learner.id)
        mission, tasks = get_today_mission(db_session, learner.id, clock=clock)

        assert mission.id == created.mission.id
        assert {t.id for t in tasks} == {t.id for t in created.tasks}


class TestNothingToAssign:
    """Empty results are not errors."""

    def test_no_tracks(self, db_session, clock, make_user):
        user = make_user()

        assert MissionAssembler(db_session, clock=clock).assemble(user.id) is None
        assert queries.find_mission(db_session, user.id, date(2024, 3, 1)) is None

    def test_tracks_without_items(self, db_session, clock, make_user, make_track):
        user = make_user()
        make_track(user, "Empty")

        assert MissionAssembler(db_session, clock=clock).assemble(user.id) is None

    def test_inactive_tracks_ignored(self, db_session, clock, make_user, make_track):
        user = make_user()
        make_track(user, "Paused", items=[(E, 20)], is_active=False)

        assert MissionAssembler(db_session, clock=clock).assemble(user.id) is None

    def test_nothing_fits_budget(self, db_session, clock, make_user, make_track):
        user = make_user()
        make_track(user, "Marathon", items=[(M, 300)])

        assert MissionAssembler(db_session, clock=clock).assemble(user.id) is None


class TestOneMissionPerDay:
    """At most one mission per user and date."""

    def test_second_assembly_conflicts(self, db_session, clock, learner):
        assembler = MissionAssembler(db_session, clock=clock)
        assembler.assemble(learner.id)

        with pytest.raises(MissionAlreadyExistsError):
            assembler.assemble(learner.id)

    def test_race_past_existence_check_is_reported_as_conflict(
        self, db_session, clock, learner, monkeypatch
    ):
        MissionAssembler(db_session, clock=clock).assemble(learner.id)
        db_session.commit()

        # Simulate a concurrent trigger that passed the check before the first insert
        monkeypatch.setattr(queries, "find_mission", lambda *args, **kwargs: None)

        with pytest.raises(MissionAlreadyExistsError):
            MissionAssembler(db_session, clock=clock).assemble(learner.id)
        db_session.rollback()

        count = db_session.scalar(
            select(func.count()).select_from(DailyMission).where(DailyMission.user_id == learner.id)
        )
        assert count == 1

    def test_other_integrity_errors_propagate(self, db_session, clock, learner, monkeypatch):
        # A NULL deadline violates NOT NULL, not the one-per-day constraint
        monkeypatch.setattr(assembler_module, "end_of_day_utc", lambda *args, **kwargs: None)

        with pytest.raises(IntegrityError) as excinfo:
            MissionAssembler(db_session, clock=clock).assemble(learner.id)

        assert "deadline" in str(excinfo.value.orig)

    def test_other_dates_unaffected(self, db_session, clock, learner):
        assembler = MissionAssembler(db_session, clock=clock)
        assembler.assemble(learner.id)

        clock.advance(days=1)

        assert assembler.assemble(learner.id) is not None


class TestRotation:
    """Engagement history feeds the next day's selection."""

    def test_recently_used_track_rotates_out(self, db_session, clock, make_user, make_track):
        user = make_user()
        make_track(user, "A", items=[(E, 10), (E, 10)])
        make_track(user, "B", items=[(E, 10), (E, 10)])
        settings = get_settings().model_copy(update={"tracks_per_mission": 1})

        day1 = MissionAssembler(db_session, clock=clock, settings=settings).assemble(user.id)
        clock.advance(days=1)
        day2 = MissionAssembler(db_session, clock=clock, settings=settings).assemble(user.id)

        assert day1.tasks[0].track_id != day2.tasks[0].track_id

    def test_engagement_window_counts_missions(self, db_session, clock, learner):
        result = MissionAssembler(db_session, clock=clock).assemble(learner.id)

        engagement = queries.get_track_engagement(
            db_session, learner.id, date(2024, 2, 23), date(2024, 3, 2)
        )

        assert engagement == {t.track_id: 1 for t in result.tasks}


class TestErrors:
    def test_unknown_user(self, db_session, clock):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            MissionAssembler(db_session, clock=clock).assemble(uuid4())


class TestEndToEndScenario:
    """Four small items across four tracks all fit the default budget."""

    def test_all_four_items_admitted(self, db_session, clock, make_user, make_track):
        user = make_user()
        for name, item in [("A", (E, 20)), ("B", (E, 20)), ("C", (M, 45)), ("D", (E, 25))]:
            make_track(user, name, items=[item], rotation_priority=5)
        settings = get_settings().model_copy(update={"tracks_per_mission": 4})

        result = MissionAssembler(db_session, clock=clock, settings=settings).assemble(user.id)

        assert result.tasks_created == 4
        assert result.total_estimated_minutes == 110
        assert result.tasks[0].difficulty == M
