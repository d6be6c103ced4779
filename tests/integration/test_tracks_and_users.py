"""Integration tests for user registration and track management."""
from uuid import uuid4

import pytest

from src.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from src.db import queries
from src.db.models import Category, Difficulty
from src.gamification.settlement import SettlementEngine
from src.missions.assembler import MissionAssembler
from src.tracks.track_service import TrackService, TrackUpdate
from src.users.user_service import register_user


class TestRegisterUser:
    def test_creates_settings_and_global_streak(self, db_session):
        user, created = register_user(db_session, external_id="ext-1", email="a@example.com")

        assert created
        assert user.timezone == "UTC"
        assert user.cognitive_load_max == 5
        assert user.settings.auto_assign_missions is True
        streaks = queries.get_user_streaks(db_session, user.id)
        assert len(streaks) == 1
        assert streaks[0].is_global
        assert streaks[0].current_streak == 0

    def test_idempotent_on_external_id(self, db_session):
        first, _ = register_user(db_session, external_id="ext-1", email="a@example.com")
        second, created = register_user(db_session, external_id="ext-1", email="b@example.com")

        assert not created
        assert second.id == first.id

    def test_unknown_timezone_normalized(self, db_session):
        user, _ = register_user(
            db_session, external_id="ext-1", email="a@example.com", timezone="Nowhere/City"
        )
        assert user.timezone == "UTC"

    def test_missing_email(self, db_session):
        with pytest.raises(InvalidInputError):
            register_user(db_session, external_id="ext-1", email="")


class TestTrackService:
    """Track CRUD and item batches."""

    def test_create_track(self, db_session, make_user):
        user = make_user()

        track = TrackService(db_session).create_track(user.id, "Graphs", "DSA", rotation_priority=4)

        assert track.category is Category.DSA
        assert (track.total_items, track.completed_items) == (0, 0)
        assert track.is_active

    def test_create_track_validation(self, db_session, make_user):
        user = make_user()
        service = TrackService(db_session)

        with pytest.raises(InvalidInputError):
            service.create_track(user.id, "", "DSA")
        with pytest.raises(InvalidInputError):
            service.create_track(user.id, "Graphs", "COOKING")
        with pytest.raises(InvalidInputError):
            service.create_track(user.id, "Graphs", "DSA", rotation_priority=11)

    def test_add_items_appends_after_last_index(self, db_session, make_user, make_track):
        user = make_user()
        track = make_track(user, "Graphs", items=[(Difficulty.EASY, 10), (Difficulty.EASY, 10)])

        added = TrackService(db_session).add_items(
            user.id, track.id, [{"title": "BFS", "difficulty": "HARD", "estimated_minutes": 45}]
        )

        assert [i.order_index for i in added] == [2]
        assert added[0].difficulty is Difficulty.HARD
        assert track.total_items == 3

    @pytest.mark.parametrize("items", [[], "not a list", None])
    def test_add_items_requires_a_list(self, db_session, make_user, make_track, items):
        user = make_user()
        track = make_track(user)

        with pytest.raises(InvalidInputError):
            TrackService(db_session).add_items(user.id, track.id, items)

    def test_add_items_rejects_invalid_item(self, db_session, make_user, make_track):
        user = make_user()
        track = make_track(user)

        with pytest.raises(InvalidInputError):
            TrackService(db_session).add_items(
                user.id, track.id, [{"title": "x", "estimated_minutes": 0}]
            )

    def test_foreign_track_is_not_found(self, db_session, make_user, make_track):
        owner, other = make_user(), make_user()
        track = make_track(owner)

        with pytest.raises(NotFoundError):
            TrackService(db_session).get_track(other.id, track.id)

    def test_update_and_deactivate(self, db_session, make_user, make_track):
        user = make_user()
        track = make_track(user)
        service = TrackService(db_session)

        service.update_track(user.id, track.id, TrackUpdate(name="Renamed", rotation_priority=7))
        service.deactivate_track(user.id, track.id)

        assert track.name == "Renamed"
        assert track.rotation_priority == 7
        assert queries.get_active_tracks(db_session, user.id) == []

    def test_delete_unreferenced_track(self, db_session, make_user, make_track):
        user = make_user()
        track = make_track(user, items=[(Difficulty.EASY, 10)])

        TrackService(db_session).delete_track(user.id, track.id)

        with pytest.raises(NotFoundError):
            queries.get_track(db_session, track.id)

    def test_delete_referenced_track_conflicts(self, db_session, clock, make_user, make_track):
        user = make_user()
        track = make_track(user, items=[(Difficulty.EASY, 10)])
        MissionAssembler(db_session, clock=clock).assemble(user.id)

        with pytest.raises(ConflictError):
            TrackService(db_session).delete_track(user.id, track.id)

    def test_completed_items_never_exceed_total(self, db_session, clock, make_user, make_track):
        user = make_user()
        track = make_track(user, items=[(Difficulty.EASY, 10)], completed_items=1)
        result = MissionAssembler(db_session, clock=clock).assemble(user.id)

        SettlementEngine(db_session, clock=clock).complete_task(result.tasks[0].id)

        assert track.completed_items == 1

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            TrackService(db_session).list_tracks(uuid4())
