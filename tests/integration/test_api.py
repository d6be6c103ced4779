"""
Integration tests for the REST API.

Requests run against the test session and a pinned clock through FastAPI
dependency overrides.
"""
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_clock
from src.api.main import _STATUS_BY_ERROR, app
from src.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from src.db.database import get_db

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}


@pytest.fixture
def client(db_session, clock):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def user_id(client):
    response = client.post(
        "/api/users",
        json={"external_id": "ext-api", "email": "api@example.com", "timezone": "UTC"},
    )
    assert response.status_code == 201
    return response.json()["user"]["id"]


@pytest.fixture
def track_id(client, user_id):
    response = client.post(
        f"/api/users/{user_id}/tracks",
        json={"name": "Graphs", "category": "DSA", "rotation_priority": 2},
    )
    assert response.status_code == 201
    track_id = response.json()["track"]["id"]

    response = client.post(
        f"/api/users/{user_id}/tracks/{track_id}/items",
        json={
            "items": [
                {"title": "BFS", "difficulty": "MEDIUM", "estimated_minutes": 30},
                {"title": "Dijkstra", "difficulty": "HARD", "estimated_minutes": 60},
            ]
        },
    )
    assert response.status_code == 201
    return track_id


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json()["service"] == "masteryflow"

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["components"]["database"] == "ok"


class TestUsersAndTracks:
    def test_register_is_idempotent(self, client, user_id):
        response = client.post(
            "/api/users", json={"external_id": "ext-api", "email": "api@example.com"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user_id

    def test_track_detail(self, client, user_id, track_id):
        body = client.get(f"/api/users/{user_id}/tracks/{track_id}").json()

        assert body["track"]["total_items"] == 2
        assert [i["order_index"] for i in body["items"]] == [0, 1]

    def test_list_tracks(self, client, user_id, track_id):
        body = client.get(f"/api/users/{user_id}/tracks").json()
        assert [t["id"] for t in body["tracks"]] == [track_id]

    def test_empty_item_batch(self, client, user_id, track_id):
        response = client.post(
            f"/api/users/{user_id}/tracks/{track_id}/items", json={"items": []}
        )

        assert response.status_code == 422
        assert "Items array is required" in response.json()["error"]

    def test_patch_track(self, client, user_id, track_id):
        response = client.patch(
            f"/api/users/{user_id}/tracks/{track_id}", json={"is_active": False}
        )
        assert response.json()["track"]["is_active"] is False

    def test_unknown_track(self, client, user_id):
        response = client.get(f"/api/users/{user_id}/tracks/{uuid4()}")
        assert response.status_code == 404


class TestMissionFlow:
    """Generate, fetch, complete."""

    def test_generate_then_conflict(self, client, user_id, track_id):
        response = client.post(f"/api/users/{user_id}/missions/generate")

        assert response.status_code == 201
        mission = response.json()["mission"]
        assert mission["mission_date"] == "2024-03-01"
        assert mission["total_estimated_minutes"] == 30
        assert len(mission["tasks"]) == 1

        again = client.post(f"/api/users/{user_id}/missions/generate")
        assert again.status_code == 409

    def test_generate_for_explicit_date(self, client, user_id, track_id):
        response = client.post(
            f"/api/users/{user_id}/missions/generate", json={"mission_date": "2024-05-01"}
        )
        assert response.json()["mission"]["mission_date"] == "2024-05-01"

    def test_nothing_to_assign(self, client, user_id):
        response = client.post(f"/api/users/{user_id}/missions/generate")

        assert response.status_code == 200
        assert response.json()["mission"] is None

    def test_unknown_user(self, client):
        response = client.post(f"/api/users/{uuid4()}/missions/generate")
        assert response.status_code == 404

    def test_today_and_complete(self, client, user_id, track_id):
        assert client.get(f"/api/users/{user_id}/missions/today").json()["mission"] is None
        client.post(f"/api/users/{user_id}/missions/generate")

        mission = client.get(f"/api/users/{user_id}/missions/today").json()["mission"]
        task_id = mission["tasks"][0]["id"]

        started = client.post(f"/api/tasks/{task_id}/start")
        assert started.json()["task"]["status"] == "IN_PROGRESS"

        completed = client.post(f"/api/tasks/{task_id}/complete", json={"actual_minutes": 20})
        assert completed.status_code == 200
        assert completed.json()["xp_awarded"] == 120
        assert completed.json()["global_streak"] == 1

        again = client.post(f"/api/tasks/{task_id}/complete")
        assert again.status_code == 409

        fetched = client.get(f"/api/missions/{mission['id']}").json()["mission"]
        assert fetched["status"] == "COMPLETED"

        stats = client.get(f"/api/users/{user_id}/stats").json()["stats"]
        assert stats["total_xp"] == 120
        assert stats["level"] == 1

    def test_rating_out_of_range(self, client, user_id, track_id):
        client.post(f"/api/users/{user_id}/missions/generate")
        mission = client.get(f"/api/users/{user_id}/missions/today").json()["mission"]

        response = client.post(
            f"/api/tasks/{mission['tasks'][0]['id']}/complete", json={"difficulty_rating": 9}
        )
        assert response.status_code == 422

    def test_delete_referenced_track(self, client, user_id, track_id):
        client.post(f"/api/users/{user_id}/missions/generate")

        response = client.delete(f"/api/users/{user_id}/tracks/{track_id}")
        assert response.status_code == 409


class TestCron:
    def test_requires_secret(self, client):
        assert client.post("/api/cron/daily-missions").status_code == 401
        response = client.post(
            "/api/cron/daily-missions", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 401

    def test_runs_batch(self, client):
        response = client.post("/api/cron/daily-missions", headers=CRON_HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["date"] == "2024-03-01"
        assert body["total_users"] == 0

    def test_expire(self, client):
        response = client.post("/api/cron/expire-missions", headers=CRON_HEADERS)
        assert response.json() == {"success": True, "failed": 0}


class TestErrorMapping:
    @pytest.mark.parametrize(
        "error_type, code",
        [(NotFoundError, 404), (ConflictError, 409), (InvalidInputError, 422)],
    )
    def test_status_codes(self, error_type, code):
        assert dict(_STATUS_BY_ERROR)[error_type] == code
