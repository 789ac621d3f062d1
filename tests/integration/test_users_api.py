"""
Integration tests for the /api/users endpoints and app-level behaviour.
"""

from datetime import timedelta

from fastapi.testclient import TestClient

from roadmap_tracker.database import Database
from roadmap_tracker.main import create_app
from roadmap_tracker.models import LearningSession
from roadmap_tracker.utils.cache import CacheService
from roadmap_tracker.utils.clock import utcnow
from roadmap_tracker.utils.rate_limiter import RateLimiter
from tests.conftest import make_user, register


def _complete(client, headers, item_id):
    client.post(
        "/api/progress",
        headers=headers,
        json={"itemId": item_id, "phaseId": "phase1", "sectionId": "month1", "status": "completed"},
    )


class TestLeaderboard:
    def test_ranks_by_items_completed(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        for item in ("a", "b"):
            _complete(client, bob, item)
        _complete(client, alice, "a")

        body = client.get("/api/users/leaderboard?type=completion").json()

        assert body["type"] == "completion"
        assert [(e["username"], e["rank"], e["score"]) for e in body["data"]] == [
            ("bob", 1, 2),
            ("alice", 2, 1),
        ]

    def test_private_profiles_are_hidden(self, client):
        alice = register(client, "alice")
        _complete(client, alice, "a")
        client.put("/api/auth/profile", headers=alice, json={"publicProfile": False})

        assert client.get("/api/users/leaderboard").json()["data"] == []

    def test_time_board_ranks_logged_progress_minutes(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        client.post(
            "/api/progress",
            headers=alice,
            json={"itemId": "a", "phaseId": "phase1", "sectionId": "month1", "status": "in-progress", "timeSpent": 45},
        )
        client.post(
            "/api/progress",
            headers=bob,
            json={"itemId": "a", "phaseId": "phase1", "sectionId": "month1", "status": "in-progress", "timeSpent": 15},
        )

        body = client.get("/api/users/leaderboard?type=time").json()

        assert [(e["username"], e["score"]) for e in body["data"]] == [("alice", 45), ("bob", 15)]

    def test_unknown_type_falls_back_to_completion(self, client):
        register(client, "alice")
        body = client.get("/api/users/leaderboard?type=karma").json()
        assert body["type"] == "completion"

    def test_limit_bounds(self, client):
        assert client.get("/api/users/leaderboard?limit=0").status_code == 400
        assert client.get("/api/users/leaderboard?limit=101").status_code == 400


class TestSearchAndProfiles:
    def test_search(self, client):
        register(client, "alice")
        register(client, "bob")

        body = client.get("/api/users/search?q=ali").json()

        assert [u["username"] for u in body["data"]] == ["alice"]
        assert body["pagination"]["total"] == 1
        assert "email" not in body["data"][0]

    def test_public_profile_hides_private_fields(self, client):
        alice = register(client, "alice")
        _complete(client, alice, "a")

        data = client.get("/api/users/alice").json()["data"]

        assert data["isOwnProfile"] is False
        assert data["email"] is None
        assert data["preferences"] is None
        assert data["progress"]["completedItems"] == 1

    def test_own_profile_includes_private_fields(self, client, auth_headers):
        data = client.get("/api/users/alice", headers=auth_headers).json()["data"]

        assert data["isOwnProfile"] is True
        assert data["email"] == "alice@example.com"
        assert data["preferences"]["publicProfile"] is True

    def test_private_profile_is_404_for_others(self, client, auth_headers):
        client.put("/api/auth/profile", headers=auth_headers, json={"publicProfile": False})

        assert client.get("/api/users/alice").status_code == 404
        assert client.get("/api/users/alice", headers=auth_headers).status_code == 200

    def test_unknown_user(self, client):
        assert client.get("/api/users/nobody").status_code == 404


class TestMySessions:
    def test_login_closes_previous_session(self, client, auth_headers):
        client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})

        body = client.get("/api/users/me/sessions", headers=auth_headers).json()

        assert body["pagination"]["total"] == 2
        assert [s["isActive"] for s in body["data"]] == [True, False]

    def test_end_session(self, client, auth_headers):
        response = client.post("/api/users/me/sessions/end", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False
        assert client.post("/api/users/me/sessions/end", headers=auth_headers).status_code == 404

    def test_activity_and_devices(self, client):
        response = client.post(
            "/api/auth/register",
            headers={"User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile Safari"},
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )
        headers = {"Authorization": f"Bearer {response.json()['token']}"}

        activity = client.get("/api/users/me/activity?days=7", headers=headers).json()["data"]
        devices = client.get("/api/users/me/analytics/devices", headers=headers).json()["data"]

        assert activity[0]["activityCount"] == 1
        assert devices == [{"deviceType": "mobile", "count": 1, "totalTime": 0}]


class TestApplication:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["cache"] == "disabled"

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_rate_limit(self, database):
        app = create_app(
            database=database,
            cache=CacheService(None),
            rate_limiter=RateLimiter(requests_per_minute=2, requests_per_hour=100),
        )
        with TestClient(app) as limited:
            assert limited.get("/").status_code == 200
            assert limited.get("/").status_code == 200
            response = limited.get("/")
            # Health checks are never throttled
            assert limited.get("/health").status_code == 200

        assert response.status_code == 429
        assert response.json()["success"] is False

    def test_startup_creates_tables(self):
        database = Database("sqlite://")
        app = create_app(
            database=database,
            cache=CacheService(None),
            rate_limiter=RateLimiter(requests_per_minute=100, requests_per_hour=1000),
        )
        with TestClient(app) as fresh:
            headers = register(fresh, "alice")
            assert fresh.get("/api/auth/me", headers=headers).status_code == 200
        database.dispose()

    def test_startup_purges_expired_sessions(self, database, db_session):
        owner = make_user(db_session, "alice")
        now = utcnow()
        db_session.add_all([
            LearningSession(
                user_id=owner.id, start_time=now - timedelta(days=90),
                end_time=now - timedelta(days=90), is_active=False,
            ),
            LearningSession(
                user_id=owner.id, start_time=now - timedelta(days=1),
                end_time=now - timedelta(days=1), is_active=False,
            ),
        ])
        db_session.commit()

        app = create_app(database=database, cache=CacheService(None))
        with TestClient(app):
            db_session.expire_all()
            remaining = db_session.query(LearningSession).all()
            assert [s.start_time.date() for s in remaining] == [(now - timedelta(days=1)).date()]
