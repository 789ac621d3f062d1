"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.
"""

import os
from datetime import datetime, timedelta
from typing import Dict, Generator

import pytest

# Test secrets, the cheapest bcrypt cost and no Redis for the whole session.
# Must be set before roadmap_tracker.config is imported.
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("REDIS_URL", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from roadmap_tracker.database import Database  # noqa: E402
from roadmap_tracker.main import create_app  # noqa: E402
from roadmap_tracker.models import User  # noqa: E402
from roadmap_tracker.security import hash_password  # noqa: E402
from roadmap_tracker.utils.cache import CacheService  # noqa: E402
from roadmap_tracker.utils.rate_limiter import RateLimiter  # noqa: E402


# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Settable clock passed to stores in place of utcnow"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 3, 12, 0, 0))


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fresh in-memory SQLite database per test"""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database: Database) -> Generator[Session, None, None]:
    session = database.session()
    yield session
    session.close()


def make_user(db: Session, username: str, **overrides) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password("secret123"),
        display_name=username.title(),
        **overrides,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db_session: Session) -> User:
    return make_user(db_session, "alice")


# ============================================================================
# API
# ============================================================================


@pytest.fixture
def client(database: Database) -> Generator[TestClient, None, None]:
    """TestClient over an app wired to the in-memory database"""
    app = create_app(
        database=database,
        cache=CacheService(None),
        rate_limiter=RateLimiter(requests_per_minute=10_000, requests_per_hour=100_000),
    )
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, username: str = "alice", password: str = "secret123") -> Dict[str, str]:
    """Register an account and return its Authorization header"""
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def auth_headers(client: TestClient) -> Dict[str, str]:
    return register(client)
