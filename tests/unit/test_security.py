"""
Unit tests for settings, password hashing, JWT handling and the disabled cache.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from pydantic import ValidationError as PydanticValidationError

from roadmap_tracker.config import Settings, settings
from roadmap_tracker.errors import AuthError
from roadmap_tracker.security import (
    create_access_token, decode_access_token, hash_password, verify_password
)
from roadmap_tracker.utils.cache import CacheService


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("secret123")
        assert hashed.startswith("$2b$04$")
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_salts_differ(self):
        assert hash_password("secret123") != hash_password("secret123")

    def test_malformed_hash(self):
        assert not verify_password("secret123", "plaintext")


class TestSettings:
    def test_jwt_secret_is_required(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET")
        with pytest.raises(PydanticValidationError, match="JWT_SECRET"):
            Settings(_env_file=None)


class TestTokens:
    def test_round_trip(self):
        assert decode_access_token(create_access_token(42)) == 42

    def test_expired(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "1", "iat": past, "exp": past + timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(AuthError, match="Token expired."):
            decode_access_token(token)

    def test_wrong_key(self):
        token = jwt.encode({"sub": "1"}, "another-secret-key-of-some-length", algorithm="HS256")
        with pytest.raises(AuthError, match="Invalid token."):
            decode_access_token(token)


def test_cache_without_redis_is_a_noop():
    cache = CacheService(None)

    assert cache.enabled is False
    assert cache.set(cache.leaderboard_key("completion", 10), [{"rank": 1}], ttl=60) is False
    assert cache.get("leaderboard:completion:10") is None
    assert cache.clear_leaderboards() is False
