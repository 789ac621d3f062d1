"""
Password hashing and JWT issuance
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from roadmap_tracker.config import settings
from roadmap_tracker.errors import AuthError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash; unrecognized hashes never match"""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        logger.warning("Stored password hash has an unknown format")
        return False


def create_access_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Validate a bearer token and return the user id it was issued for

    Raises:
        AuthError: token expired, malformed or signed with another key
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired.")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token.")

    try:
        return int(payload["sub"])
    except (KeyError, ValueError):
        raise AuthError("Invalid token.")
