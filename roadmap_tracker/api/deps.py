"""
Shared FastAPI dependencies: authentication and service construction
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from roadmap_tracker.database import get_db
from roadmap_tracker.errors import AuthError, ForbiddenError
from roadmap_tracker.models import User
from roadmap_tracker.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the Bearer token to an active user or raise AuthError"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Access denied. No token provided.")

    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)

    if user is None:
        raise AuthError("Token is valid but user not found.")
    if not user.is_active:
        raise AuthError("Account has been deactivated.")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user but anonymous callers get None instead of 401"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return get_current_user(credentials, db)
    except AuthError:
        return None


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Access denied. Admin privileges required.")
    return user
