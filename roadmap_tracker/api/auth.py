"""
Authentication and account API endpoints
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from roadmap_tracker.api.deps import get_current_user
from roadmap_tracker.database import get_db
from roadmap_tracker.models import User
from roadmap_tracker.schemas.common import Envelope, MessageResponse
from roadmap_tracker.schemas.user import (
    AccountDelete, AuthResponse, LoginRequest, PasswordChange,
    ProfileUpdate, RegisterRequest, UserRead, user_read
)
from roadmap_tracker.security import create_access_token
from roadmap_tracker.services.session_store import SessionStore, parse_user_agent
from roadmap_tracker.services.user_service import ProfileChanges, UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _start_session(db: Session, user: User, request: Request) -> None:
    device = parse_user_agent(
        request.headers.get("user-agent"),
        request.client.host if request.client else None,
    )
    SessionStore(db).create_session(user.id, device)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """
    Register a new account

    - Rejects duplicate email or username (400)
    - Opens the first learning session
    - Returns a bearer token
    """
    users = UserService(db)
    user = users.register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
    )
    _start_session(db, user, request)
    db.refresh(user)

    return AuthResponse(token=create_access_token(user.id), user=user_read(user))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Check credentials, open a new session and return a bearer token"""
    user = UserService(db).authenticate(payload.email, payload.password)
    _start_session(db, user, request)
    db.refresh(user)

    logger.info(f"User logged in: id={user.id}")
    return AuthResponse(token=create_access_token(user.id), user=user_read(user))


@router.post("/logout", response_model=MessageResponse)
def logout(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """End the caller's active session"""
    sessions = SessionStore(db)
    active = sessions.get_active_session(user.id)
    if active is not None:
        sessions.end_session(active.id, user_id=user.id)

    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=Envelope[UserRead])
def get_me(user: User = Depends(get_current_user)):
    return Envelope(data=user_read(user))


@router.put("/profile", response_model=Envelope[UserRead])
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = ProfileChanges(
        display_name=payload.display_name,
        avatar=payload.avatar,
        bio=payload.bio,
        location=payload.location,
        website=payload.website,
        github=payload.github,
        linkedin=payload.linkedin,
        dark_mode=payload.dark_mode,
        email_notifications=payload.email_notifications,
        public_profile=payload.public_profile,
    )
    updated = UserService(db).update_profile(user, changes)
    return Envelope(message="Profile updated successfully", data=user_read(updated))


@router.put("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UserService(db).change_password(user, payload.current_password, payload.new_password)
    return MessageResponse(message="Password updated successfully")


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    payload: AccountDelete,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete the account together with its progress and sessions"""
    UserService(db).delete_account(user, payload.password)
    return MessageResponse(message="Account deleted successfully")
