"""
User directory API endpoints: leaderboard, search, sessions and public profiles
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from roadmap_tracker.api.deps import get_current_user, get_optional_user
from roadmap_tracker.config import settings
from roadmap_tracker.database import get_db
from roadmap_tracker.enums import LeaderboardType
from roadmap_tracker.errors import NotFoundError
from roadmap_tracker.models import User
from roadmap_tracker.schemas.analytics import DeviceUsage, HeatmapDay
from roadmap_tracker.schemas.common import Envelope, PaginatedEnvelope, Pagination
from roadmap_tracker.schemas.session import SessionRead
from roadmap_tracker.schemas.user import (
    LeaderboardResponse, PublicProfile, PublicUser,
    preferences_of, public_user
)
from roadmap_tracker.services import aggregation
from roadmap_tracker.services.analytics_service import AnalyticsService
from roadmap_tracker.services.session_store import SessionStore
from roadmap_tracker.services.user_service import UserService
from roadmap_tracker.utils.cache import CacheService, get_cache

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    type: str = Query(LeaderboardType.COMPLETION.value),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """
    Public leaderboard

    - completion: items completed
    - streak: current streak days
    - time: minutes logged on progress records
    """
    board = type if type in {t.value for t in LeaderboardType} else LeaderboardType.COMPLETION.value
    cache_key = cache.leaderboard_key(board, limit)
    cached = cache.get(cache_key)
    if cached is not None:
        return LeaderboardResponse(data=cached, type=board)

    entries = aggregation.rank_leaderboard(
        UserService(db).leaderboard_candidates(), board, limit
    )
    cache.set(cache_key, entries, settings.LEADERBOARD_CACHE_TTL)
    return LeaderboardResponse(data=entries, type=board)


@router.get("/search", response_model=PaginatedEnvelope[PublicUser])
def search_users(
    q: str = Query(..., min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    users, total, pages = UserService(db).search(q.strip(), page=page, limit=limit)
    return PaginatedEnvelope(
        data=[public_user(u) for u in users],
        pagination=Pagination(page=page, limit=limit, total=total, pages=pages),
    )


@router.get("/me/sessions", response_model=PaginatedEnvelope[SessionRead])
def get_my_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's sessions, newest first"""
    result = SessionStore(db).get_user_sessions(user.id, page=page, limit=limit)
    return PaginatedEnvelope(
        data=[SessionRead.model_validate(s) for s in result.items],
        pagination=Pagination(
            page=result.page, limit=result.limit, total=result.total, pages=result.pages
        ),
    )


@router.post("/me/sessions/end", response_model=Envelope[SessionRead])
def end_my_session(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Close the caller's active session; 404 when none is open"""
    sessions = SessionStore(db)
    active = sessions.get_active_session(user.id)
    if active is None:
        raise NotFoundError("No active session found")

    ended = sessions.end_session(active.id, user_id=user.id)
    return Envelope(message="Session ended successfully", data=SessionRead.model_validate(ended))


@router.get("/me/activity", response_model=Envelope[List[HeatmapDay]])
def get_my_activity(
    days: int = Query(365, ge=1, le=3650),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-day session counts for the activity heatmap"""
    return Envelope(data=SessionStore(db).get_activity_heatmap(user.id, days))


@router.get("/me/analytics/devices", response_model=Envelope[List[DeviceUsage]])
def get_my_devices(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return Envelope(data=SessionStore(db).get_device_analytics(user.id))


@router.get("/{username}", response_model=Envelope[PublicProfile])
def get_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Public profile by username

    - Private or deactivated profiles are hidden (404) from everyone but the owner
    - Email, preferences and last login are only included for the owner
    """
    user = UserService(db).find_by_username(username)
    is_own_profile = viewer is not None and viewer.id == (user.id if user else None)

    if user is None or (not user.public_profile and not is_own_profile):
        raise NotFoundError("User not found")

    profile = PublicProfile(
        user=public_user(user),
        progress=AnalyticsService(db).get_overview(user.id),
        is_own_profile=is_own_profile,
    )
    if is_own_profile:
        profile.email = user.email
        profile.preferences = preferences_of(user)
        profile.last_login = user.last_login
    return Envelope(data=profile)
