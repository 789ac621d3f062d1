"""
Progress tracking API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from roadmap_tracker.api.deps import get_current_user
from roadmap_tracker.config import settings
from roadmap_tracker.database import get_db
from roadmap_tracker.enums import Period, ProgressStatus, activity_type_for_status
from roadmap_tracker.models import ProgressRecord, User
from roadmap_tracker.schemas.common import Envelope, MessageResponse, PaginatedEnvelope, Pagination
from roadmap_tracker.schemas.progress import (
    ProgressCreate, ProgressOverview, ProgressRead, ProgressStats,
    ProgressUpdate, RecentCompletion, SectionBreakdown
)
from roadmap_tracker.services.analytics_service import AnalyticsService
from roadmap_tracker.services.progress_store import ProgressChanges, ProgressFilters, ProgressStore
from roadmap_tracker.services.session_store import SessionStore
from roadmap_tracker.services.user_service import UserService
from roadmap_tracker.utils.cache import CacheService, get_cache

router = APIRouter(prefix="/api/progress", tags=["progress"])
logger = logging.getLogger(__name__)


def _after_write(db: Session, cache: CacheService, user: User, record: ProgressRecord, status) -> None:
    """Log the write on the active session and refresh leaderboard counters"""
    sessions = SessionStore(db)
    active = sessions.get_active_session(user.id)
    if active is not None:
        sessions.add_activity(
            active.id,
            record.item_id,
            record.phase_id,
            record.section_id,
            activity_type_for_status(getattr(status, "value", status)),
        )

    UserService(db).refresh_stats(user.id)
    cache.clear_leaderboards()


@router.get("/overview", response_model=Envelope[ProgressOverview])
def get_overview(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Overall progress for the caller

    Returns:
    - Item counts by status and completion percentage
    - Total time spent and average rating
    - Current and longest streak
    """
    return Envelope(data=AnalyticsService(db).get_overview(user.id))


@router.get("/phase/{phase_id}", response_model=Envelope[List[SectionBreakdown]])
def get_phase_progress(
    phase_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-section counts within one phase"""
    return Envelope(data=AnalyticsService(db).get_phase_progress(user.id, phase_id))


@router.get("/item/{item_id}", response_model=Envelope[ProgressRead])
def get_item_progress(
    item_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's record for one item; data is null when there is none"""
    record = ProgressStore(db).find_by_user_and_item(user.id, item_id)
    if record is None:
        return Envelope(data=None)
    return Envelope(data=ProgressRead.model_validate(record))


@router.get("/recent/completed", response_model=Envelope[List[RecentCompletion]])
def get_recently_completed(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records = ProgressStore(db).recently_completed(user.id, limit)
    return Envelope(data=[RecentCompletion.model_validate(r) for r in records])


@router.get("/stats", response_model=Envelope[ProgressStats])
def get_progress_stats(
    period: Period = Query(Period.ALL),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Progress statistics for records updated within the period"""
    return Envelope(data=AnalyticsService(db).get_progress_stats(user.id, period.value))


@router.get("", response_model=PaginatedEnvelope[ProgressRead])
def list_progress(
    phase_id: Optional[str] = Query(None, alias="phaseId"),
    section_id: Optional[str] = Query(None, alias="sectionId"),
    status: Optional[ProgressStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All of the caller's records, most recently updated first"""
    result = ProgressStore(db).find_by_user(
        user.id,
        ProgressFilters(phase_id=phase_id, section_id=section_id, status=status),
        page=page,
        limit=limit,
    )
    return PaginatedEnvelope(
        data=[ProgressRead.model_validate(r) for r in result.items],
        pagination=Pagination(
            page=result.page, limit=result.limit, total=result.total, pages=result.pages
        ),
    )


@router.post("", response_model=Envelope[ProgressRead], status_code=201)
def upsert_progress(
    payload: ProgressCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """
    Create or update progress for an item

    - First write creates the record
    - Later writes update only the provided fields and bump attempts
    - Logs an activity on the caller's active session
    """
    record = ProgressStore(db).upsert(
        user.id,
        payload.item_id,
        payload.phase_id,
        payload.section_id,
        ProgressChanges(
            status=payload.status,
            notes=payload.notes,
            difficulty=payload.difficulty,
            rating=payload.rating,
            tags=payload.tags,
            time_spent_delta=payload.time_spent,
        ),
    )
    _after_write(db, cache, user, record, payload.status)
    db.refresh(record)
    return Envelope(data=ProgressRead.model_validate(record))


@router.put("/{item_id}", response_model=Envelope[ProgressRead])
def update_progress(
    item_id: str,
    payload: ProgressUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Update an existing record; 404 when the caller has none for this item"""
    record = ProgressStore(db).update(
        user.id,
        item_id,
        ProgressChanges(
            status=payload.status,
            notes=payload.notes,
            difficulty=payload.difficulty,
            rating=payload.rating,
            tags=payload.tags,
            time_spent_delta=payload.time_spent,
        ),
    )
    _after_write(db, cache, user, record, payload.status)
    db.refresh(record)
    return Envelope(data=ProgressRead.model_validate(record))


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_progress(
    item_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    ProgressStore(db).delete(user.id, item_id)
    UserService(db).refresh_stats(user.id)
    cache.clear_leaderboards()
    return MessageResponse(message="Progress entry deleted successfully")
