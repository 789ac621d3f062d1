"""
Learning analytics API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from roadmap_tracker.api.deps import get_current_user, require_admin
from roadmap_tracker.database import get_db
from roadmap_tracker.enums import Period
from roadmap_tracker.models import User
from roadmap_tracker.schemas.analytics import (
    GlobalAnalytics, LearningAnalytics, SkillAnalytics, TimeAnalytics, TrendAnalytics
)
from roadmap_tracker.schemas.common import Envelope
from roadmap_tracker.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/learning", response_model=Envelope[LearningAnalytics])
def get_learning_analytics(
    period: Period = Query(Period.ALL),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Learning analytics for the caller

    Returns:
    - Progress statistics and difficulty distribution for the period
    - Session statistics for the period
    - Current and longest streak
    - Monthly completed items and time spent
    """
    logger.info(f"Fetching learning analytics for user {user.id} (period={period.value})")
    return Envelope(data=AnalyticsService(db).get_learning_analytics(user.id, period.value))


@router.get("/time", response_model=Envelope[TimeAnalytics])
def get_time_analytics(
    period: Period = Query(Period.ALL),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Session time by day, hour of day and weekday"""
    return Envelope(data=AnalyticsService(db).get_time_analytics(user.id, period.value))


@router.get("/trends", response_model=Envelope[TrendAnalytics])
def get_trends(
    days: int = Query(30, ge=1, le=3650),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Daily completions over the last N days and their running total"""
    return Envelope(data=AnalyticsService(db).get_trends(user.id, days))


@router.get("/skills", response_model=Envelope[SkillAnalytics])
def get_skills(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Per-phase proficiency and difficulty distribution"""
    return Envelope(data=AnalyticsService(db).get_skills(user.id))


@router.get("/global", response_model=Envelope[GlobalAnalytics])
def get_global_analytics(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Platform-wide totals (admin only)"""
    logger.info(f"Global analytics requested by admin {admin.id}")
    return Envelope(data=AnalyticsService(db).get_global_analytics())
