"""
Analytics service for progress overviews, streaks and learning analytics
"""
import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roadmap_tracker.enums import ProgressStatus
from roadmap_tracker.errors import ValidationError
from roadmap_tracker.models import LearningSession, ProgressRecord, User
from roadmap_tracker.services import aggregation
from roadmap_tracker.services.progress_store import ProgressStore
from roadmap_tracker.services.session_store import SessionStore
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Read-only statistics computed fresh on every call

    Missing data yields zeroed structures; a missing user id is a caller
    error and raises ValidationError.
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.progress = ProgressStore(db, clock=clock)
        self.sessions = SessionStore(db, clock=clock)

    @staticmethod
    def _require_user(user_id) -> None:
        if user_id is None:
            raise ValidationError("User id is required")

    def get_streak(self, user_id: int) -> Dict[str, int]:
        self._require_user(user_id)
        return aggregation.compute_streak(
            self.progress.completion_dates(user_id), self.clock().date()
        )

    def get_overview(self, user_id: int) -> Dict[str, Any]:
        """
        Overall progress plus streak for a user

        Returns:
            totalItems/completedItems/... plus {"streak": {...}}
        """
        self._require_user(user_id)
        overview = aggregation.overview_stats(self.progress.all_for_user(user_id))
        overview["streak"] = self.get_streak(user_id)
        return overview

    def get_phase_progress(self, user_id: int, phase_id: str) -> List[Dict[str, Any]]:
        self._require_user(user_id)
        return aggregation.section_breakdown(self.progress.all_for_user(user_id), phase_id)

    def get_progress_stats(self, user_id: int, period: str = "all") -> Dict[str, Any]:
        self._require_user(user_id)
        since = aggregation.period_start(period, self.clock())
        return aggregation.progress_stats(self.progress.all_for_user(user_id), since)

    def get_learning_analytics(self, user_id: int, period: str = "all") -> Dict[str, Any]:
        """
        Combined learning view: progress stats, sessions, streak, monthly activity

        Args:
            user_id: User to report on
            period: Reporting period for the progress and session sections

        Returns:
            Dictionary with progress, sessions, streak and monthlyActivity
        """
        self._require_user(user_id)
        since = aggregation.period_start(period, self.clock())
        records = self.progress.all_for_user(user_id)

        progress = aggregation.progress_stats(records, since)
        scoped = records if since is None else [r for r in records if r.updated_at >= since]
        progress["phases_touched"] = len({r.phase_id for r in scoped})

        return {
            "progress": progress,
            "sessions": self.sessions.get_session_stats(user_id, period),
            "streak": self.get_streak(user_id),
            "monthly_activity": aggregation.monthly_activity(records),
        }

    def get_time_analytics(self, user_id: int, period: str = "all") -> Dict[str, Any]:
        self._require_user(user_id)
        since = aggregation.period_start(period, self.clock())
        sessions = self.sessions.sessions_for_user(user_id, since)
        return {
            "summary": aggregation.session_summary(sessions),
            "daily": aggregation.sessions_by_day(sessions),
            "hourly": aggregation.sessions_by_hour(sessions),
            "best_days": aggregation.best_days(sessions),
        }

    def get_trends(self, user_id: int, days: int = 30) -> Dict[str, Any]:
        self._require_user(user_id)
        if days < 1:
            raise ValidationError("Days must be 1 or greater")
        since = self.clock() - timedelta(days=days)
        return aggregation.completion_trends(self.progress.all_for_user(user_id), since)

    def get_skills(self, user_id: int) -> Dict[str, Any]:
        self._require_user(user_id)
        return aggregation.skills_by_phase(self.progress.all_for_user(user_id))

    def get_global_analytics(self) -> Dict[str, Any]:
        """Platform-wide totals for administrators"""
        total_users = self.db.execute(
            select(func.count(User.id)).where(User.is_active.is_(True))
        ).scalar_one()
        total_progress = self.db.execute(select(func.count(ProgressRecord.id))).scalar_one()
        total_sessions = self.db.execute(select(func.count(LearningSession.id))).scalar_one()

        growth: Dict[str, int] = defaultdict(int)
        for created_at in self.db.execute(select(User.created_at)).scalars():
            growth[created_at.strftime("%Y-%m")] += 1

        status_rows = self.db.execute(
            select(ProgressRecord.status, func.count(ProgressRecord.id))
            .group_by(ProgressRecord.status)
        ).all()

        completed_case = func.count(ProgressRecord.id).filter(
            ProgressRecord.status == ProgressStatus.COMPLETED.value
        )
        popular_rows = self.db.execute(
            select(
                ProgressRecord.item_id,
                func.sum(ProgressRecord.attempts).label("total_attempts"),
                completed_case.label("completed"),
            )
            .group_by(ProgressRecord.item_id)
            .order_by(func.sum(ProgressRecord.attempts).desc(), ProgressRecord.item_id)
            .limit(10)
        ).all()

        return {
            "overview": {
                "total_users": total_users,
                "total_progress": total_progress,
                "total_sessions": total_sessions,
            },
            "user_growth": [
                {"month": month, "new_users": growth[month]} for month in sorted(growth)
            ],
            "completion_rates": [
                {"status": status, "count": count} for status, count in status_rows
            ],
            "popular_items": [
                {"item_id": item_id, "total_attempts": attempts, "completed": completed}
                for item_id, attempts, completed in popular_rows
            ],
        }
