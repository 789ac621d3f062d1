"""
Session store - learning sessions, their activity log and session analytics

Only one session per user is kept active: creating a session ends any
session still open for that user first.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from roadmap_tracker.enums import ActivityType, DeviceType
from roadmap_tracker.errors import NotFoundError, OwnershipError, ValidationError
from roadmap_tracker.models import LearningSession, SessionActivity, User
from roadmap_tracker.services import aggregation
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

_ACTIVITY_TYPES = {t.value for t in ActivityType}


@dataclass(frozen=True)
class DeviceInfo:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    device_type: str = DeviceType.DESKTOP.value
    browser: str = "unknown"
    os: str = "unknown"


@dataclass
class SessionPage:
    items: List[LearningSession]
    page: int
    limit: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = math.ceil(self.total / self.limit) if self.limit else 0


def parse_user_agent(user_agent: Optional[str], ip_address: Optional[str] = None) -> DeviceInfo:
    """Best-effort device, browser and OS detection from a User-Agent header"""
    if not user_agent:
        return DeviceInfo(ip_address=ip_address)

    ua = user_agent.lower()

    if "ipad" in ua or "tablet" in ua or ("android" in ua and "mobile" not in ua):
        device_type = DeviceType.TABLET.value
    elif "mobi" in ua or "iphone" in ua:
        device_type = DeviceType.MOBILE.value
    else:
        device_type = DeviceType.DESKTOP.value

    if "edg/" in ua:
        browser = "Edge"
    elif "firefox" in ua:
        browser = "Firefox"
    elif "chrome" in ua or "crios" in ua:
        browser = "Chrome"
    elif "safari" in ua:
        browser = "Safari"
    else:
        browser = "unknown"

    if "windows" in ua:
        os_name = "Windows"
    elif "iphone" in ua or "ipad" in ua:
        os_name = "iOS"
    elif "android" in ua:
        os_name = "Android"
    elif "mac os" in ua or "macintosh" in ua:
        os_name = "macOS"
    elif "linux" in ua:
        os_name = "Linux"
    else:
        os_name = "unknown"

    return DeviceInfo(
        user_agent=user_agent,
        ip_address=ip_address,
        device_type=device_type,
        browser=browser,
        os=os_name,
    )


def _minutes_between(start: datetime, end: datetime) -> int:
    return max(0, round((end - start).total_seconds() / 60))


class SessionStore:
    """Create/end sessions, log activities and aggregate session time"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(self, user_id: int, device: Optional[DeviceInfo] = None) -> LearningSession:
        """Start a new active session, ending any session still active for the user"""
        device = device or DeviceInfo()
        now = self.clock()

        still_active = self.db.execute(
            select(LearningSession).where(
                LearningSession.user_id == user_id,
                LearningSession.is_active.is_(True),
            )
        ).scalars().all()
        for previous in still_active:
            self._close(previous, now)
        if still_active:
            logger.info(f"Closed {len(still_active)} stale active session(s) for user {user_id}")

        session = LearningSession(
            user_id=user_id,
            start_time=now,
            is_active=True,
            user_agent=device.user_agent,
            ip_address=device.ip_address,
            device_type=device.device_type,
            browser=device.browser,
            os=device.os,
            created_at=now,
            updated_at=now,
        )
        self.db.add(session)

        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(total_sessions=User.total_sessions + 1)
        )

        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Session started: id={session.id}, user={user_id}, device={device.device_type}")
        return session

    def _close(self, session: LearningSession, now: datetime) -> None:
        session.end_time = now
        session.duration = _minutes_between(session.start_time, now)
        session.is_active = False
        session.updated_at = now

    def end_session(self, session_id: int, user_id: Optional[int] = None) -> LearningSession:
        """
        End a session and compute its duration in whole minutes

        Calling it again recomputes the duration from the same start time.
        When user_id is given, a session owned by someone else is reported
        as not found.
        """
        session = self.db.get(LearningSession, session_id)
        if session is None:
            raise NotFoundError("Session not found")
        if user_id is not None and session.user_id != user_id:
            raise OwnershipError("Session not found")

        self._close(session, self.clock())
        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Session ended: id={session.id}, duration={session.duration}min")
        return session

    def get_active_session(self, user_id: int) -> Optional[LearningSession]:
        """Most recently started active session for the user"""
        active = self.db.execute(
            select(LearningSession)
            .where(
                LearningSession.user_id == user_id,
                LearningSession.is_active.is_(True),
            )
            .order_by(LearningSession.start_time.desc(), LearningSession.id.desc())
        ).scalars().all()

        if len(active) > 1:
            logger.warning(f"User {user_id} has {len(active)} active sessions; using the newest")

        return active[0] if active else None

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def add_activity(
        self,
        session_id: int,
        item_id: str,
        phase_id: str,
        section_id: str,
        activity_type: str,
        notes: Optional[str] = None,
    ) -> SessionActivity:
        """Append an activity row starting now"""
        activity_type = getattr(activity_type, "value", activity_type)
        if activity_type not in _ACTIVITY_TYPES:
            raise ValidationError(
                f"Invalid activity type '{activity_type}'. "
                f"Must be one of: {', '.join(sorted(_ACTIVITY_TYPES))}"
            )
        if self.db.get(LearningSession, session_id) is None:
            raise NotFoundError("Session not found")

        now = self.clock()
        activity = SessionActivity(
            session_id=session_id,
            item_id=item_id,
            phase_id=phase_id,
            section_id=section_id,
            start_time=now,
            type=activity_type,
            notes=notes,
            created_at=now,
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)

        logger.debug(f"Activity logged: session={session_id}, item={item_id}, type={activity_type}")
        return activity

    def update_activity(
        self,
        activity_id: int,
        end_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> SessionActivity:
        if end_time is None and notes is None:
            raise ValidationError("No valid fields to update")

        activity = self.db.get(SessionActivity, activity_id)
        if activity is None:
            raise NotFoundError("Activity not found")

        if end_time is not None:
            activity.end_time = end_time
            activity.duration = _minutes_between(activity.start_time, end_time)
        if notes is not None:
            activity.notes = notes

        self.db.commit()
        self.db.refresh(activity)
        return activity

    def get_session_activities(self, session_id: int) -> List[SessionActivity]:
        return list(
            self.db.execute(
                select(SessionActivity)
                .where(SessionActivity.session_id == session_id)
                .order_by(SessionActivity.start_time, SessionActivity.id)
            ).scalars().all()
        )

    # ------------------------------------------------------------------
    # Listing and analytics
    # ------------------------------------------------------------------

    def get_user_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> SessionPage:
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be 1 or greater")

        conditions = [LearningSession.user_id == user_id]
        if start_date is not None:
            conditions.append(LearningSession.start_time >= start_date)
        if end_date is not None:
            conditions.append(LearningSession.start_time <= end_date)

        total = self.db.execute(
            select(func.count(LearningSession.id)).where(*conditions)
        ).scalar_one()

        items = self.db.execute(
            select(LearningSession)
            .where(*conditions)
            .order_by(LearningSession.start_time.desc(), LearningSession.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()

        return SessionPage(items=list(items), page=page, limit=limit, total=total)

    def sessions_for_user(self, user_id: int, since: Optional[datetime] = None) -> List[LearningSession]:
        conditions = [LearningSession.user_id == user_id]
        if since is not None:
            conditions.append(LearningSession.start_time >= since)
        return list(
            self.db.execute(
                select(LearningSession).where(*conditions).order_by(LearningSession.start_time)
            ).scalars().all()
        )

    def get_session_stats(self, user_id: int, period: str = "all") -> Dict[str, Any]:
        """Summary and per-day totals for sessions started within the period"""
        since = aggregation.period_start(period, self.clock())
        sessions = self.sessions_for_user(user_id, since)
        return {
            "summary": aggregation.session_summary(sessions),
            "daily": aggregation.sessions_by_day(sessions),
        }

    def get_device_analytics(self, user_id: int) -> List[Dict[str, Any]]:
        return aggregation.device_breakdown(self.sessions_for_user(user_id))

    def get_activity_heatmap(self, user_id: int, days: int = 365) -> List[Dict[str, Any]]:
        if days < 1:
            raise ValidationError("Days must be 1 or greater")
        since = self.clock() - timedelta(days=days)
        return aggregation.sessions_by_day(
            self.sessions_for_user(user_id, since), count_key="activity_count"
        )

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def cleanup_old_sessions(self, days_old: int = 30) -> int:
        """Delete inactive sessions that ended before the retention window"""
        cutoff = self.clock() - timedelta(days=days_old)
        stale_ids = self.db.execute(
            select(LearningSession.id).where(
                LearningSession.is_active.is_(False),
                LearningSession.end_time < cutoff,
            )
        ).scalars().all()

        if stale_ids:
            self.db.execute(
                delete(SessionActivity).where(SessionActivity.session_id.in_(stale_ids))
            )
            self.db.execute(delete(LearningSession).where(LearningSession.id.in_(stale_ids)))
        self.db.commit()

        logger.info(f"Purged {len(stale_ids)} sessions older than {days_old} days")
        return len(stale_ids)
