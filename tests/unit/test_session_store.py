"""
Unit tests for SessionStore and user-agent parsing.
"""

from datetime import datetime

import pytest

from roadmap_tracker.errors import NotFoundError, ValidationError
from roadmap_tracker.models import LearningSession
from roadmap_tracker.services.session_store import SessionStore, parse_user_agent
from tests.conftest import make_user

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


@pytest.fixture
def store(db_session, clock):
    return SessionStore(db_session, clock=clock)


class TestParseUserAgent:
    def test_iphone(self):
        device = parse_user_agent(IPHONE_UA, "10.0.0.1")
        assert device.device_type == "mobile"
        assert device.browser == "Safari"
        assert device.os == "iOS"
        assert device.ip_address == "10.0.0.1"

    def test_windows_chrome(self):
        device = parse_user_agent(WINDOWS_CHROME_UA)
        assert device.device_type == "desktop"
        assert device.browser == "Chrome"
        assert device.os == "Windows"

    def test_missing_header(self):
        device = parse_user_agent(None)
        assert device.device_type == "desktop"
        assert device.browser == "unknown"


class TestSessionLifecycle:
    def test_create_increments_user_counter(self, store, user, db_session):
        store.create_session(user.id)
        store.create_session(user.id)
        db_session.refresh(user)
        assert user.total_sessions == 2

    def test_only_one_session_stays_active(self, store, user, db_session, clock):
        first = store.create_session(user.id)
        clock.advance(minutes=10)
        second = store.create_session(user.id)

        db_session.refresh(first)
        assert first.is_active is False
        assert first.duration == 10
        assert store.get_active_session(user.id).id == second.id

    def test_end_session_rounds_duration(self, store, user, clock):
        session = store.create_session(user.id)
        clock.advance(minutes=44, seconds=40)

        ended = store.end_session(session.id)

        assert ended.is_active is False
        assert ended.end_time == clock.now
        assert ended.duration == 45
        assert store.get_active_session(user.id) is None

    def test_end_unknown_session(self, store):
        with pytest.raises(NotFoundError):
            store.end_session(999)

    def test_newest_active_wins_when_several_are_open(self, store, user, db_session, clock):
        # Concurrent logins can leave two rows active
        for minutes in (0, 5):
            db_session.add(LearningSession(
                user_id=user.id,
                start_time=datetime(2024, 1, 3, 12, minutes),
                is_active=True,
            ))
        db_session.commit()

        active = store.get_active_session(user.id)
        assert active.start_time == datetime(2024, 1, 3, 12, 5)


class TestActivities:
    def test_add_and_update_activity(self, store, user, clock):
        session = store.create_session(user.id)
        activity = store.add_activity(session.id, "html-css", "phase1", "month1", "started")

        clock.advance(minutes=20)
        updated = store.update_activity(activity.id, end_time=clock.now, notes="flexbox")

        assert updated.duration == 20
        assert updated.notes == "flexbox"
        assert [a.id for a in store.get_session_activities(session.id)] == [activity.id]

    def test_invalid_activity_type(self, store, user):
        session = store.create_session(user.id)
        with pytest.raises(ValidationError):
            store.add_activity(session.id, "html-css", "phase1", "month1", "skipped")

    def test_update_requires_a_field(self, store, user):
        session = store.create_session(user.id)
        activity = store.add_activity(session.id, "html-css", "phase1", "month1", "viewed")
        with pytest.raises(ValidationError):
            store.update_activity(activity.id)


class TestSessionQueries:
    def _session_of(self, store, user, clock, minutes):
        session = store.create_session(user.id)
        clock.advance(minutes=minutes)
        store.end_session(session.id)
        clock.advance(hours=1)

    def test_stats_summary(self, store, user, clock):
        for minutes in (30, 10, 20):
            self._session_of(store, user, clock, minutes)

        stats = store.get_session_stats(user.id, "all")

        assert stats["summary"]["total_sessions"] == 3
        assert stats["summary"]["total_time_spent"] == 60
        assert stats["summary"]["longest_session"] == 30
        assert stats["daily"][0]["sessions"] == 3

    def test_paging_newest_first(self, store, user, clock):
        for _ in range(3):
            self._session_of(store, user, clock, 5)

        page = store.get_user_sessions(user.id, page=1, limit=2)

        assert page.total == 3
        assert page.pages == 2
        assert page.items[0].start_time > page.items[1].start_time

    def test_heatmap_uses_activity_count(self, store, user, clock):
        self._session_of(store, user, clock, 5)
        heatmap = store.get_activity_heatmap(user.id, days=30)
        assert heatmap == [{"date": "2024-01-03", "activity_count": 1, "total_time": 5}]

    def test_cleanup_removes_only_old_inactive_sessions(self, store, user, clock):
        self._session_of(store, user, clock, 5)
        clock.advance(days=40)
        self._session_of(store, user, clock, 5)
        store.create_session(user.id)

        assert store.cleanup_old_sessions(days_old=30) == 1
        assert store.get_user_sessions(user.id).total == 2


def test_ending_another_users_session_is_not_found(store, user, db_session):
    other = make_user(db_session, "bob")
    session = store.create_session(other.id)

    with pytest.raises(NotFoundError):
        store.end_session(session.id, user_id=user.id)
    assert store.get_active_session(other.id).id == session.id
