"""
Unit tests for the pure aggregation functions.

Covers streak math, period boundaries, overview percentages and
leaderboard ranking without touching the database.
"""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from roadmap_tracker.errors import ValidationError
from roadmap_tracker.services import aggregation


def _record(status, **kwargs):
    defaults = {
        "phase_id": "phase1",
        "section_id": "month1",
        "time_spent": 0,
        "rating": None,
        "difficulty": "medium",
        "updated_at": datetime(2024, 1, 3),
        "completed_at": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(status=status, **defaults)


def _user(user_id, items_completed=0, streak_days=0, total_time_spent=0, **kwargs):
    defaults = {
        "is_active": True,
        "public_profile": True,
        "display_name": None,
        "avatar": None,
        "location": None,
        "total_sessions": 0,
        "longest_streak": 0,
    }
    defaults.update(kwargs)
    return SimpleNamespace(
        id=user_id,
        username=f"user{user_id}",
        items_completed=items_completed,
        streak_days=streak_days,
        total_time_spent=total_time_spent,
        **defaults,
    )


class TestComputeStreak:
    DATES = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]

    def test_three_consecutive_days_ending_today(self):
        streak = aggregation.compute_streak(self.DATES, date(2024, 1, 3))
        assert streak == {"current_streak": 3, "longest_streak": 3}

    def test_no_completion_today_resets_current(self):
        streak = aggregation.compute_streak(self.DATES, date(2024, 1, 4))
        assert streak == {"current_streak": 0, "longest_streak": 3}

    def test_gap_splits_runs(self):
        dates = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 5)]
        streak = aggregation.compute_streak(dates, date(2024, 1, 5))
        assert streak == {"current_streak": 1, "longest_streak": 2}

    def test_duplicate_dates_count_once(self):
        dates = [date(2024, 1, 3), date(2024, 1, 3)]
        assert aggregation.compute_streak(dates, date(2024, 1, 3))["current_streak"] == 1

    def test_empty(self):
        assert aggregation.compute_streak([], date(2024, 1, 3)) == {
            "current_streak": 0,
            "longest_streak": 0,
        }


class TestPeriodStart:
    NOW = datetime(2024, 3, 15, 14, 30)

    @pytest.mark.parametrize(
        "period,expected",
        [
            ("today", datetime(2024, 3, 15)),
            ("week", datetime(2024, 3, 8, 14, 30)),
            ("month", datetime(2024, 3, 1)),
            ("year", datetime(2024, 1, 1)),
            ("all", None),
        ],
    )
    def test_boundaries(self, period, expected):
        assert aggregation.period_start(period, self.NOW) == expected

    def test_unknown_period_is_rejected(self):
        with pytest.raises(ValidationError):
            aggregation.period_start("decade", self.NOW)


class TestOverviewStats:
    def test_counts_and_percentage(self):
        records = [
            _record("completed", rating=4, time_spent=30),
            _record("completed", rating=5, time_spent=15),
            _record("in-progress"),
        ]
        stats = aggregation.overview_stats(records)

        assert stats["total_items"] == 3
        assert stats["completed_items"] == 2
        assert stats["in_progress_items"] == 1
        assert stats["not_started_items"] == 0
        assert stats["total_time_spent"] == 45
        assert stats["average_rating"] == 4.5
        assert stats["completion_percentage"] == 67

    def test_empty_is_zeroed(self):
        stats = aggregation.overview_stats([])
        assert stats["completion_percentage"] == 0
        assert stats["average_rating"] == 0.0

    def test_progress_stats_filters_on_updated_at(self):
        records = [
            _record("completed", updated_at=datetime(2024, 1, 10), difficulty="hard"),
            _record("completed", updated_at=datetime(2023, 12, 1)),
        ]
        stats = aggregation.progress_stats(records, since=datetime(2024, 1, 1))

        assert stats["total_items"] == 1
        assert stats["difficulty_counts"] == {"hard": 1}


class TestSectionBreakdown:
    def test_groups_only_the_requested_phase(self):
        records = [
            _record("completed", section_id="month1"),
            _record("in-progress", section_id="month1"),
            _record("completed", section_id="month2"),
            _record("completed", phase_id="phase2", section_id="month4"),
        ]
        sections = aggregation.section_breakdown(records, "phase1")

        assert [s["section_id"] for s in sections] == ["month1", "month2"]
        assert sections[0]["completed_items"] == 1
        assert sections[0]["in_progress_items"] == 1


class TestRankLeaderboard:
    def test_orders_by_score_descending(self):
        users = [_user(1, items_completed=5), _user(2, items_completed=10), _user(3, items_completed=3)]
        board = aggregation.rank_leaderboard(users, "completion", 10)

        assert [entry["score"] for entry in board] == [10, 5, 3]
        assert [entry["rank"] for entry in board] == [1, 2, 3]
        assert [entry["id"] for entry in board] == [2, 1, 3]

    def test_ties_keep_input_order(self):
        users = [_user(1, streak_days=4), _user(2, streak_days=4), _user(3, streak_days=7)]
        board = aggregation.rank_leaderboard(users, "streak", 10)
        assert [entry["id"] for entry in board] == [3, 1, 2]

    def test_private_and_inactive_users_are_excluded(self):
        users = [
            _user(1, total_time_spent=100, public_profile=False),
            _user(2, total_time_spent=50, is_active=False),
            _user(3, total_time_spent=10),
        ]
        board = aggregation.rank_leaderboard(users, "time", 10)
        assert [entry["id"] for entry in board] == [3]

    def test_unknown_type_falls_back_to_completion(self):
        users = [_user(1, items_completed=1, streak_days=9), _user(2, items_completed=2)]
        board = aggregation.rank_leaderboard(users, "popularity", 10)
        assert [entry["id"] for entry in board] == [2, 1]

    def test_limit(self):
        users = [_user(i, items_completed=i) for i in range(1, 6)]
        assert len(aggregation.rank_leaderboard(users, "completion", 2)) == 2


class TestSessionAggregates:
    def _session(self, start, duration, device_type="desktop"):
        return SimpleNamespace(start_time=start, duration=duration, device_type=device_type)

    def test_summary(self):
        sessions = [
            self._session(datetime(2024, 1, 1, 9), 30),
            self._session(datetime(2024, 1, 1, 18), 10),
            self._session(datetime(2024, 1, 2, 9), 20),
        ]
        summary = aggregation.session_summary(sessions)

        assert summary["total_sessions"] == 3
        assert summary["total_time_spent"] == 60
        assert summary["average_session_time"] == 20
        assert summary["longest_session"] == 30
        assert summary["shortest_session"] == 10

    def test_sessions_by_day(self):
        sessions = [
            self._session(datetime(2024, 1, 2, 9), 20),
            self._session(datetime(2024, 1, 1, 9), 30),
            self._session(datetime(2024, 1, 1, 18), 10),
        ]
        daily = aggregation.sessions_by_day(sessions)
        assert daily == [
            {"date": "2024-01-01", "sessions": 2, "total_time": 40},
            {"date": "2024-01-02", "sessions": 1, "total_time": 20},
        ]

    def test_device_breakdown_sorted_by_count(self):
        sessions = [
            self._session(datetime(2024, 1, 1), 5, "mobile"),
            self._session(datetime(2024, 1, 1), 5, "desktop"),
            self._session(datetime(2024, 1, 2), 5, "mobile"),
        ]
        devices = aggregation.device_breakdown(sessions)
        assert devices[0] == {"device_type": "mobile", "count": 2, "total_time": 10}
