"""
Unit tests for ProgressStore.

Runs against an in-memory SQLite database with a fixed clock.
"""

from datetime import date

import pytest

from roadmap_tracker.errors import NotFoundError, ValidationError
from roadmap_tracker.services.progress_store import ProgressChanges, ProgressFilters, ProgressStore
from tests.conftest import make_user


@pytest.fixture
def store(db_session, clock):
    return ProgressStore(db_session, clock=clock)


def _upsert(store, user, item_id="html-css", **changes):
    return store.upsert(user.id, item_id, "phase1", "month1", ProgressChanges(**changes))


class TestUpsert:
    def test_create_completed_sets_both_timestamps(self, store, user, clock):
        record = _upsert(store, user, status="completed")

        assert record.status == "completed"
        assert record.started_at == clock.now
        assert record.completed_at == clock.now
        assert record.attempts == 1
        assert record.difficulty == "medium"

    def test_create_not_started_has_no_timestamps(self, store, user):
        record = _upsert(store, user, status="not-started")
        assert record.started_at is None
        assert record.completed_at is None

    def test_repeated_completed_writes_keep_timestamps(self, store, user, clock):
        first = _upsert(store, user, status="completed")
        completed_at = first.completed_at

        clock.advance(hours=2)
        second = _upsert(store, user, status="completed")

        assert second.id == first.id
        assert second.completed_at == completed_at
        assert second.attempts == 2

    def test_round_trip_through_statuses(self, store, user, clock):
        _upsert(store, user, status="completed")
        clock.advance(minutes=5)
        record = _upsert(store, user, status="in-progress")

        assert record.completed_at is None
        assert record.started_at is not None

        record = _upsert(store, user, status="not-started")
        assert record.started_at is None
        assert record.completed_at is None
        assert record.attempts == 3

    def test_in_progress_keeps_original_start(self, store, user, clock):
        started = _upsert(store, user, status="in-progress").started_at
        clock.advance(days=1)
        record = _upsert(store, user, status="completed")

        assert record.started_at == started
        assert record.completed_at == clock.now

    def test_time_spent_accumulates(self, store, user):
        _upsert(store, user, status="in-progress", time_spent_delta=10)
        record = _upsert(store, user, time_spent_delta=15)
        assert record.time_spent == 25

    def test_write_without_changes_still_counts_attempt(self, store, user):
        _upsert(store, user, status="in-progress")
        record = _upsert(store, user)
        assert record.attempts == 2
        assert record.status == "in-progress"

    def test_tags_are_replaced_not_merged(self, store, user):
        _upsert(store, user, status="in-progress", tags=["css", "layout"])
        record = _upsert(store, user, tags=["layout", "grid", "grid", " "])
        assert record.tags == ["layout", "grid"]

    def test_only_provided_fields_change(self, store, user):
        _upsert(store, user, status="completed", notes="done", rating=4, difficulty="hard")
        record = _upsert(store, user, rating=5)

        assert record.notes == "done"
        assert record.difficulty == "hard"
        assert record.rating == 5
        assert record.status == "completed"


class TestValidation:
    @pytest.mark.parametrize(
        "changes",
        [
            {"status": "finished"},
            {"difficulty": "extreme"},
            {"rating": 0},
            {"rating": 6},
            {"notes": "x" * 1001},
            {"tags": ["t" * 51]},
            {"time_spent_delta": -1},
        ],
    )
    def test_invalid_changes_are_rejected_before_writing(self, store, user, changes):
        with pytest.raises(ValidationError):
            _upsert(store, user, **changes)
        assert store.find_by_user_and_item(user.id, "html-css") is None


class TestUpdateAndDelete:
    def test_update_missing_record_is_not_found(self, store, user):
        with pytest.raises(NotFoundError):
            store.update(user.id, "html-css", ProgressChanges(status="completed"))

    def test_update_existing(self, store, user):
        _upsert(store, user, status="in-progress")
        record = store.update(user.id, "html-css", ProgressChanges(status="completed"))
        assert record.status == "completed"
        assert record.attempts == 2

    def test_delete_then_missing(self, store, user):
        _upsert(store, user, status="completed")
        store.delete(user.id, "html-css")

        assert store.find_by_user_and_item(user.id, "html-css") is None
        with pytest.raises(NotFoundError):
            store.delete(user.id, "html-css")

    def test_cannot_delete_another_users_record(self, store, user, db_session):
        other = make_user(db_session, "bob")
        _upsert(store, other, status="completed")

        with pytest.raises(NotFoundError):
            store.delete(user.id, "html-css")
        assert store.find_by_user_and_item(other.id, "html-css") is not None


class TestQueries:
    def test_pagination(self, store, user, clock):
        for index in range(25):
            clock.advance(minutes=1)
            _upsert(store, user, item_id=f"item-{index:02d}", status="in-progress")

        pages = [store.find_by_user(user.id, page=page, limit=10) for page in (1, 2, 3)]

        assert [len(p.items) for p in pages] == [10, 10, 5]
        assert all(p.total == 25 and p.pages == 3 for p in pages)
        # Most recently updated first
        assert pages[0].items[0].item_id == "item-24"

    def test_filters(self, store, user):
        _upsert(store, user, item_id="a", status="completed")
        _upsert(store, user, item_id="b", status="in-progress")
        store.upsert(user.id, "c", "phase2", "month4", ProgressChanges(status="completed"))

        completed = store.find_by_user(user.id, ProgressFilters(status="completed"))
        phase1 = store.find_by_user(user.id, ProgressFilters(phase_id="phase1"))

        assert {r.item_id for r in completed.items} == {"a", "c"}
        assert {r.item_id for r in phase1.items} == {"a", "b"}

    def test_completion_dates_are_distinct_days(self, store, user, clock):
        _upsert(store, user, item_id="a", status="completed")
        clock.advance(hours=1)
        _upsert(store, user, item_id="b", status="completed")
        clock.advance(days=1)
        _upsert(store, user, item_id="c", status="completed")

        assert store.completion_dates(user.id) == [date(2024, 1, 4), date(2024, 1, 3)]

    def test_recently_completed_newest_first(self, store, user, clock):
        _upsert(store, user, item_id="a", status="completed")
        clock.advance(hours=1)
        _upsert(store, user, item_id="b", status="completed")
        _upsert(store, user, item_id="c", status="in-progress")

        assert [r.item_id for r in store.recently_completed(user.id, 10)] == ["b", "a"]
