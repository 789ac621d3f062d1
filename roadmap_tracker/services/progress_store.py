"""
Progress store - persistence of per-user item progress

Status transitions drive the timestamp rules:
- not-started clears started_at and completed_at
- in-progress keeps an existing started_at (or sets it) and clears completed_at
- completed keeps existing timestamps and fills in whichever is missing
Every write after creation increments attempts, even when nothing changed.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roadmap_tracker.config import settings
from roadmap_tracker.enums import Difficulty, ProgressStatus
from roadmap_tracker.errors import NotFoundError, ValidationError
from roadmap_tracker.models import ProgressRecord, ProgressTag
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

_STATUSES = {s.value for s in ProgressStatus}
_DIFFICULTIES = {d.value for d in Difficulty}


@dataclass(frozen=True)
class ProgressChanges:
    """
    Typed update command for a progress record

    None means "not provided"; every field is applied explicitly by
    ProgressStore._apply_changes.
    """
    status: Optional[str] = None
    notes: Optional[str] = None
    difficulty: Optional[str] = None
    rating: Optional[int] = None
    tags: Optional[List[str]] = None
    time_spent_delta: Optional[int] = None


@dataclass(frozen=True)
class ProgressFilters:
    phase_id: Optional[str] = None
    section_id: Optional[str] = None
    status: Optional[str] = None


@dataclass
class ProgressPage:
    items: List[ProgressRecord]
    page: int
    limit: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = math.ceil(self.total / self.limit) if self.limit else 0


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


class ProgressStore:
    """Upsert/read/delete of progress records for one database session"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, changes: ProgressChanges) -> ProgressChanges:
        """Check every provided field before anything is written"""
        status = _enum_value(changes.status)
        difficulty = _enum_value(changes.difficulty)

        if status is not None and status not in _STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {', '.join(sorted(_STATUSES))}"
            )
        if difficulty is not None and difficulty not in _DIFFICULTIES:
            raise ValidationError(
                f"Invalid difficulty '{difficulty}'. Must be one of: {', '.join(sorted(_DIFFICULTIES))}"
            )
        if changes.rating is not None and not 1 <= changes.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if changes.notes is not None and len(changes.notes) > settings.NOTES_MAX_LENGTH:
            raise ValidationError(
                f"Notes cannot exceed {settings.NOTES_MAX_LENGTH} characters"
            )
        if changes.time_spent_delta is not None and changes.time_spent_delta < 0:
            raise ValidationError("Time spent cannot decrease")

        tags = None
        if changes.tags is not None:
            tags = []
            for raw in changes.tags:
                tag = raw.strip()
                if not tag:
                    continue
                if len(tag) > settings.TAG_MAX_LENGTH:
                    raise ValidationError(
                        f"Tags cannot exceed {settings.TAG_MAX_LENGTH} characters"
                    )
                if tag not in tags:
                    tags.append(tag)

        return ProgressChanges(
            status=status,
            notes=changes.notes,
            difficulty=difficulty,
            rating=changes.rating,
            tags=tags,
            time_spent_delta=changes.time_spent_delta,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(
        self,
        user_id: int,
        item_id: str,
        phase_id: str,
        section_id: str,
        changes: ProgressChanges,
    ) -> ProgressRecord:
        """
        Create the record for (user_id, item_id) or update it in place

        Args:
            user_id: Owner
            item_id: Curriculum item
            phase_id: Phase locator (used only on creation)
            section_id: Section locator (used only on creation)
            changes: Fields to apply

        Returns:
            The resulting record
        """
        changes = self._validate(changes)

        record = self.find_by_user_and_item(user_id, item_id)
        if record is None:
            record = self._create(user_id, item_id, phase_id, section_id, changes)
            action = "created"
        else:
            self._apply_changes(record, changes)
            action = "updated"

        self.db.commit()
        self.db.refresh(record)

        logger.info(
            f"Progress {action}: user={user_id}, item={item_id}, "
            f"status={record.status}, attempts={record.attempts}"
        )
        return record

    def update(self, user_id: int, item_id: str, changes: ProgressChanges) -> ProgressRecord:
        """Update an existing record; NotFoundError when there is none"""
        changes = self._validate(changes)

        record = self.find_by_user_and_item(user_id, item_id)
        if record is None:
            raise NotFoundError("Progress entry not found")

        self._apply_changes(record, changes)
        self.db.commit()
        self.db.refresh(record)

        logger.info(
            f"Progress updated: user={user_id}, item={item_id}, "
            f"status={record.status}, attempts={record.attempts}"
        )
        return record

    def _create(
        self,
        user_id: int,
        item_id: str,
        phase_id: str,
        section_id: str,
        changes: ProgressChanges,
    ) -> ProgressRecord:
        now = self.clock()
        status = changes.status or ProgressStatus.NOT_STARTED.value

        record = ProgressRecord(
            user_id=user_id,
            item_id=item_id,
            phase_id=phase_id,
            section_id=section_id,
            status=status,
            started_at=None,
            completed_at=None,
            time_spent=changes.time_spent_delta or 0,
            attempts=1,
            notes=changes.notes,
            difficulty=changes.difficulty or Difficulty.MEDIUM.value,
            rating=changes.rating,
            created_at=now,
            updated_at=now,
        )
        self._apply_status(record, status, now)

        if changes.tags:
            record.tag_rows = [ProgressTag(tag=tag, created_at=now) for tag in changes.tags]

        self.db.add(record)
        return record

    def _apply_changes(self, record: ProgressRecord, changes: ProgressChanges) -> None:
        now = self.clock()

        if changes.status is not None:
            record.status = changes.status
            self._apply_status(record, changes.status, now)

        if changes.notes is not None:
            record.notes = changes.notes

        if changes.difficulty is not None:
            record.difficulty = changes.difficulty

        if changes.rating is not None:
            record.rating = changes.rating

        if changes.time_spent_delta is not None:
            record.time_spent = (record.time_spent or 0) + changes.time_spent_delta

        if changes.tags is not None:
            self._replace_tags(record, changes.tags, now)

        record.attempts = (record.attempts or 0) + 1
        record.updated_at = now

    @staticmethod
    def _apply_status(record: ProgressRecord, status: str, now: datetime) -> None:
        if status == ProgressStatus.NOT_STARTED.value:
            record.started_at = None
            record.completed_at = None
        elif status == ProgressStatus.IN_PROGRESS.value:
            record.started_at = record.started_at or now
            record.completed_at = None
        elif status == ProgressStatus.COMPLETED.value:
            record.started_at = record.started_at or now
            record.completed_at = record.completed_at or now

    def _replace_tags(self, record: ProgressRecord, tags: List[str], now: datetime) -> None:
        record.tag_rows.clear()
        # Old rows must be gone before re-inserting the same tag values
        self.db.flush()
        record.tag_rows.extend(ProgressTag(tag=tag, created_at=now) for tag in tags)

    def delete(self, user_id: int, item_id: str) -> None:
        """Remove a record; NotFoundError when absent or owned by someone else"""
        record = self.find_by_user_and_item(user_id, item_id)
        if record is None:
            raise NotFoundError("Progress entry not found")

        self.db.delete(record)
        self.db.commit()
        logger.info(f"Progress deleted: user={user_id}, item={item_id}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_user_and_item(self, user_id: int, item_id: str) -> Optional[ProgressRecord]:
        return self.db.execute(
            select(ProgressRecord).where(
                ProgressRecord.user_id == user_id,
                ProgressRecord.item_id == item_id,
            )
        ).scalar_one_or_none()

    def find_by_user(
        self,
        user_id: int,
        filters: Optional[ProgressFilters] = None,
        page: int = 1,
        limit: int = 50,
    ) -> ProgressPage:
        """
        Page through a user's records, most recently updated first

        Args:
            user_id: Owner
            filters: Optional phase/section/status restriction
            page: 1-based page number
            limit: Page size

        Returns:
            ProgressPage with items and pagination totals
        """
        if page < 1:
            raise ValidationError("Page must be 1 or greater")
        if limit < 1:
            raise ValidationError("Limit must be 1 or greater")

        filters = filters or ProgressFilters()
        conditions = [ProgressRecord.user_id == user_id]
        if filters.phase_id:
            conditions.append(ProgressRecord.phase_id == filters.phase_id)
        if filters.section_id:
            conditions.append(ProgressRecord.section_id == filters.section_id)
        if filters.status:
            conditions.append(ProgressRecord.status == _enum_value(filters.status))

        total = self.db.execute(
            select(func.count(ProgressRecord.id)).where(*conditions)
        ).scalar_one()

        items = self.db.execute(
            select(ProgressRecord)
            .where(*conditions)
            .order_by(ProgressRecord.updated_at.desc(), ProgressRecord.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()

        return ProgressPage(items=list(items), page=page, limit=limit, total=total)

    def all_for_user(self, user_id: int) -> List[ProgressRecord]:
        return list(
            self.db.execute(
                select(ProgressRecord)
                .where(ProgressRecord.user_id == user_id)
                .order_by(ProgressRecord.id)
            ).scalars().all()
        )

    def recently_completed(self, user_id: int, limit: int = 10) -> List[ProgressRecord]:
        return list(
            self.db.execute(
                select(ProgressRecord)
                .where(
                    ProgressRecord.user_id == user_id,
                    ProgressRecord.status == ProgressStatus.COMPLETED.value,
                    ProgressRecord.completed_at.is_not(None),
                )
                .order_by(ProgressRecord.completed_at.desc())
                .limit(limit)
            ).scalars().all()
        )

    def completion_dates(self, user_id: int) -> List[date]:
        """Distinct calendar dates (UTC) with at least one completion"""
        rows = self.db.execute(
            select(ProgressRecord.completed_at).where(
                ProgressRecord.user_id == user_id,
                ProgressRecord.status == ProgressStatus.COMPLETED.value,
                ProgressRecord.completed_at.is_not(None),
            )
        ).scalars().all()
        return sorted({completed_at.date() for completed_at in rows}, reverse=True)
