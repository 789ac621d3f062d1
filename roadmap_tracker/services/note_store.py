"""
Note store - per-item notes a user keeps alongside their progress
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from roadmap_tracker.config import settings
from roadmap_tracker.errors import NotFoundError, OwnershipError, ValidationError
from roadmap_tracker.models import ItemNote, User
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class NoteStore:
    """Create/read/update/delete of item notes for one database session"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    @staticmethod
    def _clean_content(content: Optional[str]) -> str:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Note content is required")
        if len(content) > settings.NOTES_MAX_LENGTH:
            raise ValidationError(f"Notes cannot exceed {settings.NOTES_MAX_LENGTH} characters")
        return content

    def _owned(self, note_id: int, user_id: int) -> ItemNote:
        note = self.db.get(ItemNote, note_id)
        if note is None:
            raise NotFoundError("Note not found")
        if note.user_id != user_id:
            raise OwnershipError("Note not found")
        return note

    def create_note(self, user_id: int, item_id: str, content: str, is_private: bool = True) -> ItemNote:
        now = self.clock()
        note = ItemNote(
            user_id=user_id,
            item_id=item_id,
            content=self._clean_content(content),
            is_private=is_private,
            created_at=now,
            updated_at=now,
        )
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)

        logger.info(f"Note created: id={note.id}, user={user_id}, item={item_id}")
        return note

    def list_notes(self, user_id: int, item_id: str) -> List[ItemNote]:
        """The user's notes on one item, newest first"""
        return list(
            self.db.execute(
                select(ItemNote)
                .where(ItemNote.user_id == user_id, ItemNote.item_id == item_id)
                .order_by(ItemNote.created_at.desc(), ItemNote.id.desc())
            ).scalars().all()
        )

    def shared_notes(self, item_id: str, limit: int = 50) -> List[ItemNote]:
        """
        Non-private notes on an item from active users with public profiles

        Newest first; used to show what other learners wrote about an item.
        """
        return list(
            self.db.execute(
                select(ItemNote)
                .join(User, User.id == ItemNote.user_id)
                .where(
                    ItemNote.item_id == item_id,
                    ItemNote.is_private.is_(False),
                    User.is_active.is_(True),
                    User.public_profile.is_(True),
                )
                .order_by(ItemNote.created_at.desc(), ItemNote.id.desc())
                .limit(limit)
            ).scalars().all()
        )

    def update_note(
        self,
        note_id: int,
        user_id: int,
        content: Optional[str] = None,
        is_private: Optional[bool] = None,
    ) -> ItemNote:
        """
        Change a note's content or privacy

        Raises:
            NotFoundError: the note does not exist or belongs to someone else
            ValidationError: nothing to update, or the content is empty or too long
        """
        if content is None and is_private is None:
            raise ValidationError("Nothing to update")

        note = self._owned(note_id, user_id)
        if content is not None:
            note.content = self._clean_content(content)
        if is_private is not None:
            note.is_private = is_private
        note.updated_at = self.clock()

        self.db.commit()
        self.db.refresh(note)
        logger.info(f"Note updated: id={note_id}, user={user_id}")
        return note

    def delete_note(self, note_id: int, user_id: int) -> None:
        note = self._owned(note_id, user_id)
        self.db.delete(note)
        self.db.commit()
        logger.info(f"Note deleted: id={note_id}, user={user_id}")
