"""
Bookmark store - saved items and named collections

A user bookmarks an item at most once. Bookmarking it again only moves it
to the given collection. Deleting a collection keeps its bookmarks, which
become uncollected.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roadmap_tracker.errors import ConflictError, NotFoundError, OwnershipError, ValidationError
from roadmap_tracker.models import Bookmark, BookmarkCollection
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class BookmarkStore:
    """Bookmarks and bookmark collections for one database session"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def get_collection(self, collection_id: int, user_id: int) -> BookmarkCollection:
        collection = self.db.get(BookmarkCollection, collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        if collection.user_id != user_id:
            raise OwnershipError("Collection not found")
        return collection

    def create_collection(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> BookmarkCollection:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Collection name is required")

        now = self.clock()
        collection = BookmarkCollection(
            user_id=user_id,
            name=name,
            description=description,
            is_public=is_public,
            created_at=now,
            updated_at=now,
        )
        self.db.add(collection)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Collection '{name}' already exists")
        self.db.refresh(collection)

        logger.info(f"Collection created: id={collection.id}, user={user_id}")
        return collection

    def list_collections(self, user_id: int) -> List[BookmarkCollection]:
        return list(
            self.db.execute(
                select(BookmarkCollection)
                .where(BookmarkCollection.user_id == user_id)
                .order_by(BookmarkCollection.name)
            ).scalars().all()
        )

    def delete_collection(self, collection_id: int, user_id: int) -> None:
        collection = self.get_collection(collection_id, user_id)
        self.db.execute(
            update(Bookmark)
            .where(Bookmark.collection_id == collection.id)
            .values(collection_id=None)
        )
        self.db.delete(collection)
        self.db.commit()
        logger.info(f"Collection deleted: id={collection_id}, user={user_id}")

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def find(self, user_id: int, item_id: str) -> Optional[Bookmark]:
        return self.db.execute(
            select(Bookmark).where(Bookmark.user_id == user_id, Bookmark.item_id == item_id)
        ).scalar_one_or_none()

    def add(self, user_id: int, item_id: str, collection_id: Optional[int] = None) -> Bookmark:
        """
        Bookmark an item, or move an existing bookmark to another collection

        Raises:
            NotFoundError: collection_id is not one of the user's collections
        """
        if collection_id is not None:
            self.get_collection(collection_id, user_id)

        bookmark = self.find(user_id, item_id)
        if bookmark is None:
            bookmark = Bookmark(
                user_id=user_id,
                item_id=item_id,
                collection_id=collection_id,
                created_at=self.clock(),
            )
            self.db.add(bookmark)
            action = "created"
        else:
            if collection_id is not None:
                bookmark.collection_id = collection_id
            action = "kept"

        self.db.commit()
        self.db.refresh(bookmark)
        logger.info(f"Bookmark {action}: user={user_id}, item={item_id}")
        return bookmark

    def list_bookmarks(self, user_id: int, collection_id: Optional[int] = None) -> List[Bookmark]:
        """The user's bookmarks, newest first, optionally limited to one collection"""
        conditions = [Bookmark.user_id == user_id]
        if collection_id is not None:
            self.get_collection(collection_id, user_id)
            conditions.append(Bookmark.collection_id == collection_id)

        return list(
            self.db.execute(
                select(Bookmark)
                .where(*conditions)
                .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            ).scalars().all()
        )

    def remove(self, user_id: int, item_id: str) -> None:
        bookmark = self.find(user_id, item_id)
        if bookmark is None:
            raise NotFoundError("Bookmark not found")

        self.db.delete(bookmark)
        self.db.commit()
        logger.info(f"Bookmark removed: user={user_id}, item={item_id}")
