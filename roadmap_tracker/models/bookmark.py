"""
Bookmark models - saved roadmap items and the collections that group them
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from roadmap_tracker.database import Base
from roadmap_tracker.utils.clock import utcnow


class BookmarkCollection(Base):
    """
    Bookmark collections table - named, optionally public groups of bookmarks
    """
    __tablename__ = "bookmark_collections"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_collection_user_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="collections")
    bookmarks = relationship("Bookmark", back_populates="collection")

    def __repr__(self):
        return f"<BookmarkCollection(id={self.id}, user_id={self.user_id}, name={self.name})>"


class Bookmark(Base):
    """
    Bookmarks table - at most one bookmark per (user, item)
    """
    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_bookmark_user_item"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String(100), nullable=False)
    collection_id = Column(
        Integer, ForeignKey("bookmark_collections.id", ondelete="SET NULL"), index=True
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="bookmarks")
    collection = relationship("BookmarkCollection", back_populates="bookmarks")

    def __repr__(self):
        return f"<Bookmark(user_id={self.user_id}, item_id={self.item_id})>"
