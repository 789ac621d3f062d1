"""
Note model - free-form user notes attached to roadmap items
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from roadmap_tracker.database import Base
from roadmap_tracker.utils.clock import utcnow


class ItemNote(Base):
    """
    Notes table - any number of notes per (user, item), private by default
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String(100), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="notes")

    def __repr__(self):
        return f"<ItemNote(id={self.id}, user_id={self.user_id}, item_id={self.item_id})>"
