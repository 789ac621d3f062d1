"""
Progress models - per-user item status and its tags
"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship

from roadmap_tracker.database import Base
from roadmap_tracker.utils.clock import utcnow


class ProgressRecord(Base):
    """
    Progress table - one row per (user, item) pair
    """
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_progress_user_item"),
        CheckConstraint(
            "status IN ('not-started', 'in-progress', 'completed')", name="ck_progress_status"
        ),
        CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="ck_progress_difficulty"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_progress_rating"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String(100), nullable=False)
    phase_id = Column(String(100), nullable=False, index=True)
    section_id = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="not-started")
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    time_spent = Column(Integer, nullable=False, default=0)  # minutes
    attempts = Column(Integer, nullable=False, default=0)
    notes = Column(Text)
    difficulty = Column(String(10), nullable=False, default="medium")
    rating = Column(Integer)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="progress")
    tag_rows = relationship(
        "ProgressTag",
        back_populates="progress",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProgressTag.id",
        lazy="selectin",
    )

    @property
    def tags(self):
        return [row.tag for row in self.tag_rows]

    def __repr__(self):
        return f"<ProgressRecord(user_id={self.user_id}, item_id={self.item_id}, status={self.status})>"


class ProgressTag(Base):
    """
    Progress tags table - one row per tag on a progress record
    """
    __tablename__ = "progress_tags"
    __table_args__ = (
        UniqueConstraint("progress_id", "tag", name="uq_progress_tag"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    progress_id = Column(
        Integer, ForeignKey("progress.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    progress = relationship("ProgressRecord", back_populates="tag_rows")

    def __repr__(self):
        return f"<ProgressTag(progress_id={self.progress_id}, tag={self.tag})>"
