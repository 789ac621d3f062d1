"""
Session models - learning sessions and their activity log
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from roadmap_tracker.database import Base
from roadmap_tracker.utils.clock import utcnow


class LearningSession(Base):
    """
    Sessions table - one continuous period of user activity
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    is_active = Column(Boolean, nullable=False, default=True)
    user_agent = Column(Text)
    ip_address = Column(String(64))
    device_type = Column(String(10), nullable=False, default="desktop")
    browser = Column(String(50))
    os = Column(String(50))
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")
    activities = relationship(
        "SessionActivity",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionActivity.start_time",
    )

    def __repr__(self):
        return f"<LearningSession(id={self.id}, user_id={self.user_id}, active={self.is_active})>"


class SessionActivity(Base):
    """
    Session activities table - fire-and-forget log of item interactions
    """
    __tablename__ = "session_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(
        Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id = Column(String(100), nullable=False)
    phase_id = Column(String(100), nullable=False)
    section_id = Column(String(100), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    type = Column(String(10), nullable=False, default="viewed")
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    session = relationship("LearningSession", back_populates="activities")

    def __repr__(self):
        return f"<SessionActivity(session_id={self.session_id}, item_id={self.item_id}, type={self.type})>"
