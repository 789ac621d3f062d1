"""
User model - accounts, preferences and leaderboard counters
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship

from roadmap_tracker.database import Base
from roadmap_tracker.utils.clock import utcnow


class User(Base):
    """
    Users table - credentials, public profile fields and denormalized stats
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100))
    avatar = Column(String(500))
    bio = Column(Text)
    location = Column(String(100))
    website = Column(String(255))
    github = Column(String(100))
    linkedin = Column(String(100))

    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime)

    # Preferences
    dark_mode = Column(Boolean, default=False, nullable=False)
    email_notifications = Column(Boolean, default=True, nullable=False)
    public_profile = Column(Boolean, default=True, nullable=False)

    # Stats refreshed after progress writes and session creation
    total_sessions = Column(Integer, default=0, nullable=False)
    total_time_spent = Column(Integer, default=0, nullable=False)  # minutes
    items_completed = Column(Integer, default=0, nullable=False)
    streak_days = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    progress = relationship(
        "ProgressRecord", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sessions = relationship(
        "LearningSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    notes = relationship(
        "ItemNote", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    bookmarks = relationship(
        "Bookmark", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    collections = relationship(
        "BookmarkCollection", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
