"""
Database models package
"""
from roadmap_tracker.models.user import User
from roadmap_tracker.models.progress import ProgressRecord, ProgressTag
from roadmap_tracker.models.session import LearningSession, SessionActivity
from roadmap_tracker.models.note import ItemNote
from roadmap_tracker.models.bookmark import Bookmark, BookmarkCollection

__all__ = [
    "User",
    "ProgressRecord",
    "ProgressTag",
    "LearningSession",
    "SessionActivity",
    "ItemNote",
    "Bookmark",
    "BookmarkCollection",
]
