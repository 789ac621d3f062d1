"""
Enumerated values shared by models, schemas and services
"""
from enum import Enum


class ProgressStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ActivityType(str, Enum):
    VIEWED = "viewed"
    STARTED = "started"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class Period(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class LeaderboardType(str, Enum):
    COMPLETION = "completion"
    STREAK = "streak"
    TIME = "time"


class SyncState(str, Enum):
    """Where a locally cached item stands relative to the backend"""
    SYNCED = "synced"
    PENDING_PUSH = "pending_push"
    CONFLICT = "conflict"


class ConflictPreference(str, Enum):
    LOCAL = "local"
    BACKEND = "backend"


def activity_type_for_status(status: str) -> ActivityType:
    """Map a progress status to the activity logged for it"""
    if status == ProgressStatus.COMPLETED.value:
        return ActivityType.COMPLETED
    if status == ProgressStatus.IN_PROGRESS.value:
        return ActivityType.STARTED
    return ActivityType.VIEWED
