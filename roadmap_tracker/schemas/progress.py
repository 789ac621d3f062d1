"""
Pydantic schemas for progress requests and responses
"""
from pydantic import Field
from typing import Dict, List, Optional
from datetime import datetime

from roadmap_tracker.config import settings
from roadmap_tracker.enums import Difficulty, ProgressStatus
from roadmap_tracker.schemas.common import CamelModel


class ProgressCreate(CamelModel):
    """Body of POST /api/progress"""
    item_id: str = Field(..., min_length=1, max_length=100)
    phase_id: str = Field(..., min_length=1, max_length=100)
    section_id: str = Field(..., min_length=1, max_length=100)
    status: ProgressStatus
    notes: Optional[str] = Field(None, max_length=settings.NOTES_MAX_LENGTH)
    difficulty: Optional[Difficulty] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    tags: Optional[List[str]] = None
    time_spent: Optional[int] = Field(None, ge=0, description="Minutes to add")


class ProgressUpdate(CamelModel):
    """Body of PUT /api/progress/{item_id}"""
    status: Optional[ProgressStatus] = None
    notes: Optional[str] = Field(None, max_length=settings.NOTES_MAX_LENGTH)
    difficulty: Optional[Difficulty] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    tags: Optional[List[str]] = None
    time_spent: Optional[int] = Field(None, ge=0, description="Minutes to add")


class ProgressRead(CamelModel):
    id: int
    user_id: int
    item_id: str
    phase_id: str
    section_id: str
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_spent: int
    attempts: int
    notes: Optional[str] = None
    difficulty: str
    rating: Optional[int] = None
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime


class StreakRead(CamelModel):
    current_streak: int = 0
    longest_streak: int = 0


class OverviewStats(CamelModel):
    total_items: int = 0
    completed_items: int = 0
    in_progress_items: int = 0
    not_started_items: int = 0
    total_time_spent: int = 0
    average_rating: float = 0.0
    completion_percentage: int = 0


class ProgressOverview(OverviewStats):
    streak: StreakRead


class ProgressStats(OverviewStats):
    difficulty_counts: Dict[str, int] = {}


class SectionBreakdown(CamelModel):
    section_id: str
    total_items: int
    completed_items: int
    in_progress_items: int


class RecentCompletion(CamelModel):
    item_id: str
    phase_id: str
    section_id: str
    completed_at: datetime
    rating: Optional[int] = None
    time_spent: int
