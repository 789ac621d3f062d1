"""
Pydantic schemas for analytics endpoints
"""
from typing import List

from roadmap_tracker.schemas.common import CamelModel
from roadmap_tracker.schemas.progress import ProgressStats, StreakRead


class SessionSummary(CamelModel):
    total_sessions: int = 0
    total_time_spent: int = 0
    average_session_time: float = 0.0
    longest_session: int = 0
    shortest_session: int = 0


class DailySessions(CamelModel):
    date: str
    sessions: int
    total_time: int


class SessionStats(CamelModel):
    summary: SessionSummary
    daily: List[DailySessions]


class MonthlyActivity(CamelModel):
    month: str
    items_completed: int
    time_spent: int


class LearningProgress(ProgressStats):
    phases_touched: int = 0


class LearningAnalytics(CamelModel):
    progress: LearningProgress
    sessions: SessionStats
    streak: StreakRead
    monthly_activity: List[MonthlyActivity]


class HourlySessions(CamelModel):
    hour: int
    sessions: int
    total_time: int


class WeekdaySessions(CamelModel):
    day: str
    sessions: int
    total_time: int


class TimeAnalytics(CamelModel):
    summary: SessionSummary
    daily: List[DailySessions]
    hourly: List[HourlySessions]
    best_days: List[WeekdaySessions]


class DailyCompletions(CamelModel):
    date: str
    completed: int


class CumulativeCompletions(CamelModel):
    date: str
    daily: int
    cumulative: int


class TrendAnalytics(CamelModel):
    completion_trends: List[DailyCompletions]
    progress_accumulation: List[CumulativeCompletions]


class PhaseSkill(CamelModel):
    phase_id: str
    total_items: int
    completed_items: int
    in_progress_items: int
    total_time_spent: int
    average_rating: float
    proficiency: int


class DifficultyCount(CamelModel):
    difficulty: str
    count: int


class PhaseDifficulty(CamelModel):
    phase_id: str
    difficulties: List[DifficultyCount]


class SkillAnalytics(CamelModel):
    skills: List[PhaseSkill]
    difficulty_analysis: List[PhaseDifficulty]


class GlobalOverview(CamelModel):
    total_users: int
    total_progress: int
    total_sessions: int


class MonthlyUsers(CamelModel):
    month: str
    new_users: int


class StatusCount(CamelModel):
    status: str
    count: int


class PopularItem(CamelModel):
    item_id: str
    total_attempts: int
    completed: int


class GlobalAnalytics(CamelModel):
    overview: GlobalOverview
    user_growth: List[MonthlyUsers]
    completion_rates: List[StatusCount]
    popular_items: List[PopularItem]


class DeviceUsage(CamelModel):
    device_type: str
    count: int
    total_time: int


class HeatmapDay(CamelModel):
    date: str
    activity_count: int
    total_time: int
