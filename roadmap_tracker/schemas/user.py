"""
Pydantic schemas for auth, profile and public user endpoints
"""
from pydantic import EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from roadmap_tracker.schemas.common import CamelModel
from roadmap_tracker.schemas.progress import OverviewStats, StreakRead


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    display_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    """Body of PUT /api/auth/profile; omitted fields stay unchanged"""
    display_name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    github: Optional[str] = Field(None, max_length=100)
    linkedin: Optional[str] = Field(None, max_length=100)
    dark_mode: Optional[bool] = None
    email_notifications: Optional[bool] = None
    public_profile: Optional[bool] = None


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def differs_from_current(cls, value, info):
        if value == info.data.get("current_password"):
            raise ValueError("New password must differ from the current password")
        return value


class AccountDelete(CamelModel):
    password: str = Field(..., min_length=1)


class Preferences(CamelModel):
    dark_mode: bool
    email_notifications: bool
    public_profile: bool


class UserStats(CamelModel):
    total_sessions: int
    total_time_spent: int
    items_completed: int
    streak_days: int
    longest_streak: int


class UserRead(CamelModel):
    """The signed-in user's own view of their account"""
    id: int
    username: str
    email: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    is_admin: bool = False
    preferences: Preferences
    stats: UserStats
    last_login: Optional[datetime] = None
    created_at: datetime


class PublicUser(CamelModel):
    """Fields anyone may see on a public profile"""
    id: int
    username: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    stats: UserStats
    created_at: datetime


class PublicProgress(OverviewStats):
    streak: StreakRead


class PublicProfile(CamelModel):
    user: PublicUser
    progress: PublicProgress
    is_own_profile: bool
    email: Optional[str] = None
    preferences: Optional[Preferences] = None
    last_login: Optional[datetime] = None


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user: UserRead


class LeaderboardEntry(CamelModel):
    rank: int
    score: int
    id: int
    username: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    location: Optional[str] = None
    total_sessions: int
    total_time_spent: int
    items_completed: int
    streak_days: int
    longest_streak: int


class LeaderboardResponse(CamelModel):
    success: bool = True
    data: List[LeaderboardEntry]
    type: str


def preferences_of(user) -> Preferences:
    return Preferences(
        dark_mode=user.dark_mode,
        email_notifications=user.email_notifications,
        public_profile=user.public_profile,
    )


def stats_of(user) -> UserStats:
    return UserStats(
        total_sessions=user.total_sessions,
        total_time_spent=user.total_time_spent,
        items_completed=user.items_completed,
        streak_days=user.streak_days,
        longest_streak=user.longest_streak,
    )


def user_read(user) -> UserRead:
    return UserRead(
        id=user.id,
        username=user.username,
        email=user.email,
        display_name=user.display_name,
        avatar=user.avatar,
        bio=user.bio,
        location=user.location,
        website=user.website,
        github=user.github,
        linkedin=user.linkedin,
        is_admin=user.is_admin,
        preferences=preferences_of(user),
        stats=stats_of(user),
        last_login=user.last_login,
        created_at=user.created_at,
    )


def public_user(user) -> PublicUser:
    return PublicUser(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar=user.avatar,
        bio=user.bio,
        location=user.location,
        website=user.website,
        github=user.github,
        linkedin=user.linkedin,
        stats=stats_of(user),
        created_at=user.created_at,
    )
