"""
User accounts: registration, credentials, profile and stat counters
"""
import logging
import math
from dataclasses import dataclass, fields
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from roadmap_tracker.errors import AuthError, ConflictError, NotFoundError, ValidationError
from roadmap_tracker.models import ProgressRecord, User
from roadmap_tracker.enums import ProgressStatus
from roadmap_tracker.security import hash_password, verify_password
from roadmap_tracker.services import aggregation
from roadmap_tracker.services.progress_store import ProgressStore
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileChanges:
    """Profile fields a user may edit; None leaves the field unchanged"""
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    dark_mode: Optional[bool] = None
    email_notifications: Optional[bool] = None
    public_profile: Optional[bool] = None


class UserService:
    """Account operations for one database session"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def register(
        self,
        username: str,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> User:
        """Create an account; ConflictError when the email or username is taken"""
        email = email.lower()
        if self.find_by_email(email, include_inactive=True) is not None:
            raise ConflictError("User with this email already exists")
        if self.find_by_username(username, include_inactive=True) is not None:
            raise ConflictError("Username already taken")

        now = self.clock()
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            display_name=display_name or username,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User registered: id={user.id}, username={username}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials and stamp last_login; AuthError on any mismatch"""
        user = self.find_by_email(email.lower(), include_inactive=True)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")
        if not user.is_active:
            raise AuthError("Account has been deactivated")

        now = self.clock()
        user.last_login = now
        user.updated_at = now
        self.db.commit()
        return user

    def get(self, user_id: int) -> User:
        if user_id is None:
            raise ValidationError("User id is required")
        user = self.db.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User not found")
        return user

    def find_by_email(self, email: str, include_inactive: bool = False) -> Optional[User]:
        query = select(User).where(User.email == email)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        return self.db.execute(query).scalar_one_or_none()

    def find_by_username(self, username: str, include_inactive: bool = False) -> Optional[User]:
        query = select(User).where(User.username == username)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        return self.db.execute(query).scalar_one_or_none()

    def update_profile(self, user: User, changes: ProfileChanges) -> User:
        provided = {
            f.name: getattr(changes, f.name)
            for f in fields(changes)
            if getattr(changes, f.name) is not None
        }
        if not provided:
            raise ValidationError("No valid fields to update")

        user.display_name = provided.get("display_name", user.display_name)
        user.avatar = provided.get("avatar", user.avatar)
        user.bio = provided.get("bio", user.bio)
        user.location = provided.get("location", user.location)
        user.website = provided.get("website", user.website)
        user.github = provided.get("github", user.github)
        user.linkedin = provided.get("linkedin", user.linkedin)
        user.dark_mode = provided.get("dark_mode", user.dark_mode)
        user.email_notifications = provided.get("email_notifications", user.email_notifications)
        user.public_profile = provided.get("public_profile", user.public_profile)
        user.updated_at = self.clock()

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Profile updated: user={user.id}, fields={sorted(provided)}")
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise AuthError("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        user.updated_at = self.clock()
        self.db.commit()
        logger.info(f"Password changed: user={user.id}")

    def delete_account(self, user: User, password: str) -> None:
        """Delete the account and everything it owns"""
        if not verify_password(password, user.password_hash):
            raise AuthError("Password is incorrect")

        user_id = user.id
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Account deleted: user={user_id}")

    def refresh_stats(self, user_id: int) -> User:
        """
        Recompute the leaderboard counters from the user's progress

        Called after every progress write so rankings reflect current data.
        """
        user = self.get(user_id)
        store = ProgressStore(self.db, clock=self.clock)

        completed, time_spent = self.db.execute(
            select(
                func.count(ProgressRecord.id).filter(
                    ProgressRecord.status == ProgressStatus.COMPLETED.value
                ),
                func.coalesce(func.sum(ProgressRecord.time_spent), 0),
            ).where(ProgressRecord.user_id == user_id)
        ).one()

        streak = aggregation.compute_streak(store.completion_dates(user_id), self.clock().date())

        user.items_completed = completed
        user.total_time_spent = time_spent
        user.streak_days = streak["current_streak"]
        user.longest_streak = max(user.longest_streak or 0, streak["longest_streak"])
        self.db.commit()
        return user

    def search(self, term: str, page: int = 1, limit: int = 20) -> Tuple[List[User], int, int]:
        """Public, active users whose username, display name or bio matches"""
        if not term:
            raise ValidationError("Search query is required")
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be 1 or greater")

        pattern = f"%{term}%"
        conditions = [
            User.is_active.is_(True),
            User.public_profile.is_(True),
            or_(
                User.username.ilike(pattern),
                User.display_name.ilike(pattern),
                User.bio.ilike(pattern),
            ),
        ]
        total = self.db.execute(select(func.count(User.id)).where(*conditions)).scalar_one()
        users = self.db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.items_completed.desc(), User.id)
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()

        pages = math.ceil(total / limit) if limit else 0
        return list(users), total, pages

    def leaderboard_candidates(self) -> List[User]:
        return list(
            self.db.execute(
                select(User)
                .where(User.is_active.is_(True), User.public_profile.is_(True))
                .order_by(User.id)
            ).scalars().all()
        )
