"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./roadmap.db"

    # Auth
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    BCRYPT_ROUNDS: int = 12

    # Redis (leave unset to disable caching)
    REDIS_URL: Optional[str] = None

    # Application
    APP_NAME: str = "Learning Roadmap Tracker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_PER_HOUR: int = 3000

    # Progress / sessions
    NOTES_MAX_LENGTH: int = 1000
    TAG_MAX_LENGTH: int = 50
    DEFAULT_PAGE_SIZE: int = 50
    SESSION_RETENTION_DAYS: int = 30
    LEADERBOARD_CACHE_TTL: int = 60  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
