"""
Configuration management for the MedInfo Service.
Uses pydantic-settings for type-safe environment variable handling.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "MedInfo Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Security
    ADMIN_API_KEY: str = ""
    FRONTEND_ORIGIN: str = "http://localhost:5173"

    # Database
    DATABASE_URL: str = "sqlite:///./medinfo.db"
    DATABASE_ECHO: bool = False

    # Redis
    CACHE_ENABLED: bool = True
    REDIS_URL: str = "redis://localhost:6379"
    INTERACTION_CACHE_TTL: int = 300  # 5 minutes

    # Interaction checks
    MAX_CHECK_MEDICINES: int = 10

    # Scheduling
    DUE_WINDOW_MINUTES: int = 30
    SCHEDULE_TIMEZONE: str = "UTC"
    DEFAULT_SCHEDULE_LOG_LIMIT: int = 100
    DEFAULT_USER_LOG_LIMIT: int = 30

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 60  # seconds

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
