"""Configuration management for chorerota."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="chorerota.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment reported to Logfire")


# Application Constants
class Constants:
    """Application-wide constants."""

    # Workload weights per priority (only the ordering LOW < MEDIUM < HIGH matters)
    PRIORITY_WEIGHT_LOW: int = 1
    PRIORITY_WEIGHT_MEDIUM: int = 2
    PRIORITY_WEIGHT_HIGH: int = 3

    # Task limits
    MIN_ESTIMATED_MINUTES: int = 5
    MAX_ESTIMATED_MINUTES: int = 480  # 8 hours
    DEFAULT_ESTIMATED_MINUTES: int = 30
    MIN_TITLE_LENGTH: int = 3
    MAX_TITLE_LENGTH: int = 200
    MAX_DESCRIPTION_LENGTH: int = 1000
    MAX_NOTES_LENGTH: int = 1000

    # Scheduling week
    DAYS_PER_WEEK: int = 7

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Default pagination limit for list queries


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
