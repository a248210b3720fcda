"""Configuration management for lumi."""

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
    sqlite_db_path: str = Field(default="./data/lumi.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Active pomodoro cache
    active_session_cache_ttl_seconds: float = Field(
        default=3.0, description="How long an active-pomodoro lookup is served from memory"
    )
    active_session_cache_sweep_seconds: int = Field(
        default=30, description="Interval between sweeps that evict expired active-pomodoro entries"
    )

    # Polling guard for GET /pomodoros/active
    active_poll_min_interval_seconds: float = Field(
        default=1.0, description="Minimum interval between active-pomodoro polls from one user"
    )


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_CREATED: int = 201
    HTTP_BAD_REQUEST: int = 400
    HTTP_NOT_FOUND: int = 404
    HTTP_TOO_MANY_REQUESTS: int = 429
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Pomodoro defaults (minutes)
    DEFAULT_FOCUS_MINUTES: int = 25
    DEFAULT_SHORT_BREAK_MINUTES: int = 5
    DEFAULT_LONG_BREAK_MINUTES: int = 15
    MAX_FOCUS_MINUTES: int = 60
    MAX_BREAK_MINUTES: int = 30

    # Tasks
    MIN_POMODORO_GOAL: int = 1
    MAX_POMODORO_GOAL: int = 20
    MAX_TASK_TITLE_LENGTH: int = 200
    MAX_TASK_DESCRIPTION_LENGTH: int = 1000

    # Productivity
    EXPECTED_DAILY_FOCUS_MINUTES: int = 8 * 60
    DAYS_PER_WEEK: int = 7
    DAYS_PER_MONTH: int = 30  # Fixed month length for the monthly target

    # Garden
    LEGENDARY_MILESTONES: dict[int, str] = {  # noqa: RUF012
        5: "Flower of Courage",
        10: "Crimson Flower of Total Focus",
        25: "Rose of Constancy",
    }
    PRIORITY_COLORS: dict[str, str] = {  # noqa: RUF012
        "LOW": "#A3BE8C",
        "MEDIUM": "#EBCB8B",
        "HIGH": "#BF616A",
    }
    MAX_FLOWER_NAME_LENGTH: int = 100
    MAX_FLOWER_TAG_LENGTH: int = 50

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100  # Default pagination limit for list queries


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
