"""Update models for database operations."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.core.config import Constants
from src.core.db_client import to_server_local
from src.domain.flower import FlowerType
from src.domain.task import Priority


class TaskUpdate(BaseModel):
    """Partial update payload for a task."""

    title: str | None = Field(default=None, min_length=1, max_length=Constants.MAX_TASK_TITLE_LENGTH)
    description: str | None = Field(default=None, max_length=Constants.MAX_TASK_DESCRIPTION_LENGTH)
    priority: Priority | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    pomodoro_goal: int | None = Field(default=None, ge=Constants.MIN_POMODORO_GOAL, le=Constants.MAX_POMODORO_GOAL)
    column_id: str | None = None

    @field_validator("start_at", "end_at")
    @classmethod
    def to_local_time(cls, v: datetime | None) -> datetime | None:
        """Store planned dates as naive server-local time."""
        return to_server_local(v) if v is not None else v


class SettingsUpdate(BaseModel):
    """Partial update payload for pomodoro settings."""

    focus_duration: int | None = Field(default=None, ge=1, le=Constants.MAX_FOCUS_MINUTES)
    short_break_duration: int | None = Field(default=None, ge=1, le=Constants.MAX_BREAK_MINUTES)
    long_break_duration: int | None = Field(default=None, ge=1, le=Constants.MAX_BREAK_MINUTES)


class FlowerUpdate(BaseModel):
    """User-editable flower fields."""

    custom_name: str | None = Field(default=None, min_length=1, max_length=Constants.MAX_FLOWER_NAME_LENGTH)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        """Strip tags, drop blanks and duplicates, and bound their length."""
        if v is None:
            return v
        cleaned: list[str] = []
        for raw in v:
            tag = raw.strip()
            if len(tag) > Constants.MAX_FLOWER_TAG_LENGTH:
                raise ValueError(f"Tags must be at most {Constants.MAX_FLOWER_TAG_LENGTH} characters")
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned


class FlowerFilters(BaseModel):
    """Query filters for browsing a garden."""

    flower_type: FlowerType | None = None
    priority: Priority | None = None
    tags: list[str] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def to_local_time(cls, v: datetime | None) -> datetime | None:
        """Compare against stored timestamps in server-local time."""
        return to_server_local(v) if v is not None else v


class TaskMove(BaseModel):
    """Target column for moving a task."""

    column_id: str = Field(..., description="Column to move the task into")


class BoardUpdate(BaseModel):
    """New title for a board."""

    title: str = Field(..., min_length=1, max_length=100, description="Board title")


class ColumnUpdate(BaseModel):
    """Partial update for a column: rename, reorder or both."""

    title: str | None = Field(default=None, min_length=1, max_length=100, description="Column title")
    position: int | None = Field(default=None, ge=0, description="Ordering within the board")
