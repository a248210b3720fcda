"""Pydantic models for creating records in database."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.core.config import Constants
from src.core.db_client import to_server_local
from src.domain.task import Priority


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    title: str = Field(..., min_length=1, max_length=Constants.MAX_TASK_TITLE_LENGTH, description="Task title")
    description: str | None = Field(
        default=None, max_length=Constants.MAX_TASK_DESCRIPTION_LENGTH, description="Task description"
    )
    priority: Priority = Field(..., description="HIGH, MEDIUM or LOW")
    start_at: datetime | None = Field(default=None, description="Planned start")
    end_at: datetime | None = Field(default=None, description="Planned end")
    pomodoro_goal: int = Field(
        default=1,
        ge=Constants.MIN_POMODORO_GOAL,
        le=Constants.MAX_POMODORO_GOAL,
        description="Pomodoros needed to complete the task",
    )
    column_id: str = Field(..., description="Column to create the task in")

    @field_validator("title")
    @classmethod
    def validate_title_not_blank(cls, v: str) -> str:
        """Reject titles made only of whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def to_local_time(cls, v: datetime | None) -> datetime | None:
        """Store planned dates as naive server-local time."""
        return to_server_local(v) if v is not None else v


class PomodoroStart(BaseModel):
    """Pydantic model for starting a pomodoro session.

    A duration or break of ``0``/``None`` falls back to the user's settings.
    """

    task_id: str = Field(..., description="Task to focus on")
    duration: int | None = Field(default=None, ge=0, le=Constants.MAX_FOCUS_MINUTES, description="Focus minutes")
    break_time: int | None = Field(default=None, ge=0, le=Constants.MAX_BREAK_MINUTES, description="Break minutes")


class BoardCreate(BaseModel):
    """Pydantic model for creating a board record."""

    title: str = Field(..., min_length=1, max_length=100, description="Board title")


class ColumnCreate(BaseModel):
    """Pydantic model for creating a column record."""

    board_id: str = Field(..., description="Board to add the column to")
    title: str = Field(..., min_length=1, max_length=100, description="Column title")
    position: int = Field(default=0, ge=0, description="Ordering within the board")
