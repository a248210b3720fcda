"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Priority(StrEnum):
    """Task priority, which also decides the color of the reward flower."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    user_id: str = Field(..., description="Owner user ID")
    column_id: str = Field(..., description="Column the task lives in")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    priority: Priority = Field(default=Priority.MEDIUM, description="LOW, MEDIUM or HIGH")
    pomodoro_goal: int = Field(default=1, ge=1, description="Completed pomodoros needed to finish the task")
    completed: bool = Field(default=False, description="Whether the task is done")
    start_at: datetime | None = Field(default=None, description="Planned start")
    end_at: datetime | None = Field(default=None, description="Planned end, strictly after start_at")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    completed_pomodoros: int = Field(default=0, description="COMPLETED pomodoros recorded against the task")
