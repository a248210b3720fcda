"""Pomodoro session domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class PomodoroStatus(StrEnum):
    """Pomodoro session lifecycle state. COMPLETED is terminal."""

    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


ACTIVE_STATUSES: frozenset[PomodoroStatus] = frozenset({PomodoroStatus.IN_PROGRESS, PomodoroStatus.PAUSED})


class Pomodoro(BaseModel):
    """Pomodoro session data transfer object."""

    id: str = Field(..., description="Unique pomodoro ID from database")
    user_id: str = Field(..., description="Owner user ID")
    task_id: str = Field(..., description="Task the session is focused on")
    duration: int = Field(..., description="Planned focus duration in minutes")
    break_time: int = Field(..., description="Planned break duration in minutes")
    status: PomodoroStatus = Field(default=PomodoroStatus.IN_PROGRESS, description="Current lifecycle state")
    started_at: datetime = Field(..., description="When the session was started")
    paused_at: datetime | None = Field(default=None, description="When the session was last paused")
    completed_at: datetime | None = Field(default=None, description="When the session was finished")
    created_at: datetime = Field(..., description="Creation timestamp")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
