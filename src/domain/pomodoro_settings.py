"""Per-user pomodoro defaults."""

from datetime import datetime

from pydantic import BaseModel, Field


class PomodoroSettings(BaseModel):
    """Pomodoro settings data transfer object."""

    id: str = Field(..., description="Unique settings row ID")
    user_id: str = Field(..., description="Owner user ID (one row per user)")
    focus_duration: int = Field(..., description="Default focus length in minutes")
    short_break_duration: int = Field(..., description="Default short break in minutes")
    long_break_duration: int = Field(..., description="Default long break in minutes")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
