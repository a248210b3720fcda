"""Garden flower domain models and enums."""

import json
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from src.domain.task import Priority


class FlowerType(StrEnum):
    """NORMAL flowers reward every qualifying task; LEGENDARY ones mark milestones."""

    NORMAL = "NORMAL"
    LEGENDARY = "LEGENDARY"


class Flower(BaseModel):
    """Garden flower data transfer object."""

    id: str = Field(..., description="Unique flower ID from database")
    user_id: str = Field(..., description="Owner user ID")
    task_id: str = Field(..., description="Task whose completion grew the flower")
    flower_type: FlowerType = Field(..., description="NORMAL or LEGENDARY")
    priority: Priority = Field(..., description="Priority of the completed task")
    color: str | None = Field(default=None, description="Hex color derived from priority")
    legendary_name: str | None = Field(default=None, description="Fixed name of a legendary flower")
    custom_name: str | None = Field(default=None, description="User-assigned name")
    tags: list[str] = Field(default_factory=list, description="User-assigned tags")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, v: object) -> object:
        """SQLite stores tags as a JSON array string."""
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v) if v else []
        return v
