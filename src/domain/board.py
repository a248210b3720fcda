"""Board and column domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.task import Task


class Board(BaseModel):
    """Board data transfer object."""

    id: str = Field(..., description="Unique board ID from database")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Board title")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class Column(BaseModel):
    """Board column data transfer object."""

    id: str = Field(..., description="Unique column ID from database")
    user_id: str = Field(..., description="Owner user ID")
    board_id: str = Field(..., description="Board the column belongs to")
    title: str = Field(..., description="Column title")
    position: int = Field(default=0, description="Ordering within the board")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class ColumnWithTasks(Column):
    """Column with its tasks, oldest first."""

    tasks: list[Task] = Field(default_factory=list, description="Tasks in the column")


class BoardDetail(Board):
    """Board with its columns ordered by position, each carrying its tasks."""

    columns: list[ColumnWithTasks] = Field(default_factory=list, description="Columns ordered by position")
