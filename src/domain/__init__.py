"""Domain models and DTOs."""

from src.domain.board import Board, BoardDetail, Column, ColumnWithTasks
from src.domain.create_models import BoardCreate, ColumnCreate, PomodoroStart, TaskCreate
from src.domain.flower import Flower, FlowerType
from src.domain.pomodoro import ACTIVE_STATUSES, Pomodoro, PomodoroStatus
from src.domain.pomodoro_settings import PomodoroSettings
from src.domain.task import Priority, Task
from src.domain.update_models import (
    BoardUpdate,
    ColumnUpdate,
    FlowerFilters,
    FlowerUpdate,
    SettingsUpdate,
    TaskMove,
    TaskUpdate,
)


__all__ = [
    "ACTIVE_STATUSES",
    "Board",
    "BoardCreate",
    "BoardDetail",
    "BoardUpdate",
    "Column",
    "ColumnCreate",
    "ColumnUpdate",
    "ColumnWithTasks",
    "Flower",
    "FlowerFilters",
    "FlowerType",
    "FlowerUpdate",
    "Pomodoro",
    "PomodoroSettings",
    "PomodoroStart",
    "PomodoroStatus",
    "Priority",
    "SettingsUpdate",
    "Task",
    "TaskCreate",
    "TaskMove",
    "TaskUpdate",
]
