from src.services import (
    board_service,
    garden_service,
    settings_service,
    stats_service,
    task_completion_service,
    task_service,
)
from src.services.pomodoro_service import PomodoroService


__all__ = [
    "PomodoroService",
    "board_service",
    "garden_service",
    "settings_service",
    "stats_service",
    "task_completion_service",
    "task_service",
]
