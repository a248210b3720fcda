"""JSON API router for boards, tasks, pomodoros, garden and statistics."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from src.core.config import constants
from src.core.errors import ErrorKind
from src.core.rate_limiter import ActivePollLimiter
from src.domain.create_models import BoardCreate, ColumnCreate, PomodoroStart, TaskCreate
from src.domain.task import Priority
from src.domain.update_models import (
    BoardUpdate,
    ColumnUpdate,
    FlowerFilters,
    FlowerUpdate,
    SettingsUpdate,
    TaskMove,
    TaskUpdate,
)
from src.models.service_models import ServiceResult
from src.services import (
    board_service,
    garden_service,
    settings_service,
    stats_service,
    task_completion_service,
    task_service,
)
from src.services.pomodoro_service import PomodoroService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: constants.HTTP_NOT_FOUND,
    ErrorKind.INVALID_STATE: constants.HTTP_BAD_REQUEST,
    ErrorKind.INVALID_INPUT: constants.HTTP_BAD_REQUEST,
    ErrorKind.DEPENDENCY_FAILURE: constants.HTTP_SERVICE_UNAVAILABLE,
}


def respond(result: ServiceResult, *, success_status: int = constants.HTTP_OK) -> JSONResponse:
    """Render a service result with the status code matching its outcome."""
    if result.success:
        status_code = success_status
    elif result.error is not None:
        status_code = STATUS_BY_KIND[result.error.kind]
    else:
        status_code = constants.HTTP_SERVICE_UNAVAILABLE
    return JSONResponse(content=result.to_response(), status_code=status_code)


async def get_user_id(x_user_id: Annotated[str, Header(min_length=1)]) -> str:
    """Identify the caller from the X-User-Id header."""
    return x_user_id


def get_pomodoro_service(request: Request) -> PomodoroService:
    return request.app.state.pomodoro_service


def get_poll_limiter(request: Request) -> ActivePollLimiter:
    return request.app.state.poll_limiter


UserId = Annotated[str, Depends(get_user_id)]
Pomodoros = Annotated[PomodoroService, Depends(get_pomodoro_service)]
PollLimiter = Annotated[ActivePollLimiter, Depends(get_poll_limiter)]


# Boards and columns


@router.post("/boards")
async def create_board(board: BoardCreate, user_id: UserId) -> JSONResponse:
    result = await board_service.create_board(user_id=user_id, board=board)
    return respond(result, success_status=constants.HTTP_CREATED)


@router.get("/boards")
async def list_boards(user_id: UserId) -> JSONResponse:
    return respond(await board_service.get_boards(user_id=user_id))


@router.get("/boards/{board_id}")
async def get_board(board_id: str, user_id: UserId) -> JSONResponse:
    return respond(await board_service.get_board(user_id=user_id, board_id=board_id))


@router.put("/boards/{board_id}")
async def update_board(board_id: str, update: BoardUpdate, user_id: UserId) -> JSONResponse:
    return respond(await board_service.update_board(user_id=user_id, board_id=board_id, update=update))


@router.delete("/boards/{board_id}")
async def delete_board(board_id: str, user_id: UserId) -> JSONResponse:
    return respond(await board_service.delete_board(user_id=user_id, board_id=board_id))


@router.get("/boards/{board_id}/columns")
async def list_columns(board_id: str, user_id: UserId) -> JSONResponse:
    return respond(await board_service.get_columns(user_id=user_id, board_id=board_id))


@router.post("/columns")
async def create_column(column: ColumnCreate, user_id: UserId) -> JSONResponse:
    result = await board_service.create_column(user_id=user_id, column=column)
    return respond(result, success_status=constants.HTTP_CREATED)


@router.get("/columns/{column_id}")
async def get_column(column_id: str, user_id: UserId) -> JSONResponse:
    return respond(await board_service.get_column(user_id=user_id, column_id=column_id))


@router.patch("/columns/{column_id}")
async def update_column(column_id: str, update: ColumnUpdate, user_id: UserId) -> JSONResponse:
    return respond(await board_service.update_column(user_id=user_id, column_id=column_id, update=update))


@router.delete("/columns/{column_id}")
async def delete_column(column_id: str, user_id: UserId) -> JSONResponse:
    return respond(await board_service.delete_column(user_id=user_id, column_id=column_id))


@router.get("/columns/{column_id}/tasks")
async def list_column_tasks(column_id: str, user_id: UserId) -> JSONResponse:
    return respond(await task_service.get_tasks_by_column(user_id=user_id, column_id=column_id))


# Tasks


@router.post("/tasks")
async def create_task(task: TaskCreate, user_id: UserId) -> JSONResponse:
    result = await task_service.create_task(user_id=user_id, task=task)
    return respond(result, success_status=constants.HTTP_CREATED)


@router.get("/tasks")
async def list_tasks(user_id: UserId) -> JSONResponse:
    return respond(await task_service.get_tasks(user_id=user_id))


@router.get("/tasks/{task_id}")
async def get_task(task_id: str, user_id: UserId) -> JSONResponse:
    return respond(await task_service.get_task(user_id=user_id, task_id=task_id))


@router.patch("/tasks/{task_id}")
async def update_task(task_id: str, update: TaskUpdate, user_id: UserId) -> JSONResponse:
    return respond(await task_service.update_task(user_id=user_id, task_id=task_id, update=update))


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, user_id: UserId) -> JSONResponse:
    return respond(await task_service.delete_task(user_id=user_id, task_id=task_id))


@router.post("/tasks/{task_id}/move")
async def move_task(task_id: str, move: TaskMove, user_id: UserId) -> JSONResponse:
    return respond(await task_service.move_task(user_id=user_id, task_id=task_id, column_id=move.column_id))


@router.post("/tasks/{task_id}/complete")
async def complete_task(task_id: str, user_id: UserId) -> JSONResponse:
    return respond(await task_completion_service.manual_complete(task_id=task_id, user_id=user_id))


# Pomodoros


@router.post("/pomodoros/start")
async def start_pomodoro(
    start: PomodoroStart, user_id: UserId, pomodoros: Pomodoros, limiter: PollLimiter
) -> JSONResponse:
    limiter.clear(user_id)
    result = await pomodoros.start(user_id=user_id, request=start)
    return respond(result, success_status=constants.HTTP_CREATED)


@router.post("/pomodoros/{pomodoro_id}/pause")
async def pause_pomodoro(pomodoro_id: str, user_id: UserId, pomodoros: Pomodoros, limiter: PollLimiter) -> JSONResponse:
    limiter.clear(user_id)
    return respond(await pomodoros.pause(user_id=user_id, pomodoro_id=pomodoro_id))


@router.post("/pomodoros/{pomodoro_id}/resume")
async def resume_pomodoro(
    pomodoro_id: str, user_id: UserId, pomodoros: Pomodoros, limiter: PollLimiter
) -> JSONResponse:
    limiter.clear(user_id)
    return respond(await pomodoros.resume(user_id=user_id, pomodoro_id=pomodoro_id))


@router.post("/pomodoros/{pomodoro_id}/finish")
async def finish_pomodoro(
    pomodoro_id: str, user_id: UserId, pomodoros: Pomodoros, limiter: PollLimiter
) -> JSONResponse:
    limiter.clear(user_id)
    return respond(await pomodoros.finish(user_id=user_id, pomodoro_id=pomodoro_id))


@router.get("/pomodoros/active")
async def get_active_pomodoro(user_id: UserId, pomodoros: Pomodoros, limiter: PollLimiter) -> JSONResponse:
    """Poll the active session. Answers carry X-Cache so clients can see cache hits."""
    limiter.check(user_id)
    result = await pomodoros.get_active(user_id=user_id)
    response = respond(result)
    response.headers["Cache-Control"] = f"private, max-age={int(pomodoros.cache.default_ttl_seconds)}"
    response.headers["X-Cache"] = "HIT" if result.cached else "MISS"
    return response


@router.get("/pomodoros/available-tasks")
async def list_available_tasks(
    user_id: UserId,
    board_id: str | None = None,
    priority: Priority | None = None,
    search: Annotated[str | None, Query(min_length=1)] = None,
) -> JSONResponse:
    result = await task_service.get_available_tasks(
        user_id=user_id, board_id=board_id, priority=priority, search=search
    )
    return respond(result)


@router.get("/pomodoros")
async def list_pomodoros(user_id: UserId, pomodoros: Pomodoros) -> JSONResponse:
    return respond(await pomodoros.list_for_user(user_id=user_id))


@router.get("/pomodoros/{pomodoro_id}")
async def get_pomodoro(pomodoro_id: str, user_id: UserId, pomodoros: Pomodoros) -> JSONResponse:
    return respond(await pomodoros.get_by_id(user_id=user_id, pomodoro_id=pomodoro_id))


# Pomodoro settings


@router.get("/settings")
async def get_settings(user_id: UserId) -> JSONResponse:
    return respond(await settings_service.get_settings(user_id=user_id))


@router.patch("/settings")
async def update_settings(update: SettingsUpdate, user_id: UserId) -> JSONResponse:
    return respond(await settings_service.update_settings(user_id=user_id, update=update))


# Garden


@router.get("/garden")
async def get_garden(user_id: UserId, filters: Annotated[FlowerFilters, Query()]) -> JSONResponse:
    return respond(await garden_service.get_garden(user_id=user_id, filters=filters))


@router.get("/garden/stats")
async def get_garden_stats(user_id: UserId) -> JSONResponse:
    return respond(await garden_service.get_garden_stats(user_id=user_id))


@router.get("/garden/{flower_id}")
async def get_flower(flower_id: str, user_id: UserId) -> JSONResponse:
    return respond(await garden_service.get_flower(user_id=user_id, flower_id=flower_id))


@router.patch("/garden/{flower_id}")
async def update_flower(flower_id: str, update: FlowerUpdate, user_id: UserId) -> JSONResponse:
    return respond(await garden_service.update_flower(user_id=user_id, flower_id=flower_id, update=update))


@router.delete("/garden/{flower_id}")
async def delete_flower(flower_id: str, user_id: UserId) -> JSONResponse:
    return respond(await garden_service.delete_flower(user_id=user_id, flower_id=flower_id))


# Statistics


@router.get("/stats/overview")
async def get_overview_stats(user_id: UserId) -> JSONResponse:
    return respond(await stats_service.get_overview_stats(user_id=user_id))


@router.get("/stats/summary")
async def get_summary_stats(user_id: UserId) -> JSONResponse:
    return respond(await stats_service.get_summary_stats(user_id=user_id))


@router.get("/stats/tasks")
async def get_tasks_by_periods(user_id: UserId, include_incomplete: bool = False) -> JSONResponse:
    return respond(await stats_service.get_tasks_by_periods(user_id=user_id, include_incomplete=include_incomplete))


@router.get("/stats/productivity")
async def get_productivity(user_id: UserId, start: datetime, end: datetime) -> JSONResponse:
    return respond(await stats_service.get_productivity_data_for_period(user_id=user_id, start=start, end=end))


@router.get("/stats/comparative")
async def get_comparative_stats(user_id: UserId) -> JSONResponse:
    return respond(await stats_service.get_comparative_stats(user_id=user_id))
