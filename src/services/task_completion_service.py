"""Task completion trigger: closes tasks whose pomodoro goal is met and grants flowers."""

import logging
from datetime import datetime
from typing import Any

from src.core import db_client
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, InvalidStateError
from src.core.logging import log_with_user_context
from src.domain.flower import Flower
from src.domain.task import Priority
from src.models.service_models import CompletionResult
from src.services import garden_service, task_service


logger = logging.getLogger(__name__)


async def _mark_completed(*, task_id: str, now: datetime) -> bool:
    """Flip the task to completed, returning False if another request already did."""
    try:
        await db_client.update_record(
            collection="tasks",
            record_id=task_id,
            data={"completed": True, "updated_at": now},
            filter_query='completed = "false"',
        )
    except db_client.RecordNotFoundError:
        return False
    return True


async def _grant_flowers(*, user_id: str, task_id: str, priority: Priority, now: datetime) -> list[Flower] | None:
    """Create the reward flowers, returning None when the garden write fails.

    A failed reward never undoes the task completion that earned it.
    """
    result = await garden_service.create_flower_from_task(user_id=user_id, task_id=task_id, priority=priority, now=now)
    if not result.success:
        log_with_user_context(
            logger,
            "error",
            "Flower creation failed after task completion",
            user_id=user_id,
            task_id=task_id,
            code=result.error.code if result.error else None,
        )
        return None
    return result.data


@service_operation("task_completion_service.check_after_session")
async def check_after_session(*, task_id: str, user_id: str, now: datetime | None = None) -> CompletionResult:
    """Complete the task if its finished pomodoros have reached the goal.

    Called after every finished pomodoro. Tasks already completed are reported
    as such without granting further flowers.
    """
    record = await task_service.load_owned_task(task_id=task_id, user_id=user_id)
    completed_pomodoros = await task_service.count_completed_pomodoros(task_id=task_id)
    required = int(record["pomodoro_goal"])

    if bool(record["completed"]) or completed_pomodoros < required:
        return CompletionResult(
            task_completed=bool(record["completed"]),
            completed_pomodoros=completed_pomodoros,
            required_pomodoros=required,
        )

    timestamp = now or datetime.now()
    if not await _mark_completed(task_id=task_id, now=timestamp):
        return CompletionResult(
            task_completed=True, completed_pomodoros=completed_pomodoros, required_pomodoros=required
        )
    log_with_user_context(
        logger, "info", "Task completed by pomodoro goal", user_id=user_id, task_id=task_id, goal=required
    )

    flowers = await _grant_flowers(
        user_id=user_id, task_id=task_id, priority=Priority(record["priority"]), now=timestamp
    )
    return CompletionResult(
        task_completed=True,
        completed_pomodoros=completed_pomodoros,
        required_pomodoros=required,
        flowers_created=flowers is not None,
        flowers=flowers or [],
    )


@service_operation("task_completion_service.manual_complete")
async def manual_complete(*, task_id: str, user_id: str, now: datetime | None = None) -> CompletionResult:
    """Mark a task completed by hand.

    Flowers are granted only when the pomodoro goal had already been reached;
    completing early closes the task without a reward.
    """
    record = await task_service.load_owned_task(task_id=task_id, user_id=user_id)
    if bool(record["completed"]):
        raise InvalidStateError(f"Task {task_id} is already completed", code=ErrorCode.ERR_TASK_ALREADY_COMPLETED)

    completed_pomodoros = await task_service.count_completed_pomodoros(task_id=task_id)
    required = int(record["pomodoro_goal"])

    timestamp = now or datetime.now()
    if not await _mark_completed(task_id=task_id, now=timestamp):
        raise InvalidStateError(f"Task {task_id} is already completed", code=ErrorCode.ERR_TASK_ALREADY_COMPLETED)
    log_with_user_context(
        logger,
        "info",
        "Task completed manually",
        user_id=user_id,
        task_id=task_id,
        completed_pomodoros=completed_pomodoros,
        goal=required,
    )

    if completed_pomodoros < required:
        return CompletionResult(
            task_completed=True, completed_pomodoros=completed_pomodoros, required_pomodoros=required
        )

    flowers = await _grant_flowers(
        user_id=user_id, task_id=task_id, priority=Priority(record["priority"]), now=timestamp
    )
    return CompletionResult(
        task_completed=True,
        completed_pomodoros=completed_pomodoros,
        required_pomodoros=required,
        flowers_created=flowers is not None,
        flowers=flowers or [],
    )
