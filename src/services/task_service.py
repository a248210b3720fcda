"""Task service for CRUD operations on board tasks."""

import logging
from datetime import datetime
from typing import Any

from src.core import db_client
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, InvalidInputError, NotFoundError
from src.core.logging import span
from src.domain.create_models import TaskCreate
from src.domain.pomodoro import PomodoroStatus
from src.domain.task import Priority, Task
from src.domain.update_models import TaskUpdate
from src.services import board_service


logger = logging.getLogger(__name__)

COLLECTION = "tasks"


def _validate_date_order(start_at: datetime | None, end_at: datetime | None) -> None:
    if start_at is None or end_at is None:
        return
    if db_client.to_server_local(end_at) <= db_client.to_server_local(start_at):
        raise InvalidInputError("end_at must be after start_at", code=ErrorCode.ERR_INVALID_DATE_RANGE)


async def count_completed_pomodoros(*, task_id: str) -> int:
    """Count COMPLETED pomodoros recorded against a task."""
    return await db_client.count_records(
        collection="pomodoros",
        filter_query=f'task_id = "{db_client.sanitize_param(task_id)}" && status = "{PomodoroStatus.COMPLETED}"',
    )


async def to_task(record: dict[str, Any]) -> Task:
    """Build a Task from a store record, attaching its completed pomodoro count."""
    completed_pomodoros = await count_completed_pomodoros(task_id=record["id"])
    return Task(**record, completed_pomodoros=completed_pomodoros)


async def load_owned_task(*, task_id: str, user_id: str) -> dict[str, Any]:
    """Return the task record if it exists and belongs to the user.

    Raises:
        NotFoundError: If the task is absent or owned by someone else
    """
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
    except db_client.RecordNotFoundError:
        record = None

    if record is None or record["user_id"] != user_id:
        raise NotFoundError(f"Task {task_id} not found", code=ErrorCode.ERR_TASK_NOT_FOUND)
    return record


async def list_user_tasks(*, user_id: str, filter_query: str = "", sort: str = "-created_at") -> list[dict[str, Any]]:
    """List every task record owned by the user, optionally narrowed by an extra filter."""
    owner_filter = f'user_id = "{db_client.sanitize_param(user_id)}"'
    query = f"{owner_filter} && {filter_query}" if filter_query else owner_filter
    return await db_client.list_all_records(collection=COLLECTION, filter_query=query, sort=sort)


@service_operation("task_service.create_task")
async def create_task(*, user_id: str, task: TaskCreate, now: datetime | None = None) -> Task:
    """Create a task in one of the user's columns."""
    _validate_date_order(task.start_at, task.end_at)
    column = await board_service.load_owned_column(column_id=task.column_id, user_id=user_id)

    timestamp = now or datetime.now()
    record = await db_client.create_record(
        collection=COLLECTION,
        data={
            "user_id": user_id,
            "column_id": column.id,
            "title": task.title,
            "description": task.description,
            "priority": task.priority,
            "pomodoro_goal": task.pomodoro_goal,
            "completed": False,
            "start_at": task.start_at,
            "end_at": task.end_at,
            "created_at": timestamp,
            "updated_at": timestamp,
        },
    )

    logger.info("Created task", extra={"user_id": user_id, "task_id": record["id"], "column_id": column.id})
    return Task(**record)


@service_operation("task_service.get_tasks")
async def get_tasks(*, user_id: str) -> list[Task]:
    """List the user's tasks, newest first."""
    records = await list_user_tasks(user_id=user_id)
    return [await to_task(r) for r in records]


@service_operation("task_service.get_task")
async def get_task(*, user_id: str, task_id: str) -> Task:
    """Get one of the user's tasks."""
    record = await load_owned_task(task_id=task_id, user_id=user_id)
    return await to_task(record)


@service_operation("task_service.update_task")
async def update_task(*, user_id: str, task_id: str, update: TaskUpdate, now: datetime | None = None) -> Task:
    """Apply a partial update to a task.

    Date ordering is checked against the merged result, so moving only one end
    of the range past the other is rejected too.
    """
    record = await load_owned_task(task_id=task_id, user_id=user_id)
    changes = update.model_dump(exclude_none=True)
    if not changes:
        return await to_task(record)

    current = Task(**record)
    _validate_date_order(changes.get("start_at", current.start_at), changes.get("end_at", current.end_at))

    if "column_id" in changes:
        column = await board_service.load_owned_column(column_id=changes["column_id"], user_id=user_id)
        changes["column_id"] = column.id

    updated = await db_client.update_record(
        collection=COLLECTION,
        record_id=task_id,
        data={**changes, "updated_at": now or datetime.now()},
    )

    logger.info("Updated task", extra={"user_id": user_id, "task_id": task_id, "fields": sorted(changes)})
    return await to_task(updated)


@service_operation("task_service.delete_task")
async def delete_task(*, user_id: str, task_id: str) -> dict[str, str]:
    """Delete a task and its pomodoros."""
    record = await load_owned_task(task_id=task_id, user_id=user_id)
    await db_client.delete_record(collection=COLLECTION, record_id=record["id"])
    logger.info("Deleted task", extra={"user_id": user_id, "task_id": task_id})
    return {"id": record["id"]}


@service_operation("task_service.move_task")
async def move_task(*, user_id: str, task_id: str, column_id: str, now: datetime | None = None) -> Task:
    """Move a task to another of the user's columns."""
    await load_owned_task(task_id=task_id, user_id=user_id)
    column = await board_service.load_owned_column(column_id=column_id, user_id=user_id)

    updated = await db_client.update_record(
        collection=COLLECTION,
        record_id=task_id,
        data={"column_id": column.id, "updated_at": now or datetime.now()},
    )

    logger.info("Moved task", extra={"user_id": user_id, "task_id": task_id, "column_id": column.id})
    return await to_task(updated)


@service_operation("task_service.get_tasks_by_column")
async def get_tasks_by_column(*, user_id: str, column_id: str) -> list[Task]:
    """List the tasks in one of the user's columns."""
    column = await board_service.load_owned_column(column_id=column_id, user_id=user_id)
    records = await list_user_tasks(
        user_id=user_id,
        filter_query=f'column_id = "{db_client.sanitize_param(column.id)}"',
    )
    return [await to_task(r) for r in records]


@service_operation("task_service.get_available_tasks")
async def get_available_tasks(
    *,
    user_id: str,
    board_id: str | None = None,
    priority: Priority | None = None,
    search: str | None = None,
) -> list[Task]:
    """List incomplete tasks a pomodoro could be started on.

    Args:
        user_id: Owner of the tasks
        board_id: Only tasks in this board's columns
        priority: Only tasks with this priority
        search: Case-insensitive match against title or description

    Returns:
        Matching tasks, newest first
    """
    with span("task_service.get_available_tasks.query"):
        filters = ['completed = "false"']
        if priority is not None:
            filters.append(f'priority = "{priority}"')
        records = await list_user_tasks(user_id=user_id, filter_query=" && ".join(filters))

        if board_id is not None:
            columns = await board_service.list_board_columns(board_id=board_id, user_id=user_id)
            column_ids = {c.id for c in columns}
            records = [r for r in records if str(r["column_id"]) in column_ids]

        if search:
            needle = search.lower()
            records = [
                r
                for r in records
                if needle in r["title"].lower() or needle in (r.get("description") or "").lower()
            ]

    return [await to_task(r) for r in records]
