"""Board service for boards and their columns."""

import logging
from datetime import datetime
from typing import Any

from src.core import db_client
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, NotFoundError
from src.core.logging import span
from src.domain.board import Board, BoardDetail, Column, ColumnWithTasks
from src.domain.create_models import BoardCreate, ColumnCreate
from src.domain.update_models import BoardUpdate, ColumnUpdate


logger = logging.getLogger(__name__)


async def _load_owned(*, collection: str, record_id: str, user_id: str) -> dict[str, Any] | None:
    try:
        record = await db_client.get_record(collection=collection, record_id=record_id)
    except db_client.RecordNotFoundError:
        return None
    return record if record["user_id"] == user_id else None


async def load_owned_board(*, board_id: str, user_id: str) -> Board:
    """Return the board if it exists and belongs to the user.

    Raises:
        NotFoundError: If the board is absent or owned by someone else
    """
    record = await _load_owned(collection="boards", record_id=board_id, user_id=user_id)
    if record is None:
        raise NotFoundError(f"Board {board_id} not found", code=ErrorCode.ERR_BOARD_NOT_FOUND)
    return Board(**record)


async def load_owned_column(*, column_id: str, user_id: str) -> Column:
    """Return the column if it exists and belongs to the user.

    Raises:
        NotFoundError: If the column is absent or owned by someone else
    """
    record = await _load_owned(collection="columns", record_id=column_id, user_id=user_id)
    if record is None:
        raise NotFoundError(f"Column {column_id} not found", code=ErrorCode.ERR_COLUMN_NOT_FOUND)
    return Column(**record)


async def list_board_columns(*, board_id: str, user_id: str) -> list[Column]:
    """List a board's columns ordered by position."""
    with span("board_service.list_board_columns"):
        await load_owned_board(board_id=board_id, user_id=user_id)
        records = await db_client.list_all_records(
            collection="columns",
            filter_query=f'board_id = "{db_client.sanitize_param(board_id)}"',
            sort="position ASC",
        )
        return [Column(**r) for r in records]


async def _with_tasks(column: Column) -> ColumnWithTasks:
    from src.services import task_service  # noqa: PLC0415 - task_service imports this module

    records = await task_service.list_user_tasks(
        user_id=column.user_id,
        filter_query=f'column_id = "{db_client.sanitize_param(column.id)}"',
        sort="created_at",
    )
    return ColumnWithTasks(**column.model_dump(), tasks=[await task_service.to_task(r) for r in records])


async def _board_detail(board: Board) -> BoardDetail:
    with span("board_service.board_detail"):
        columns = await list_board_columns(board_id=board.id, user_id=board.user_id)
        return BoardDetail(**board.model_dump(), columns=[await _with_tasks(c) for c in columns])


@service_operation("board_service.create_board")
async def create_board(*, user_id: str, board: BoardCreate, now: datetime | None = None) -> Board:
    """Create a board for the user."""
    timestamp = now or datetime.now()
    record = await db_client.create_record(
        collection="boards",
        data={"user_id": user_id, "title": board.title, "created_at": timestamp, "updated_at": timestamp},
    )
    logger.info("Created board", extra={"user_id": user_id, "board_id": record["id"]})
    return Board(**record)


@service_operation("board_service.get_boards")
async def get_boards(*, user_id: str) -> list[BoardDetail]:
    """List the user's boards, newest first, with their columns and tasks."""
    records = await db_client.list_all_records(
        collection="boards",
        filter_query=f'user_id = "{db_client.sanitize_param(user_id)}"',
        sort="-created_at",
    )
    return [await _board_detail(Board(**r)) for r in records]


@service_operation("board_service.get_board")
async def get_board(*, user_id: str, board_id: str) -> BoardDetail:
    """Get one of the user's boards with its columns in order and their tasks."""
    board = await load_owned_board(board_id=board_id, user_id=user_id)
    return await _board_detail(board)


@service_operation("board_service.update_board")
async def update_board(
    *, user_id: str, board_id: str, update: BoardUpdate, now: datetime | None = None
) -> BoardDetail:
    """Rename one of the user's boards."""
    board = await load_owned_board(board_id=board_id, user_id=user_id)
    record = await db_client.update_record(
        collection="boards",
        record_id=board.id,
        data={"title": update.title, "updated_at": now or datetime.now()},
    )
    logger.info("Updated board", extra={"user_id": user_id, "board_id": board.id})
    return await _board_detail(Board(**record))


@service_operation("board_service.delete_board")
async def delete_board(*, user_id: str, board_id: str) -> dict[str, str]:
    """Delete a board. Its columns and their tasks go with it."""
    board = await load_owned_board(board_id=board_id, user_id=user_id)
    await db_client.delete_record(collection="boards", record_id=board.id)
    logger.info("Deleted board", extra={"user_id": user_id, "board_id": board_id})
    return {"id": board.id}


@service_operation("board_service.create_column")
async def create_column(*, user_id: str, column: ColumnCreate, now: datetime | None = None) -> Column:
    """Add a column to one of the user's boards."""
    board = await load_owned_board(board_id=column.board_id, user_id=user_id)
    timestamp = now or datetime.now()
    record = await db_client.create_record(
        collection="columns",
        data={
            "user_id": user_id,
            "board_id": board.id,
            "title": column.title,
            "position": column.position,
            "created_at": timestamp,
            "updated_at": timestamp,
        },
    )
    logger.info("Created column", extra={"user_id": user_id, "board_id": board.id, "column_id": record["id"]})
    return Column(**record)


@service_operation("board_service.get_columns")
async def get_columns(*, user_id: str, board_id: str) -> list[Column]:
    """List a board's columns ordered by position."""
    return await list_board_columns(board_id=board_id, user_id=user_id)


@service_operation("board_service.get_column")
async def get_column(*, user_id: str, column_id: str) -> ColumnWithTasks:
    """Get one of the user's columns with its tasks."""
    column = await load_owned_column(column_id=column_id, user_id=user_id)
    return await _with_tasks(column)


@service_operation("board_service.update_column")
async def update_column(
    *, user_id: str, column_id: str, update: ColumnUpdate, now: datetime | None = None
) -> Column:
    """Rename or reposition one of the user's columns. An empty update changes nothing."""
    column = await load_owned_column(column_id=column_id, user_id=user_id)
    changes = update.model_dump(exclude_none=True)
    if not changes:
        return column

    record = await db_client.update_record(
        collection="columns",
        record_id=column.id,
        data={**changes, "updated_at": now or datetime.now()},
    )
    logger.info("Updated column", extra={"user_id": user_id, "column_id": column.id, "fields": sorted(changes)})
    return Column(**record)


@service_operation("board_service.delete_column")
async def delete_column(*, user_id: str, column_id: str) -> dict[str, str]:
    """Delete a column. Its tasks go with it."""
    column = await load_owned_column(column_id=column_id, user_id=user_id)
    await db_client.delete_record(collection="columns", record_id=column.id)
    logger.info("Deleted column", extra={"user_id": user_id, "board_id": column.board_id, "column_id": column.id})
    return {"id": column.id}
