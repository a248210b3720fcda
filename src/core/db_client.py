"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import constants, settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when the store cannot complete an operation."""


class RecordNotFoundError(KeyError):
    """Raised when a record with the requested id does not exist."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in SQL queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def to_server_local(value: datetime) -> datetime:
    """Convert an aware timestamp to naive server-local time. Naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def to_db_timestamp(value: datetime) -> str:
    """Serialize a timestamp the way it is stored, so string comparisons sort chronologically."""
    return to_server_local(value).isoformat(timespec="microseconds")


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _parse_value(value: str, *, is_like: bool = False) -> str | int | float | bool | None:
    """Parse a string value to the appropriate Python type for SQLite."""
    if is_like:
        escaped = value.replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


COMPARISON_PATTERN = re.compile(r"""^(\w+)\s*(=|!=|>=|<=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'([^']*)')$""")


def comparison_value(match: re.Match[str]) -> str:
    """Return the literal of a matched comparison, undoing sanitize_param escapes."""
    if match.group(3) is not None:
        return json.loads(f'"{match.group(3)}"')
    return match.group(4)


def split_top_level(expression: str, separator: str) -> list[str]:
    """Split on a separator that sits outside quoted values and parentheses."""
    parts = []
    current = ""
    depth = 0
    quote = ""
    escaped = False
    i = 0

    while i < len(expression):
        char = expression[i]
        if quote:
            if escaped:
                escaped = False
            elif char == "\\" and quote == '"':
                escaped = True
            elif char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and expression.startswith(separator, i):
            parts.append(current.strip())
            current = ""
            i += len(separator)
            continue
        current += char
        i += 1

    if current.strip():
        parts.append(current.strip())
    return parts


def _parse_single_comparison(comparison: str) -> tuple[str, str | int | float | None]:
    """Parse a single comparison expression into a SQL condition and parameter."""
    match = COMPARISON_PATTERN.match(comparison.strip())
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field = match.group(1)
    op = match.group(2)
    raw_value = comparison_value(match)

    sql_op = _get_sql_operator(op)
    is_like = sql_op == "LIKE"
    value = _parse_value(raw_value, is_like=is_like)

    if is_like:
        return f"{field} LIKE ? ESCAPE '\\'", value
    return f"{field} {sql_op} ?", value


def _parse_or_group(or_group: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]  # Remove parentheses
    or_conditions = []
    or_params = []

    for part in split_top_level(inner, "||"):
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float | None]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list.

    Values are double-quoted and may carry the escapes ``sanitize_param`` adds;
    ``&&``, ``||`` and parentheses inside a quoted value are plain text.
    """
    if not filter_query:
        return "", []

    conditions = []
    params = []

    for part in split_top_level(filter_query, "&&"):
        # Handle parenthesized OR groups
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate ``-field`` / ``+field`` / ``field [ASC|DESC]`` into a safe ORDER BY clause."""
    safe_sort = "id ASC"
    if not sort:
        return safe_sort

    candidate = sort.strip()
    if candidate.startswith("-"):
        candidate = f"{candidate[1:]} DESC"
    elif candidate.startswith("+"):
        candidate = f"{candidate[1:]} ASC"

    if re.match(r"^[A-Za-z_][A-Za-z0-9_]*\s*(ASC|DESC)?$", candidate, re.IGNORECASE):
        return candidate

    logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
    return safe_sort


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    # Create new connection with async lock to prevent races
    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
        if conn is None:
            return
        await conn.close()
        logger.info(
            "Closed SQLite connection",
            extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema."""
    from src.core.schema import init_schema  # noqa: PLC0415 - schema imports this module

    conn = await get_connection(db_path=db_path)
    await init_schema(conn)


def _wrap_error(operation: str, collection: str, error: Exception) -> DatabaseError:
    if isinstance(error, aiosqlite.OperationalError) and "no such table" in str(error):
        logger.error("Table not found", extra={"collection": collection})
        return DatabaseError(f"Table '{collection}' does not exist. Call init_db() first.")
    logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(error)})
    return DatabaseError(f"Failed to {operation.replace('_', ' ')} in {collection}: {error}")


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_serialize_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
        record_id = cursor.lastrowid
    except aiosqlite.Error as e:
        raise _wrap_error("create_record", collection, e) from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=str(record_id))


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not record_id.isdigit():
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    try:
        conn = await get_connection()
        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()
        columns = [description[0] for description in cursor.description]
    except aiosqlite.Error as e:
        raise _wrap_error("get_record", collection, e) from e

    if row is None:
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return _convert_record_ids(dict(zip(columns, row, strict=True)))


async def update_record(
    *, collection: str, record_id: str, data: dict[str, Any], filter_query: str = ""
) -> dict[str, Any]:
    """Update a record by ID and return the updated record.

    With ``filter_query`` the write only applies while the record still matches
    it; a record that no longer matches raises RecordNotFoundError like a
    missing one.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_collection_name(collection)
    if not record_id.isdigit():
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    guard_clause, guard_params = parse_filter(filter_query)

    try:
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_serialize_value(val) for val in data.values()]
        values.append(int(record_id))
        values.extend(guard_params)

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
        if guard_clause:
            query = f"{query} AND {guard_clause}"
        cursor = await conn.execute(query, values)
        await conn.commit()
    except aiosqlite.Error as e:
        raise _wrap_error("update_record", collection, e) from e

    if cursor.rowcount == 0:
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not record_id.isdigit():
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()
    except aiosqlite.Error as e:
        raise _wrap_error("delete_record", collection, e) from e

    if cursor.rowcount == 0:
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    _validate_collection_name(collection)

    where_clause = ""
    params: list[Any] = []
    if filter_query:
        where_clause, params = parse_filter(filter_query)
        where_clause = f"WHERE {where_clause}"

    offset = (page - 1) * per_page
    query = f"SELECT * FROM {collection} {where_clause} ORDER BY {parse_sort(sort)} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
    params.extend([per_page, offset])

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
        columns = [description[0] for description in cursor.description]
    except aiosqlite.Error as e:
        raise _wrap_error("list_records", collection, e) from e

    records = [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def list_all_records(
    *,
    collection: str,
    filter_query: str = "",
    sort: str = "",
    batch_size: int = constants.DEFAULT_PER_PAGE_LIMIT,
) -> list[dict[str, Any]]:
    """Page through list_records until every matching record has been fetched."""
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await list_records(
            collection=collection,
            page=page,
            per_page=batch_size,
            filter_query=filter_query,
            sort=sort,
        )
        records.extend(batch)
        if len(batch) < batch_size:
            return records
        page += 1


async def get_first_record(*, collection: str, filter_query: str, sort: str = "") -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, per_page=1, filter_query=filter_query, sort=sort)
    return records[0] if records else None


async def count_records(*, collection: str, filter_query: str = "") -> int:
    """Count records matching the filter."""
    _validate_collection_name(collection)

    where_clause, params = parse_filter(filter_query)
    query = f"SELECT COUNT(*) FROM {collection}"  # noqa: S608 - collection is validated
    if where_clause:
        query = f"{query} WHERE {where_clause}"

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, params)
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        raise _wrap_error("count_records", collection, e) from e

    return int(row[0]) if row else 0
