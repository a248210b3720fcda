"""Pure Python in-memory database for unit testing."""

import asyncio
import copy
import json
from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Any

from src.core.db_client import (
    COMPARISON_PATTERN,
    DatabaseError,
    RecordNotFoundError,
    comparison_value,
    split_top_level,
    to_db_timestamp,
)


USER_ID = "user-1"
OTHER_USER_ID = "user-2"
FIXED_NOW = datetime(2025, 6, 11, 14, 30)  # a Wednesday


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _store_value(value: Any) -> Any:
    """Mirror how the SQLite client serializes values on write."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str) and value.replace(".", "", 1).isdigit():
        return float(value)
    return None


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the public functions of ``src.core.db_client`` closely enough for
    service tests: the same filter mini-language, ``-field`` sorting, string
    ids, ``RecordNotFoundError`` for missing ids. Every call is counted in
    ``call_counts`` and collections listed in ``failing_collections`` raise
    ``DatabaseError`` on write. Reads take their snapshot and then yield to the
    event loop once, the way a real store round-trip does, so concurrent
    callers can act on stale reads.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._id_counter = 1000
        self.call_counts: Counter[str] = Counter()
        self.failing_collections: set[str] = set()

    @property
    def read_count(self) -> int:
        """Number of read operations issued so far."""
        return sum(self.call_counts[name] for name in ("get_record", "list_records", "count_records"))

    def _check_writable(self, collection: str) -> None:
        if collection in self.failing_collections:
            raise DatabaseError(f"Simulated failure writing to {collection}")

    async def create_record(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record in the specified collection.

        Raises:
            DatabaseError: If the collection is marked as failing
        """
        self.call_counts["create_record"] += 1
        if not isinstance(data, dict):
            raise DatabaseError(f"Data must be a dictionary, got {type(data)}")
        self._check_writable(collection)

        record_id = str(self._id_counter)
        self._id_counter += 1

        record = {"id": record_id, **{key: _store_value(value) for key, value in data.items()}}
        self._collections.setdefault(collection, {})[record_id] = record
        return copy.deepcopy(record)

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        """Get a record by ID from the specified collection.

        Raises:
            RecordNotFoundError: If record not found
        """
        self.call_counts["get_record"] += 1
        record = copy.deepcopy(self._collections.get(collection, {}).get(record_id))
        await asyncio.sleep(0)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return record

    async def update_record(
        self, collection: str, record_id: str, data: dict[str, Any], filter_query: str = ""
    ) -> dict[str, Any]:
        """Update an existing record, optionally only while it still matches ``filter_query``.

        Raises:
            RecordNotFoundError: If record not found or no longer matching
            DatabaseError: If the collection is marked as failing
        """
        self.call_counts["update_record"] += 1
        self._check_writable(collection)
        record = self._collections.get(collection, {}).get(record_id)
        if record is None or (filter_query and not self._parse_filter(filter_query, record)):
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

        record.update({key: _store_value(value) for key, value in data.items()})
        return copy.deepcopy(record)

    async def delete_record(self, collection: str, record_id: str) -> None:
        """Delete a record from the collection.

        Raises:
            RecordNotFoundError: If record not found
        """
        self.call_counts["delete_record"] += 1
        records = self._collections.get(collection, {})
        if record_id not in records:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        del records[record_id]

    async def list_records(
        self,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting and pagination."""
        self.call_counts["list_records"] += 1
        records = self._matching(collection, filter_query)
        records = self._apply_sort(records, sort)

        start_idx = (page - 1) * per_page
        page_records = [copy.deepcopy(r) for r in records[start_idx : start_idx + per_page]]
        await asyncio.sleep(0)
        return page_records

    async def get_first_record(self, collection: str, filter_query: str, sort: str = "") -> dict[str, Any] | None:
        """Get the first matching record or None."""
        records = await self.list_records(collection, per_page=1, filter_query=filter_query, sort=sort)
        return records[0] if records else None

    async def count_records(self, collection: str, filter_query: str = "") -> int:
        """Count matching records."""
        self.call_counts["count_records"] += 1
        return len(self._matching(collection, filter_query))

    def all(self, collection: str) -> list[dict[str, Any]]:
        """Every stored record of a collection, for assertions."""
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    def _matching(self, collection: str, filter_query: str) -> list[dict[str, Any]]:
        records = list(self._collections.get(collection, {}).values())
        if filter_query:
            records = [r for r in records if self._parse_filter(filter_query, r)]
        return records

    def _parse_filter(self, filter_str: str, record: dict[str, Any]) -> bool:
        """Evaluate a filter expression against a record.

        Supports ``=``, ``!=``, ``>``, ``<``, ``>=``, ``<=``, ``~`` comparisons
        joined by ``&&``, with parenthesized ``||`` groups.

        Raises:
            DatabaseError: For invalid filter syntax
        """
        for part in split_top_level(filter_str, "&&"):
            if part.startswith("(") and part.endswith(")"):
                alternatives = split_top_level(part[1:-1], "||")
                if not any(self._compare(alt, record) for alt in alternatives):
                    return False
            elif not self._compare(part, record):
                return False
        return True

    @staticmethod
    def _compare(condition: str, record: dict[str, Any]) -> bool:
        match = COMPARISON_PATTERN.match(condition)
        if not match:
            raise DatabaseError(f"Invalid filter syntax: {condition}")

        field, op = match.group(1), match.group(2)
        raw = comparison_value(match)
        actual = record.get(field)

        if raw.lower() in ("true", "false"):
            expected_bool = raw.lower() == "true"
            if op == "=":
                return bool(actual) == expected_bool
            if op == "!=":
                return bool(actual) != expected_bool

        if op == "~":
            return actual is not None and raw.lower() in str(actual).lower()
        if actual is None:
            return op == "!="

        actual_num, raw_num = _as_number(actual), _as_number(raw)
        left, right = (actual_num, raw_num) if actual_num is not None and raw_num is not None else (str(actual), raw)

        return {
            "=": left == right,
            "!=": left != right,
            ">": left > right,
            "<": left < right,
            ">=": left >= right,
            "<=": left <= right,
        }[op]

    @staticmethod
    def _apply_sort(records: list[dict], sort: str) -> list[dict]:
        """Sort by ``-field``, ``+field`` or ``field [ASC|DESC]``, oldest id first otherwise."""
        records = sorted(records, key=lambda r: int(r["id"]))
        if not sort:
            return records

        order = sort.strip()
        reverse = order.startswith("-") or order.upper().endswith(" DESC")
        field = order.lstrip("+-").split()[0]

        return sorted(
            records,
            key=lambda r: (r.get(field) is None, r.get(field) if r.get(field) is not None else ""),
            reverse=reverse,
        )
