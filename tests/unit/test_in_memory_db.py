"""Tests for the in-memory store used by the unit tests."""

from datetime import datetime

import pytest

from src.core.db_client import DatabaseError, RecordNotFoundError
from src.domain.pomodoro import PomodoroStatus


@pytest.mark.unit
class TestInMemoryDBClient:
    """Tests that the fake behaves like the SQLite client for the features services rely on."""

    async def test_create_assigns_string_ids_and_serializes(self, in_memory_db):
        record = await in_memory_db.create_record(
            "pomodoros",
            {"status": PomodoroStatus.PAUSED, "started_at": datetime(2025, 1, 1, 9), "tags": ["a"]},
        )

        assert isinstance(record["id"], str)
        assert record["status"] == "PAUSED"
        assert record["started_at"] == "2025-01-01T09:00:00.000000"
        assert record["tags"] == '["a"]'

    async def test_missing_record(self, in_memory_db):
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.get_record("tasks", "1")

    async def test_or_group_filter(self, in_memory_db):
        for status in ("IN_PROGRESS", "PAUSED", "COMPLETED"):
            await in_memory_db.create_record("pomodoros", {"user_id": "u", "status": status})

        records = await in_memory_db.list_records(
            "pomodoros", filter_query='user_id = "u" && (status = "IN_PROGRESS" || status = "PAUSED")'
        )

        assert sorted(r["status"] for r in records) == ["IN_PROGRESS", "PAUSED"]

    async def test_boolean_and_range_filters(self, in_memory_db):
        await in_memory_db.create_record("tasks", {"completed": True, "updated_at": "2025-01-02T00:00:00.000000"})
        await in_memory_db.create_record("tasks", {"completed": False, "updated_at": "2025-01-02T00:00:00.000000"})
        await in_memory_db.create_record("tasks", {"completed": True, "updated_at": "2025-02-01T00:00:00.000000"})

        count = await in_memory_db.count_records(
            "tasks",
            filter_query='completed = "true" && updated_at >= "2025-01-01T00:00:00.000000" '
            '&& updated_at <= "2025-01-31T23:59:59.999999"',
        )

        assert count == 1

    async def test_sort_descending(self, in_memory_db):
        for position in (2, 0, 1):
            await in_memory_db.create_record("columns", {"position": position})

        records = await in_memory_db.list_records("columns", sort="-position")

        assert [r["position"] for r in records] == [2, 1, 0]

    async def test_failing_collection(self, in_memory_db):
        in_memory_db.failing_collections.add("flowers")

        with pytest.raises(DatabaseError):
            await in_memory_db.create_record("flowers", {})

    async def test_invalid_filter(self, in_memory_db):
        await in_memory_db.create_record("tasks", {})

        with pytest.raises(DatabaseError):
            await in_memory_db.list_records("tasks", filter_query="title is nice")

    async def test_conditional_update(self, in_memory_db):
        record = await in_memory_db.create_record("pomodoros", {"status": PomodoroStatus.IN_PROGRESS})
        guard = f'status = "{PomodoroStatus.IN_PROGRESS}"'

        updated = await in_memory_db.update_record(
            "pomodoros", record["id"], {"status": PomodoroStatus.COMPLETED}, filter_query=guard
        )
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.update_record(
                "pomodoros", record["id"], {"status": PomodoroStatus.PAUSED}, filter_query=guard
            )

        assert updated["status"] == PomodoroStatus.COMPLETED

    async def test_escaped_quotes_in_filter_values(self, in_memory_db):
        await in_memory_db.create_record("tasks", {"user_id": 'o"brien'})

        found = await in_memory_db.list_records("tasks", filter_query='user_id = "o\\"brien"')

        assert len(found) == 1
