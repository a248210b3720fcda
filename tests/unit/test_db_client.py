"""Tests for the SQLite client: filter parsing and a real temporary database."""

from datetime import datetime, timedelta, timezone

import pytest

from src.core import db_client
from src.core.db_client import DatabaseError, RecordNotFoundError


@pytest.mark.unit
class TestParseFilter:
    """Tests for parse_filter and parse_sort."""

    def test_empty(self):
        assert db_client.parse_filter("") == ("", [])

    def test_and_with_typed_values(self):
        clause, params = db_client.parse_filter('user_id = "u1" && completed = "true" && pomodoro_goal >= "3"')

        assert clause == "user_id = ? AND completed = ? AND pomodoro_goal >= ?"
        assert params == ["u1", True, 3]

    def test_or_group(self):
        clause, params = db_client.parse_filter('user_id = "u1" && (status = "IN_PROGRESS" || status = "PAUSED")')

        assert clause == "user_id = ? AND (status = ? OR status = ?)"
        assert params == ["u1", "IN_PROGRESS", "PAUSED"]

    def test_like_escapes_wildcards(self):
        clause, params = db_client.parse_filter('title ~ "50%_off"')

        assert clause == "title LIKE ? ESCAPE '\\'"
        assert params == ["%50\\%\\_off%"]

    def test_invalid_syntax(self):
        with pytest.raises(ValueError, match="Invalid filter syntax"):
            db_client.parse_filter("title == nice")

    @pytest.mark.parametrize(
        ("sort", "expected"),
        [
            ("", "id ASC"),
            ("-created_at", "created_at DESC"),
            ("+position", "position ASC"),
            ("position ASC", "position ASC"),
            ("id; DROP TABLE tasks", "id ASC"),
        ],
    )
    def test_parse_sort(self, sort, expected):
        assert db_client.parse_sort(sort) == expected

    def test_sanitize_param_escapes_quotes(self):
        assert db_client.sanitize_param('a"b') == 'a\\"b'

    def test_escaped_quote_round_trips(self):
        user_id = 'o"brien'
        clause, params = db_client.parse_filter(f'user_id = "{db_client.sanitize_param(user_id)}"')

        assert clause == "user_id = ?"
        assert params == [user_id]

    def test_operators_inside_values_are_text(self):
        clause, params = db_client.parse_filter('title = "a && (b || c)" && (status = "x||y" || status = "PAUSED")')

        assert clause == "title = ? AND (status = ? OR status = ?)"
        assert params == ["a && (b || c)", "x||y", "PAUSED"]

    def test_single_quoted_value(self):
        assert db_client.parse_filter("title = 'plain'") == ("title = ?", ["plain"])

    def test_timestamps_sort_as_strings(self):
        early = db_client.to_db_timestamp(datetime(2025, 1, 1, 9, 0))
        late = db_client.to_db_timestamp(datetime(2025, 1, 1, 9, 0, 0, 1))

        assert early < late

    def test_aware_timestamps_become_server_local(self):
        aware = datetime(2025, 6, 11, 12, 0, tzinfo=timezone(timedelta(hours=5)))

        local = db_client.to_server_local(aware)

        assert local.tzinfo is None
        assert local == aware.astimezone().replace(tzinfo=None)
        assert db_client.to_db_timestamp(aware) == local.isoformat(timespec="microseconds")

    def test_naive_timestamps_pass_through(self):
        naive = datetime(2025, 6, 11, 12, 0)

        assert db_client.to_server_local(naive) is naive


async def _task(*, user_id: str = "u1") -> dict:
    now = datetime(2025, 6, 11, 9, 0)
    board = await db_client.create_record(
        collection="boards", data={"user_id": user_id, "title": "B", "created_at": now, "updated_at": now}
    )
    column = await db_client.create_record(
        collection="columns",
        data={"user_id": user_id, "board_id": board["id"], "title": "C", "created_at": now, "updated_at": now},
    )
    return await db_client.create_record(
        collection="tasks",
        data={
            "user_id": user_id,
            "column_id": column["id"],
            "title": "T",
            "priority": "HIGH",
            "created_at": now,
            "updated_at": now,
        },
    )


def _pomodoro(task: dict, status: str) -> dict:
    now = datetime(2025, 6, 11, 9, 0)
    return {
        "user_id": task["user_id"],
        "task_id": task["id"],
        "duration": 25,
        "break_time": 5,
        "status": status,
        "started_at": now,
        "created_at": now,
    }


@pytest.mark.unit
class TestSQLiteStore:
    """Tests against a real aiosqlite database."""

    async def test_crud_round_trip(self, sqlite_db):
        task = await _task()

        assert task["id"].isdigit()
        assert task["column_id"].isdigit()
        assert task["completed"] == 0
        assert task["created_at"] == "2025-06-11T09:00:00.000000"

        updated = await db_client.update_record(collection="tasks", record_id=task["id"], data={"completed": True})
        assert updated["completed"] == 1

        await db_client.delete_record(collection="tasks", record_id=task["id"])
        with pytest.raises(RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id=task["id"])

    async def test_non_numeric_id_is_not_found(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id="abc")

    async def test_one_active_pomodoro_per_user(self, sqlite_db):
        task = await _task()
        await db_client.create_record(collection="pomodoros", data=_pomodoro(task, "IN_PROGRESS"))

        with pytest.raises(DatabaseError):
            await db_client.create_record(collection="pomodoros", data=_pomodoro(task, "PAUSED"))

        await db_client.create_record(collection="pomodoros", data=_pomodoro(task, "COMPLETED"))
        assert await db_client.count_records(collection="pomodoros") == 2

    async def test_filter_sort_and_paging(self, sqlite_db):
        task = await _task()
        for _ in range(3):
            await db_client.create_record(collection="pomodoros", data=_pomodoro(task, "COMPLETED"))

        page = await db_client.list_records(
            collection="pomodoros", filter_query='status = "COMPLETED"', sort="-id", per_page=2
        )
        everything = await db_client.list_all_records(collection="pomodoros", batch_size=2)

        assert [int(r["id"]) for r in page] == [3, 2]
        assert len(everything) == 3

    async def test_settings_unique_per_user(self, sqlite_db):
        data = {
            "user_id": "u1",
            "focus_duration": 25,
            "short_break_duration": 5,
            "long_break_duration": 15,
            "created_at": datetime(2025, 6, 11),
            "updated_at": datetime(2025, 6, 11),
        }
        await db_client.create_record(collection="pomodoro_settings", data=data)

        with pytest.raises(DatabaseError):
            await db_client.create_record(collection="pomodoro_settings", data=data)

    async def test_invalid_collection_name(self, sqlite_db):
        with pytest.raises(ValueError, match="Invalid collection name"):
            await db_client.count_records(collection="tasks; DROP TABLE tasks")

    async def test_conditional_update_applies_once(self, sqlite_db):
        task = await _task()
        pomodoro = await db_client.create_record(collection="pomodoros", data=_pomodoro(task, "IN_PROGRESS"))
        guard = '(status = "IN_PROGRESS" || status = "PAUSED")'

        first = await db_client.update_record(
            collection="pomodoros", record_id=pomodoro["id"], data={"status": "COMPLETED"}, filter_query=guard
        )
        with pytest.raises(RecordNotFoundError):
            await db_client.update_record(
                collection="pomodoros", record_id=pomodoro["id"], data={"status": "COMPLETED"}, filter_query=guard
            )

        assert first["status"] == "COMPLETED"

    async def test_quoted_user_id_matches(self, sqlite_db):
        user_id = 'o"brien (x) && y'
        task = await _task(user_id=user_id)

        found = await db_client.list_records(
            collection="tasks", filter_query=f'user_id = "{db_client.sanitize_param(user_id)}"'
        )

        assert [r["id"] for r in found] == [task["id"]]
