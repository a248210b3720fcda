"""Pytest configuration and fixtures for unit tests."""

from datetime import datetime

import pytest

from src.core import db_client
from src.core.cache_client import ActiveSessionCache
from src.domain.create_models import BoardCreate, ColumnCreate, TaskCreate
from src.domain.task import Priority
from src.services import board_service, task_service
from src.services.pomodoro_service import PomodoroService
from tests.unit.mocks import FIXED_NOW, USER_ID, FakeClock, InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)
    monkeypatch.setattr("src.core.db_client.count_records", in_memory_db.count_records)

    return in_memory_db


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """Initialized SQLite database in a temporary directory."""
    monkeypatch.setattr(db_client.settings, "sqlite_db_path", str(tmp_path / "lumi.db"))
    await db_client.init_db()
    yield
    await db_client.close_connection()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    """Active session cache driven by a manual clock."""
    return ActiveSessionCache(default_ttl_seconds=3.0, sweep_interval_seconds=30, clock=fake_clock)


@pytest.fixture
def pomodoro_service(patched_db, cache):
    """PomodoroService over the in-memory store with a fixed wall clock."""
    return PomodoroService(cache=cache, clock=lambda: FIXED_NOW)


@pytest.fixture
async def column(patched_db):
    """A board with one column owned by USER_ID."""
    board = await board_service.create_board(user_id=USER_ID, board=BoardCreate(title="Work"))
    result = await board_service.create_column(
        user_id=USER_ID, column=ColumnCreate(board_id=board.data.id, title="To do", position=0)
    )
    return result.data


@pytest.fixture
def make_task(column):
    """Factory creating tasks in the USER_ID column."""

    async def _make_task(
        *,
        title: str = "Write report",
        priority: Priority = Priority.MEDIUM,
        pomodoro_goal: int = 1,
        now: datetime = FIXED_NOW,
        **kwargs,
    ):
        result = await task_service.create_task(
            user_id=USER_ID,
            task=TaskCreate(
                title=title, priority=priority, pomodoro_goal=pomodoro_goal, column_id=column.id, **kwargs
            ),
            now=now,
        )
        assert result.success, result.error
        return result.data

    return _make_task
