"""Pytest configuration and shared fixtures."""

import pytest

from src.core.config import settings


@pytest.fixture(autouse=True)
def isolated_database(tmp_path, monkeypatch):
    """Point the SQLite path at the test's temp directory so no test touches ./data."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "lumi-test.db"))
