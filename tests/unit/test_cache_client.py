"""Unit tests for the active session cache."""

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.core.cache_client import SWEEP_JOB_ID, ActiveSessionCache


@pytest.mark.unit
class TestActiveSessionCache:
    """Tests for ActiveSessionCache get/set/invalidate semantics."""

    async def test_get_returns_fresh_entry(self, cache):
        await cache.set("u1", {"id": "1"})

        entry = await cache.get("u1")

        assert entry is not None
        assert entry.value == {"id": "1"}

    async def test_get_misses_unknown_user(self, cache):
        assert await cache.get("nobody") is None

    async def test_entry_expires_after_ttl(self, cache, fake_clock):
        await cache.set("u1", "snapshot")

        fake_clock.advance(2)
        assert await cache.get("u1") is not None

        fake_clock.advance(1)
        assert await cache.get("u1") is None
        assert cache.get_health_status()["entries"] == 0

    async def test_none_snapshot_is_a_hit(self, cache):
        """An idle user is cached as None, which is distinct from a miss."""
        await cache.set("u1", None)

        entry = await cache.get("u1")

        assert entry is not None
        assert entry.value is None

    async def test_set_overwrites_and_restarts_ttl(self, cache, fake_clock):
        await cache.set("u1", "old")
        fake_clock.advance(2.5)
        await cache.set("u1", "new")
        fake_clock.advance(2.5)

        entry = await cache.get("u1")

        assert entry is not None
        assert entry.value == "new"

    async def test_custom_ttl(self, cache, fake_clock):
        await cache.set("u1", "snapshot", ttl_seconds=10)
        fake_clock.advance(5)

        assert await cache.get("u1") is not None

    async def test_invalidate_removes_entry(self, cache):
        await cache.set("u1", "snapshot")

        await cache.invalidate("u1")

        assert await cache.get("u1") is None

    async def test_invalidate_missing_entry_is_noop(self, cache):
        await cache.invalidate("nobody")

    async def test_sweep_evicts_only_expired(self, cache, fake_clock):
        await cache.set("old", "a")
        fake_clock.advance(2)
        await cache.set("new", "b")
        fake_clock.advance(1.5)

        removed = await cache.sweep_expired()

        assert removed == 1
        assert await cache.get("old") is None
        assert await cache.get("new") is not None

    async def test_health_status_counts_hits_and_misses(self, cache):
        await cache.set("u1", "snapshot")
        await cache.get("u1")
        await cache.get("u2")

        status = cache.get_health_status()

        assert status["hits"] == 1
        assert status["misses"] == 1
        assert status["entries"] == 1


@pytest.mark.unit
class TestActiveSessionCacheLifecycle:
    """Tests for the periodic sweep registration."""

    async def test_start_registers_interval_job(self, fake_clock):
        scheduler = AsyncIOScheduler()
        cache = ActiveSessionCache(sweep_interval_seconds=30, clock=fake_clock)

        cache.start(scheduler)

        job = scheduler.get_job(SWEEP_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30
        assert cache.get_health_status()["sweeping"] is True

    async def test_close_removes_job_and_entries(self, fake_clock):
        scheduler = AsyncIOScheduler()
        cache = ActiveSessionCache(clock=fake_clock)
        cache.start(scheduler)
        await cache.set("u1", "snapshot")

        await cache.close()

        assert scheduler.get_job(SWEEP_JOB_ID) is None
        assert cache.get_health_status()["entries"] == 0
