"""In-memory cache for active pomodoro lookups with TTL support."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.core.config import settings


logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "active_session_cache_sweep"


@dataclass(frozen=True)
class CacheEntry:
    """A cached snapshot. ``value`` is None when the user had no active session."""

    value: Any
    written_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.written_at < self.ttl_seconds


class ActiveSessionCache:
    """Thread-safe per-user cache of the active pomodoro snapshot.

    Entries are served only while younger than their TTL. Expired entries are
    evicted lazily on read and eagerly by a periodic sweep job.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: float = settings.active_session_cache_ttl_seconds,
        sweep_interval_seconds: float = settings.active_session_cache_sweep_seconds,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.default_ttl_seconds = default_ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._scheduler: AsyncIOScheduler | None = None

        # Health tracking
        self._hits = 0
        self._misses = 0
        self._total_operations = 0
        self._last_sweep: float | None = None

    def get_health_status(self) -> dict[str, Any]:
        """Get cache health status.

        Returns:
            Dict with entry count, hit/miss counters and sweep state
        """
        with self._lock:
            return {
                "enabled": True,
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "total_operations": self._total_operations,
                "last_sweep": self._last_sweep,
                "sweeping": self._scheduler is not None,
            }

    async def get(self, user_id: str) -> CacheEntry | None:
        """Return the user's entry if still fresh, evicting it otherwise."""
        with self._lock:
            self._total_operations += 1
            entry = self._entries.get(user_id)
            if entry is None:
                self._misses += 1
                return None

            if not entry.is_fresh(self._clock()):
                del self._entries[user_id]
                self._misses += 1
                logger.debug("Evicted stale active session entry", extra={"user_id": user_id})
                return None

            self._hits += 1
            return entry

    async def set(self, user_id: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a snapshot for the user, replacing any existing entry."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[user_id] = CacheEntry(value=value, written_at=self._clock(), ttl_seconds=ttl)
            self._total_operations += 1

    async def invalidate(self, user_id: str) -> None:
        """Drop the user's entry. Missing entries are ignored."""
        with self._lock:
            self._entries.pop(user_id, None)
            self._total_operations += 1

    async def sweep_expired(self) -> int:
        """Evict every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [user_id for user_id, entry in self._entries.items() if not entry.is_fresh(now)]
            for user_id in expired:
                del self._entries[user_id]
            self._last_sweep = now

        if expired:
            logger.debug("Swept expired active session entries", extra={"count": len(expired)})
        return len(expired)

    def start(self, scheduler: AsyncIOScheduler) -> None:
        """Register the periodic sweep on the given scheduler."""
        scheduler.add_job(
            self.sweep_expired,
            "interval",
            seconds=self.sweep_interval_seconds,
            id=SWEEP_JOB_ID,
            name="Sweep expired active session cache entries",
            replace_existing=True,
        )
        self._scheduler = scheduler
        logger.info("Active session cache sweep scheduled", extra={"interval": self.sweep_interval_seconds})

    async def close(self) -> None:
        """Stop the sweep job and drop every entry."""
        if self._scheduler is not None:
            if self._scheduler.get_job(SWEEP_JOB_ID) is not None:
                self._scheduler.remove_job(SWEEP_JOB_ID)
            self._scheduler = None

        with self._lock:
            self._entries.clear()
        logger.info("Active session cache closed")
