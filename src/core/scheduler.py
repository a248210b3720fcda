"""Scheduler for periodic background jobs."""

import logging
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.core.cache_client import ActiveSessionCache


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


def start_scheduler(*, cache: ActiveSessionCache) -> None:
    """Start the scheduler and register all jobs.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")

    cache.start(scheduler)

    scheduler.start()
    logger.info("Scheduler started successfully", extra={"jobs": len(scheduler.get_jobs())})


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    if not scheduler.running:
        return
    logger.info("Stopping scheduler")
    scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped")


def get_scheduler_status() -> dict[str, Any]:
    """Describe the scheduler and its registered jobs."""
    jobs = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in scheduler.get_jobs()
    ]
    return {"running": scheduler.running, "jobs": jobs}
