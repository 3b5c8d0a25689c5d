"""APScheduler — follow-up email jobs plus a periodic storage connectivity watch."""

import asyncio
import logging

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

CONNECTION_WATCH_MINUTES = 1


def build_scheduler() -> AsyncIOScheduler:
    """Scheduler with a memory-only job store (jobs do not survive a restart)."""
    return AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        job_defaults={"coalesce": True, "misfire_grace_time": 3600},
        timezone="UTC",
    )


def register_connection_watch(scheduler: AsyncIOScheduler, storage) -> None:
    """Re-probe the persistent backend so a recovered connection is picked up."""

    async def watch_connection():
        try:
            status = await asyncio.to_thread(storage.connection_status)
            logger.debug("Storage connectivity: %s", status)
        except Exception as e:
            logger.error("Storage connectivity check failed: %s", e)

    scheduler.add_job(
        watch_connection,
        trigger="interval",
        minutes=CONNECTION_WATCH_MINUTES,
        id="storage_connection_watch",
        replace_existing=True,
    )
