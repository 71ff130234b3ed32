"""Periodic housekeeping on an APScheduler event loop scheduler."""

from __future__ import annotations

import asyncio
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from momboss_agent.config import RateLimitConfig
from momboss_agent.core.rate_limit import RateLimiter
from momboss_agent.log import get_logger
from momboss_agent.services.base import Service

logger = get_logger(__name__)

SWEEP_JOB_ID = "rate_limit_sweep"


class MaintenanceService(Service):
    """Sweeps expired rate-limit windows on a fixed interval."""

    def __init__(self, rate_limiter: RateLimiter, config: RateLimitConfig):
        self._rate_limiter = rate_limiter
        self._interval = config.sweep_interval_seconds
        self._scheduler = AsyncIOScheduler(timezone="UTC")

    @property
    def service_name(self) -> str:
        return "maintenance"

    async def start(self) -> None:
        self._scheduler.add_job(
            self.sweep_rate_limits,
            IntervalTrigger(seconds=self._interval),
            id=SWEEP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        logger.info("maintenance_started", sweep_interval=self._interval)

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            # shutdown is handed to the event loop; let it run before reporting stopped
            await asyncio.sleep(0)
        logger.info("maintenance_stopped")

    async def health_check(self) -> bool:
        return self._scheduler.running

    async def status(self) -> dict[str, Any]:
        job = self._scheduler.get_job(SWEEP_JOB_ID) if self._scheduler.running else None
        return {
            **await super().status(),
            "next_sweep": job.next_run_time.isoformat() if job and job.next_run_time else None,
        }

    async def sweep_rate_limits(self) -> int:
        return await self._rate_limiter.sweep()
