"""
Background scheduler for monthly replenishment and override cleanup.

Runs inside the application process as an asyncio task. Every interval it
wakes up; when the business-local hour is the configured check hour it runs
the monthly generation for the auto-generated stadium and purges per-date
rows whose date has passed. Both steps are idempotent, so extra ticks or a
restart within the check hour do no harm.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticketing.core.clock import business_now, to_business_time
from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_replenishment
from ticketing.db.session import session_scope
from ticketing.services.override_service import purge_before
from ticketing.services.replenishment_service import run_monthly_generation

logger = get_logger(__name__)


class ReplenishmentScheduler:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        clock: Callable[[], datetime] = business_now,
        interval_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds or settings.SCHEDULER_INTERVAL_SECONDS
        self.check_hour = settings.SCHEDULER_CHECK_HOUR
        self.stadium_id = settings.AUTO_GENERATION_STADIUM_ID
        self.retention_days = settings.OVERRIDE_RETENTION_DAYS
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="replenishment-scheduler")
        logger.info(
            "scheduler_started",
            stadium_id=self.stadium_id,
            check_hour=self.check_hour,
            interval_seconds=self.interval_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("scheduler_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except Exception:
                logger.exception("scheduler_tick_failed")

    async def tick(self, now: Optional[datetime] = None) -> bool:
        """
        Run the daily work if `now` falls in the check hour.
        Returns True if the work was attempted.
        """
        local_now = to_business_time(now or self.clock())
        if local_now.hour != self.check_hour:
            return False

        await self.generate(local_now)
        await self.purge(local_now)
        return True

    async def generate(self, local_now: datetime) -> None:
        try:
            async with session_scope(self.session_factory) as db:
                result = await run_monthly_generation(db, self.stadium_id, local_now)
        except Exception:
            record_replenishment("error")
            logger.exception("replenishment_failed", stadium_id=self.stadium_id)
            return

        if result is not None:
            logger.info(
                "scheduled_replenishment_done",
                stadium_id=self.stadium_id,
                month=result.month_key,
                tickets_created=result.tickets_created,
                tickets_skipped=result.tickets_skipped,
                dates_processed=result.dates_processed,
            )

    async def purge(self, local_now: datetime) -> None:
        before = local_now.date() - timedelta(days=self.retention_days)
        try:
            async with session_scope(self.session_factory) as db:
                await purge_before(db, before)
        except Exception:
            logger.exception("override_purge_failed", before=before.isoformat())
