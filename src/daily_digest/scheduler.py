"""Cron-driven trigger for recurring digest runs."""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from croniter import croniter

from .config import Config
from .pipeline_async import RunSummary, run_async_digest

logger = logging.getLogger(__name__)


class DigestScheduler:
    """Fires a digest run on every cron tick in the configured timezone.

    A tick that arrives while the previous run is still in flight is
    skipped, so nobody gets the same digest twice.
    """

    def __init__(
        self,
        config: Config,
        run: Callable[[Config], Awaitable[RunSummary]] = run_async_digest,
    ):
        self.config = config
        self._run = run
        self._current: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._current is not None and not self._current.done()

    def next_fire(self, after: datetime | None = None) -> datetime:
        base = after.astimezone(self.config.tzinfo) if after else datetime.now(self.config.tzinfo)
        return croniter(self.config.cron_schedule, base).get_next(datetime)

    async def _guarded_run(self) -> None:
        try:
            await self._run(self.config)
        except Exception:
            logger.exception("Scheduled digest run failed")

    def fire(self) -> asyncio.Task | None:
        """Start a run in the background unless one is already going."""
        if self.running:
            logger.warning("Previous digest run still in progress; skipping this tick")
            return None
        self._current = asyncio.create_task(self._guarded_run())
        return self._current

    async def _wait_until(self, fire_at: datetime) -> None:
        delay = (fire_at - datetime.now(self.config.tzinfo)).total_seconds()
        await asyncio.sleep(max(delay, 0))

    async def run_forever(self) -> None:
        logger.info(f"Scheduler active: \"{self.config.cron_schedule}\" ({self.config.timezone})")
        fire_at = self.next_fire()
        while True:
            logger.debug(f"Next digest run at {fire_at.isoformat()}")
            await self._wait_until(fire_at)
            self.fire()
            # Chain from the tick itself; an early wake-up must not repeat it
            fire_at = self.next_fire(fire_at)
