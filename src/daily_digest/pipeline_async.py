"""Async digest pipeline across all employees.

Architecture:
- Fetch the eligible user set once
- Run one pipeline per user: events + tasks concurrently, then format, then deliver
- At most MAX_CONCURRENT user pipelines are in flight; the rest wait for a slot
- A failing user is logged and counted, never aborting the others
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from .bitrix import BitrixClient, User, get_active_users, get_open_tasks, get_todays_events
from .config import Config
from .digest import deliver, format_digest

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of one digest run."""
    total: int = 0
    sent: int = 0
    failed: int = 0
    failures: dict[int, str] = field(default_factory=dict)  # user id -> reason


class DigestPipeline:
    """Builds and sends each user's digest with bounded concurrency."""

    MAX_CONCURRENT = 4

    def __init__(self, config: Config, client: BitrixClient):
        self.config = config
        self.client = client
        self._sem = asyncio.Semaphore(self.MAX_CONCURRENT)

    def _now(self) -> datetime:
        return datetime.now(self.config.tzinfo)

    async def send_user_digest(self, user: User) -> str:
        """Fetch, format and deliver one user's digest. Returns the delivery method."""
        events, tasks = await asyncio.gather(
            get_todays_events(self.client, self.config, user.id),
            get_open_tasks(self.client, self.config, user.id),
        )
        message = format_digest(user, events, tasks, self._now(), locale=self.config.locale)
        return await deliver(self.client, user.id, message)

    async def _run_user(self, user: User, summary: RunSummary) -> None:
        async with self._sem:
            try:
                await self.send_user_digest(user)
            except Exception as e:
                summary.failed += 1
                summary.failures[user.id] = str(e)
                logger.error(f"Failed {user.id} {user.name}: {e}")
            else:
                summary.sent += 1
                logger.info(f"Sent: {user.id} {user.name}")

    async def run_once(self) -> RunSummary:
        logger.info(f"Generating digests: {self._now().isoformat()}")
        summary = RunSummary()

        users = await get_active_users(self.client, self.config)
        if not users:
            logger.warning("No active users.")
            return summary

        summary.total = len(users)
        await asyncio.gather(*[self._run_user(u, summary) for u in users])

        logger.info(f"Digest run complete: {summary.sent} sent, {summary.failed} failed of {summary.total}")
        return summary


async def run_async_digest(config: Config) -> RunSummary:
    """Main entry point for one digest run."""
    async with BitrixClient(config) as client:
        return await DigestPipeline(config, client).run_once()


def run_digest(config: Config) -> RunSummary:
    """Sync wrapper for one digest run."""
    return asyncio.run(run_async_digest(config))
