"""Main entry point for the Bitrix24 daily digest."""

import argparse
import asyncio
import dataclasses
import logging
import sys

from .bitrix import RemoteCallError
from .config import ConfigurationError, load_config
from .pipeline_async import run_digest
from .scheduler import DigestScheduler

logger = logging.getLogger(__name__)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Daily digest of calendar events and tasks for Bitrix24 users")
    parser.add_argument("--now", action="store_true", help="Run once immediately and exit")
    parser.add_argument("--user", type=int, help="Only send to this user ID (overrides ONLY_USER_ID)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    if args.user is not None:
        config = dataclasses.replace(config, only_user_id=args.user)

    if args.now:
        try:
            summary = run_digest(config)
        except RemoteCallError as e:
            logger.error(f"Digest run aborted: {e}")
            sys.exit(1)
        logger.info(f"Done: {summary.sent} sent, {summary.failed} failed")
        return

    try:
        asyncio.run(DigestScheduler(config).run_forever())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
