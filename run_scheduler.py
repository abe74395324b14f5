#!/usr/bin/env python3
"""
Background runner for the wager book scheduler.

Usage:
    python run_scheduler.py                          # Run scheduler in foreground
    python run_scheduler.py --run-once repair        # Repair current week's mappings and exit
    python run_scheduler.py --run-once settle --week 3
"""
import argparse
import asyncio
import logging
import signal
import sys

from wagerbook.core.config import settings
from wagerbook.core.database import init_db
from wagerbook.core.logging import configure_logging
from wagerbook.core.scheduler import AutomationScheduler, run_mapping_repair, run_settlement

logger = logging.getLogger(__name__)


class SchedulerRunner:
    """Runner for the automation scheduler."""

    def __init__(self):
        self.scheduler: AutomationScheduler = None
        self.shutdown = False

    async def start(self):
        """Start the scheduler and run until shutdown."""
        logger.info("Starting scheduler runner...")

        self.scheduler = AutomationScheduler()
        await self.scheduler.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        while not self.shutdown:
            await asyncio.sleep(1)

        await self.scheduler.stop()
        logger.info("Scheduler runner stopped")

    def _set_shutdown(self):
        logger.info("Shutdown signal received")
        self.shutdown = True


async def run_once(job: str, week: int = None):
    """Run one job immediately and print its summary."""
    if job == "repair":
        summary = await run_mapping_repair(week)
        print(f"Repaired {summary.repaired}, unchanged {summary.unchanged}, failed {summary.failed}")
        for internal_id, issues in summary.failures.items():
            print(f"  {internal_id}: {'; '.join(issues)}")
    else:
        summary = await run_settlement(week)
        print(f"Settled {summary.settled}, pending {summary.pending}, failed {summary.failed}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Run the wager book scheduler')
    parser.add_argument(
        '--run-once',
        choices=['repair', 'settle'],
        help='Run a single job immediately and exit'
    )
    parser.add_argument('--week', type=int, help='League week for --run-once (default: current)')
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    init_db()

    if args.run_once:
        asyncio.run(run_once(args.run_once, args.week))
        return 0

    runner = SchedulerRunner()
    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
        return 0
    except Exception as e:
        logger.error(f"Scheduler error: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
