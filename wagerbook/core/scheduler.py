"""
Automated task scheduler for the wager book.

Scheduled background jobs:
- Mapping repair: daily, links the current week's games to ESPN and The Odds API
- Settlement: every SETTLE_INTERVAL_MINUTES, syncs results and settles active bets

Scheduler: APScheduler (AsyncIOScheduler)
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from wagerbook.core.config import settings
from wagerbook.core.database import SessionLocal
from wagerbook.core.exceptions import UpstreamFetchFailure
from wagerbook.repositories import BetRepository, GameMappingRepository, GameRepository
from wagerbook.services.settlement.settlement_service import BetSettlementService
from wagerbook.services.sync.adapters.espn_adapter import EspnScoreboardAdapter
from wagerbook.services.sync.adapters.odds_api_adapter import OddsApiAdapter
from wagerbook.services.sync.mapping_repair import MappingRepairService
from wagerbook.services.sync.results_sync import ResultsSyncService
from wagerbook.utils.timezone import get_nfl_week

logger = logging.getLogger(__name__)

SCHEDULER_TIMEZONE = "America/New_York"


def current_week(now: Optional[datetime] = None) -> int:
    """League week for ``now`` in the configured season (week 1 before the opener)."""
    now = now or datetime.now(timezone.utc)
    return get_nfl_week(now, settings.CURRENT_SEASON) or 1


async def run_mapping_repair(
    week: Optional[int] = None,
    session_factory: Callable[[], Session] = SessionLocal
):
    """Repair mappings for one week's games. Returns the RepairSummary."""
    week = week or current_week()
    season = settings.CURRENT_SEASON
    db = session_factory()
    try:
        games = GameRepository(db)
        async with EspnScoreboardAdapter() as scores, OddsApiAdapter() as odds:
            service = MappingRepairService(
                GameMappingRepository(db),
                game_source=lambda w, s: [games.to_identity(g) for g in games.list_week(w, s)],
                scores_source=scores,
                odds_source=odds,
            )
            return await service.repair_all(week, season)
    finally:
        db.close()


async def run_settlement(
    week: Optional[int] = None,
    session_factory: Callable[[], Session] = SessionLocal
):
    """Sync results for a week, then settle its active bets. Returns the SettlementSummary."""
    week = week or current_week()
    season = settings.CURRENT_SEASON
    db = session_factory()
    try:
        games = GameRepository(db)
        bets = BetRepository(db)

        async with EspnScoreboardAdapter() as scores:
            try:
                await ResultsSyncService(games, GameMappingRepository(db), scores).sync_week(week, season)
            except UpstreamFetchFailure as e:
                logger.error(f"Results sync skipped for week {week}: {e}")

        active = bets.list_active_bets(week)
        resolved = games.resolved_games(
            game_id for bet in active for game_id in bet.game_ids if game_id
        )
        return BetSettlementService(bets).settle_week(week, resolved)
    finally:
        db.close()


class AutomationScheduler:
    """
    Main scheduler for automated background tasks.

    All scheduled jobs are defined here with their schedules and error handling.
    """

    def __init__(self):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting automation scheduler...")

        self.scheduler = AsyncIOScheduler(
            timezone=SCHEDULER_TIMEZONE,
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
                'misfire_grace_time': 300
            }
        )

        self._schedule_mapping_repair()
        self._schedule_settlement()

        self.scheduler.start()
        self.running = True

        logger.info("Scheduler started with %d jobs", len(self.scheduler.get_jobs()))
        self._log_scheduled_jobs()

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=True)
        self.running = False
        logger.info("Scheduler stopped")

    def _schedule_mapping_repair(self):
        """
        Schedule: Repair game mappings.

        Frequency: Daily at REPAIR_CRON_HOUR ET
        """
        async def mapping_repair_job():
            try:
                summary = await run_mapping_repair()
                logger.info(
                    f"Mapping repair: {summary.repaired} repaired, {summary.failed} failed"
                )
            except Exception as e:
                logger.error(f"Mapping repair job failed: {e}", exc_info=True)

        self.scheduler.add_job(
            mapping_repair_job,
            trigger=CronTrigger(hour=settings.REPAIR_CRON_HOUR, minute=0, timezone=SCHEDULER_TIMEZONE),
            id='mapping_repair',
            name='Repair Game Mappings',
            misfire_grace_time=3600,
        )

    def _schedule_settlement(self):
        """
        Schedule: Sync results and settle bets.

        Frequency: Every SETTLE_INTERVAL_MINUTES
        """
        async def settlement_job():
            try:
                summary = await run_settlement()
                logger.info(f"Settlement: {summary.settled} settled, {summary.pending} pending")
            except Exception as e:
                logger.error(f"Settlement job failed: {e}", exc_info=True)

        self.scheduler.add_job(
            settlement_job,
            trigger=IntervalTrigger(minutes=settings.SETTLE_INTERVAL_MINUTES),
            id='settlement',
            name='Settle Active Bets',
        )

    def _log_scheduled_jobs(self):
        """Log all scheduled jobs for visibility."""
        for job in self.scheduler.get_jobs():
            next_run = job.next_run_time
            next_run_str = next_run.strftime('%Y-%m-%d %I:%M %p ET') if next_run else 'Pending'
            logger.info(f"  • {job.name} (id={job.id}) next run: {next_run_str}")


# Global scheduler instance
_scheduler: Optional[AutomationScheduler] = None


async def start_scheduler() -> AutomationScheduler:
    """Start the global scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AutomationScheduler()
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[AutomationScheduler]:
    """Get the global scheduler instance."""
    return _scheduler
