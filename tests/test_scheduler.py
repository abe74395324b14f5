"""Tests for scheduled jobs.

Test Strategy:
1. Test the current league week used by scheduled runs
2. Test the settlement job end to end against the database, with the
   scores provider unavailable
3. Test the scheduler registers both jobs
"""
from datetime import datetime, timezone

import pytest

from wagerbook.core import scheduler
from wagerbook.core.exceptions import UpstreamFetchFailure
from wagerbook.models.domain import Bet, BetStatus, BetType, GameStatus
from wagerbook.repositories import BetRepository, GameRepository


class UnavailableScores:
    """Scores adapter stand-in that is never contacted."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


class FailingResultsSync:
    def __init__(self, *args):
        pass

    async def sync_week(self, week, season):
        raise UpstreamFetchFailure("espn", "HTTP 503")


class TestCurrentWeek:
    """Test suite for the week used by scheduled runs."""

    def test_in_season(self):
        """Should return the league week of the given instant."""
        assert scheduler.current_week(datetime(2025, 9, 7, 20, 0, tzinfo=timezone.utc)) == 1
        assert scheduler.current_week(datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)) == 4

    def test_before_opener_defaults_to_week_one(self):
        """Should fall back to week 1 in the offseason."""
        assert scheduler.current_week(datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)) == 1


class TestRunSettlement:
    """Integration test for the settlement job."""

    @pytest.mark.asyncio
    async def test_settles_from_stored_results_when_sync_fails(self, db_session, monkeypatch):
        """Should log the sync outage and still settle games already final."""
        monkeypatch.setattr(scheduler, "EspnScoreboardAdapter", UnavailableScores)
        monkeypatch.setattr(scheduler, "ResultsSyncService", FailingResultsSync)

        games = GameRepository(db_session)
        game, _ = games.get_or_create(
            "Las Vegas Raiders", "Kansas City Chiefs", datetime(2025, 9, 7, 20, 25, tzinfo=timezone.utc)
        )
        games.update_result(game.id, GameStatus.FINAL, 20, 24)
        BetRepository(db_session).add_bet(Bet(
            id="bet-1",
            game_id=game.id,
            week=1,
            season=2025,
            placed_by="will",
            participants=["will", "dio"],
            bet_type=BetType.MONEYLINE,
            selection="Raiders",
            amount_per_person=10,
        ))

        summary = await scheduler.run_settlement(1, session_factory=lambda: db_session)

        assert summary.settled == 1
        assert summary.by_status == {"lost": 1}
        assert BetRepository(db_session).get_bet("bet-1").status is BetStatus.LOST


class TestAutomationScheduler:
    """Test suite for job registration."""

    @pytest.mark.asyncio
    async def test_registers_jobs(self):
        """Should schedule mapping repair and settlement."""
        automation = scheduler.AutomationScheduler()
        await automation.start()
        try:
            assert {job.id for job in automation.scheduler.get_jobs()} == {"mapping_repair", "settlement"}
            assert automation.running
        finally:
            await automation.stop()
        assert not automation.running
