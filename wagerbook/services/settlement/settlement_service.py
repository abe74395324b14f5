"""Weekly settlement: grade every active bet of a week and persist outcomes.

Per bet:
1. Grade with BetSettlementEngine (pure)
2. Not ready → leave the bet untouched
3. Terminal → write status, description, winning side and a snapshot of the
   game state the grade was computed from

A failure on one bet is logged and counted; the rest of the week still settles.
"""
import logging
from typing import Dict, Mapping, Optional, Protocol, List

from wagerbook.core.logging import run_context
from wagerbook.models.domain import Bet, BetStatus, LegResult, ResolvedGame, SettlementSummary
from wagerbook.services.settlement.settlement_engine import BetSettlementEngine

logger = logging.getLogger(__name__)


class BetStore(Protocol):
    def list_active_bets(self, week: int) -> List[Bet]: ...

    def update_bet_status(
        self,
        bet_id: str,
        status: BetStatus,
        result_description: str,
        winning_side: Optional[str] = None,
        game_snapshot: Optional[dict] = None,
        leg_results: Optional[List[LegResult]] = None,
    ) -> bool: ...


class BetSettlementService:
    """
    Settle a week's active bets.

    Args:
        bet_store: Bet store (normally BetRepository)
        engine: Settlement engine (default uses the configured push policy)
    """

    def __init__(self, bet_store: BetStore, engine: Optional[BetSettlementEngine] = None):
        self.bet_store = bet_store
        self.engine = engine or BetSettlementEngine()

    def settle_week(self, week: int, games: Mapping[str, ResolvedGame]) -> SettlementSummary:
        """
        Settle every active bet for a week.

        Args:
            week: League week
            games: Resolved games keyed by internal game id

        Returns:
            SettlementSummary with settled/pending/failed counts
        """
        with run_context("settle") as run_id:
            summary = SettlementSummary(week=week, run_id=run_id)
            bets = self.bet_store.list_active_bets(week)
            logger.info(f"Settling {len(bets)} active bets for week {week}")

            for bet in bets:
                summary.examined += 1
                try:
                    settled = self.settle_bet(bet, games)
                except Exception as e:
                    logger.error(f"Settlement failed for bet {bet.id}: {e}", exc_info=True)
                    summary.failed += 1
                    summary.errors[bet.id] = str(e)
                    continue

                if settled is None:
                    summary.pending += 1
                    continue

                summary.settled += 1
                summary.by_status[settled.value] = summary.by_status.get(settled.value, 0) + 1

            logger.info(
                f"Week {week} settlement complete: {summary.settled} settled, "
                f"{summary.pending} pending, {summary.failed} failed"
            )
            return summary

    def settle_bet(self, bet: Bet, games: Mapping[str, ResolvedGame]) -> Optional[BetStatus]:
        """
        Grade one bet and persist a terminal outcome.

        Returns:
            The new status, or None when the bet is not ready
        """
        outcome = self.engine.settle(bet, games)
        if not outcome.ready:
            logger.info(f"Bet {bet.id} not ready: {outcome.description}")
            return None

        snapshot: Dict = self.engine.snapshot_for(bet, games)
        self.bet_store.update_bet_status(
            bet.id,
            outcome.status,
            outcome.description,
            winning_side=outcome.winning_side,
            game_snapshot=snapshot,
            leg_results=outcome.leg_results or None,
        )
        logger.info(f"Bet {bet.id} settled {outcome.status.value}: {outcome.description}")
        return outcome.status
