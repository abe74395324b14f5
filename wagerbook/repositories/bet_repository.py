"""
Bet store.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from wagerbook.models import Bet as BetRow
from wagerbook.models.domain import (
    Bet,
    BetSide,
    BetStatus,
    LegResult,
    ParlayLeg,
)
from wagerbook.repositories.base import AuditLogRepository, BaseRepository, from_storage, utcnow

logger = logging.getLogger(__name__)


class BetRepository(BaseRepository[BetRow]):
    """
    Read and write bets.

    ``update_bet_status`` is the only path that moves a bet out of
    ``active``; it stamps ``resolved_at`` and writes an audit entry.
    """

    def __init__(self, db: Session):
        super().__init__(BetRow, db)
        self.audit = AuditLogRepository(db)

    @staticmethod
    def _to_domain(row: BetRow) -> Bet:
        return Bet(
            id=row.id,
            game_id=row.game_id,
            week=row.week,
            season=row.season,
            placed_by=row.placed_by,
            participants=list(row.participants or []),
            bet_type=row.bet_type,
            betting_mode=row.betting_mode,
            selection=row.selection or "",
            line=row.line,
            odds=row.odds,
            player_name=row.player_name,
            prop_type=row.prop_type,
            parlay_legs=[ParlayLeg(**leg) for leg in (row.parlay_legs or [])],
            side_a=BetSide(**row.side_a) if row.side_a else None,
            side_b=BetSide(**row.side_b) if row.side_b else None,
            total_amount=row.total_amount or 0.0,
            amount_per_person=row.amount_per_person or 0.0,
            status=row.status,
            result=row.result,
            winning_side=row.winning_side,
            game_snapshot=row.game_snapshot,
            resolved_at=from_storage(row.resolved_at),
        )

    def add_bet(self, bet: Bet) -> BetRow:
        """Persist a newly placed bet."""
        row = self.create(
            id=bet.id,
            game_id=bet.game_id,
            week=bet.week,
            season=bet.season,
            placed_by=bet.placed_by,
            participants=list(bet.participants),
            bet_type=bet.bet_type.value,
            betting_mode=bet.betting_mode.value,
            selection=bet.selection,
            line=bet.line,
            odds=bet.odds,
            player_name=bet.player_name,
            prop_type=bet.prop_type,
            parlay_legs=[leg.model_dump(mode="json") for leg in bet.parlay_legs] or None,
            side_a=bet.side_a.model_dump() if bet.side_a else None,
            side_b=bet.side_b.model_dump() if bet.side_b else None,
            total_amount=bet.total_amount,
            amount_per_person=bet.amount_per_person,
            status=bet.status.value,
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        self.save()
        return row

    def get_bet(self, bet_id: str) -> Optional[Bet]:
        row = self.find_by_id(bet_id)
        return self._to_domain(row) if row else None

    def list_active_bets(self, week: int) -> List[Bet]:
        """Bets for a week that still await settlement."""
        rows = (
            self.query()
            .filter(BetRow.week == week, BetRow.status == BetStatus.ACTIVE.value)
            .order_by(BetRow.created_at, BetRow.id)
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def list_bets_for_week(self, week: int) -> List[Bet]:
        rows = self.query().filter(BetRow.week == week).order_by(BetRow.created_at, BetRow.id).all()
        return [self._to_domain(row) for row in rows]

    def update_bet_status(
        self,
        bet_id: str,
        status: BetStatus,
        result_description: str,
        winning_side: Optional[str] = None,
        game_snapshot: Optional[dict] = None,
        leg_results: Optional[List[LegResult]] = None
    ) -> bool:
        """
        Record a settlement outcome.

        Args:
            bet_id: Bet to update
            status: New status
            result_description: Human-readable deciding facts
            winning_side: 'A' or 'B' for head-to-head bets
            game_snapshot: Frozen game state(s) the outcome was computed from
            leg_results: Per-leg outcomes for parlays

        Returns:
            True if the bet exists and was updated
        """
        row = self.find_by_id(bet_id)
        if row is None:
            logger.warning(f"Cannot update missing bet {bet_id}")
            return False

        previous = {"status": row.status, "result": row.result, "winning_side": row.winning_side}

        row.status = status.value
        row.result = result_description
        row.winning_side = winning_side
        if game_snapshot is not None:
            row.game_snapshot = game_snapshot
        if leg_results and row.parlay_legs:
            legs = [dict(leg) for leg in row.parlay_legs]
            for leg_result in leg_results:
                if leg_result.index < len(legs):
                    legs[leg_result.index]["status"] = leg_result.status.value
                    legs[leg_result.index]["result"] = leg_result.description
            row.parlay_legs = legs
        now = utcnow()
        if status.is_terminal:
            row.resolved_at = now
        row.updated_at = now

        self.audit.log(
            entity_type="bet",
            entity_id=bet_id,
            action="settle",
            previous_state=previous,
            new_state={"status": status.value, "result": result_description, "winning_side": winning_side},
        )
        self.save()
        return True
