"""Bet settlement engine.

Grades bets against final game state. Pure: takes a bet and a map of
resolved games, returns a ``SettlementOutcome``, and never touches storage.

Grading rules:
- moneyline: the backed side must have strictly more points
- spread: backed side's score + line must strictly exceed the opponent's
- over_under: total must be strictly over/under the line
- player_prop: the player's yards in the category, compared like a total
- parlay: lost if any leg lost, won if every leg won, otherwise pending
- head-to-head: the one side whose selection holds wins; both or neither → unknown

An exact landing on the line is graded by ``PushPolicy``: ``LOSS`` (default)
keeps the strict-inequality rule, ``PUSH`` returns ``push``.
"""
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from wagerbook.core.config import settings
from wagerbook.core.exceptions import AmbiguousSelection, IncompleteGameState
from wagerbook.models.domain import (
    Bet,
    BetStatus,
    BetType,
    BettingMode,
    LegResult,
    PlayerStatLine,
    PushPolicy,
    ResolvedGame,
    SettlementOutcome,
)
from wagerbook.services.settlement.selection_parser import AWAY, HOME, OVER, parse_selection
from wagerbook.services.sync.utils.name_normalizer import names_overlap

logger = logging.getLogger(__name__)

Grade = Tuple[BetStatus, str]


def _fmt(value: float) -> str:
    """45.0 → '45', 45.5 → '45.5'."""
    return f"{value:g}"


def _find_player(stats: List[PlayerStatLine], name: str) -> Optional[PlayerStatLine]:
    for line in stats:
        if names_overlap(line.player_name, name):
            return line
    return None


class BetSettlementEngine:
    """
    Grade bets against resolved games.

    Args:
        push_policy: How exact landings and moneyline ties are graded
            (defaults to settings.SETTLEMENT_PUSH_POLICY)
    """

    def __init__(self, push_policy: Optional[PushPolicy] = None):
        self.push_policy = push_policy or PushPolicy(settings.SETTLEMENT_PUSH_POLICY)

    # ========================================================================
    # Entry point
    # ========================================================================

    def settle(self, bet: Bet, games: Mapping[str, ResolvedGame]) -> SettlementOutcome:
        """
        Settle one bet.

        Args:
            bet: Bet to grade (its stored status is ignored, so re-grading
                against the same final state gives the same outcome)
            games: Resolved games keyed by game id

        Returns:
            SettlementOutcome; ``ready`` is False while any referenced game
            is not final or lacks the stats the bet needs
        """
        if bet.status is BetStatus.CANCELLED:
            return SettlementOutcome(ready=False, status=BetStatus.CANCELLED, description="Bet cancelled")

        try:
            if bet.bet_type is BetType.PARLAY:
                if bet.betting_mode is BettingMode.HEAD_TO_HEAD:
                    waiting = self._waiting_legs(bet, games)
                    if waiting is not None:
                        return waiting
                    return SettlementOutcome(
                        ready=True,
                        status=BetStatus.UNKNOWN,
                        description="Head-to-head parlays need manual review",
                    )
                return self._settle_parlay(bet, games)

            game = self._require_game(bet.game_id, bet.bet_type, games)
            if bet.betting_mode is BettingMode.HEAD_TO_HEAD:
                return self._settle_head_to_head(bet, game)

            status, description = self._grade(
                bet.bet_type, bet.selection, game, bet.line, bet.player_name, bet.prop_type
            )
            return SettlementOutcome(ready=True, status=status, description=description)

        except IncompleteGameState as e:
            logger.debug(f"Bet {bet.id} not ready: {e}")
            return SettlementOutcome.not_ready(e.reason)

    # ========================================================================
    # Readiness
    # ========================================================================

    @staticmethod
    def _require_game(game_id: Optional[str], bet_type: BetType, games: Mapping[str, ResolvedGame]) -> ResolvedGame:
        game = games.get(game_id) if game_id else None
        if game is None:
            raise IncompleteGameState(game_id, f"game {game_id} not loaded")
        if not game.is_resolvable:
            raise IncompleteGameState(game_id, f"{game.away_team} @ {game.home_team} is not final")
        if bet_type is BetType.PLAYER_PROP and game.player_stats is None:
            raise IncompleteGameState(game_id, f"no player statistics for {game.away_team} @ {game.home_team}")
        return game

    # ========================================================================
    # Single bets
    # ========================================================================

    def _grade(
        self,
        bet_type: BetType,
        selection: str,
        game: ResolvedGame,
        line: Optional[float] = None,
        player_name: Optional[str] = None,
        prop_type: Optional[str] = None
    ) -> Grade:
        try:
            parsed = parse_selection(
                bet_type,
                selection,
                home_team=game.home_team,
                away_team=game.away_team,
                line=line,
                player_name=player_name,
                prop_type=prop_type,
            )
        except AmbiguousSelection as e:
            logger.info(f"Ambiguous selection {selection!r}: {e.reason}")
            return BetStatus.UNKNOWN, f"Needs review: {e.reason} in '{selection}'"

        if bet_type is BetType.MONEYLINE:
            return self._grade_moneyline(parsed.side, game)
        if bet_type is BetType.SPREAD:
            return self._grade_spread(parsed.side, parsed.line, game)
        if bet_type is BetType.OVER_UNDER:
            return self._grade_total(parsed.direction, parsed.line, game)
        return self._grade_player_prop(parsed, game)

    def _compare(self, value: float, line: float, direction: str) -> BetStatus:
        if value == line:
            return BetStatus.PUSH if self.push_policy is PushPolicy.PUSH else BetStatus.LOST
        hit = value > line if direction == OVER else value < line
        return BetStatus.WON if hit else BetStatus.LOST

    def _grade_moneyline(self, side: str, game: ResolvedGame) -> Grade:
        home, away = game.home_score, game.away_score
        if home == away:
            status = BetStatus.PUSH if self.push_policy is PushPolicy.PUSH else BetStatus.LOST
            return status, f"Game tied {away}-{home}"

        winner = HOME if home > away else AWAY
        winner_team = game.home_team if winner == HOME else game.away_team
        description = f"{winner_team} won {max(home, away)}-{min(home, away)}"
        return (BetStatus.WON if side == winner else BetStatus.LOST), description

    def _grade_spread(self, side: str, line: float, game: ResolvedGame) -> Grade:
        if side == HOME:
            team, score, opponent = game.home_team, game.home_score, game.away_score
        else:
            team, score, opponent = game.away_team, game.away_score, game.home_score

        status = self._compare(score + line, opponent, OVER)
        verb = {BetStatus.WON: "covered", BetStatus.PUSH: "pushed"}.get(status, "did not cover")
        return status, f"{team} {verb} {line:+g} ({score}-{opponent})"

    def _grade_total(self, direction: str, line: float, game: ResolvedGame) -> Grade:
        total = game.total_points
        status = self._compare(total, line, direction)
        return status, f"Total {total} points (needed {direction} {_fmt(line)})"

    def _grade_player_prop(self, parsed, game: ResolvedGame) -> Grade:
        player = _find_player(game.player_stats or [], parsed.player_name)
        if player is None:
            return BetStatus.UNKNOWN, f"Player {parsed.player_name} not found in box score"

        yards = player.yards(parsed.category) or 0
        status = self._compare(yards, parsed.line, parsed.direction)
        return status, (
            f"{player.player_name}: {_fmt(yards)} {parsed.category.value} yards "
            f"(needed {parsed.direction} {_fmt(parsed.line)})"
        )

    # ========================================================================
    # Parlays
    # ========================================================================

    def _waiting_legs(self, bet: Bet, games: Mapping[str, ResolvedGame]) -> Optional[SettlementOutcome]:
        """Not-ready outcome while any leg's game is unresolved, else None."""
        waiting = []
        for leg in bet.parlay_legs:
            try:
                self._require_game(leg.game_id, leg.bet_type, games)
            except IncompleteGameState as e:
                waiting.append(e.reason)
        if waiting is not None:
            return SettlementOutcome.not_ready(f"Parlay waiting on {len(waiting)} leg(s): {'; '.join(waiting)}")
        return None

    def _settle_parlay(self, bet: Bet, games: Mapping[str, ResolvedGame]) -> SettlementOutcome:
        waiting = self._waiting_legs(bet, games)
        if waiting is not None:
            return waiting

        leg_results = []
        for index, leg in enumerate(bet.parlay_legs):
            game = games[leg.game_id]
            status, description = self._grade(
                leg.bet_type, leg.selection, game, leg.line, leg.player_name, leg.prop_type
            )
            leg_results.append(LegResult(index=index, game_id=leg.game_id, status=status, description=description))

        return self._aggregate_parlay(leg_results)

    def _aggregate_parlay(self, leg_results: List[LegResult]) -> SettlementOutcome:
        counted = [r for r in leg_results if r.status is not BetStatus.PUSH]
        details = "; ".join(f"Leg {r.index + 1}: {r.description}" for r in leg_results)

        if not counted:
            return SettlementOutcome(
                ready=True, status=BetStatus.PUSH, description=f"Parlay pushed - {details}", leg_results=leg_results
            )

        lost = [r for r in counted if r.status is BetStatus.LOST]
        if lost:
            return SettlementOutcome(
                ready=True,
                status=BetStatus.LOST,
                description=f"Parlay lost - {len(lost)} of {len(leg_results)} legs lost - {details}",
                leg_results=leg_results,
            )

        if all(r.status is BetStatus.WON for r in counted):
            return SettlementOutcome(
                ready=True,
                status=BetStatus.WON,
                description=f"Parlay won! - {details}",
                leg_results=leg_results,
            )

        unresolved = [str(r.index + 1) for r in counted if r.status is BetStatus.UNKNOWN]
        return SettlementOutcome.not_ready(
            f"Parlay pending review of leg(s) {', '.join(unresolved)} - {details}",
            leg_results=leg_results,
        )

    # ========================================================================
    # Head-to-head
    # ========================================================================

    def _settle_head_to_head(self, bet: Bet, game: ResolvedGame) -> SettlementOutcome:
        status_a, description_a = self._grade(
            bet.bet_type, bet.side_a.selection, game, bet.line, bet.player_name, bet.prop_type
        )
        status_b, description_b = self._grade(
            bet.bet_type, bet.side_b.selection, game, bet.line, bet.player_name, bet.prop_type
        )
        details = f"Side A ({bet.side_a.selection}): {description_a} | Side B ({bet.side_b.selection}): {description_b}"

        if BetStatus.UNKNOWN in (status_a, status_b):
            return SettlementOutcome(ready=True, status=BetStatus.UNKNOWN, description=f"Needs review - {details}")

        if status_a is BetStatus.PUSH and status_b is BetStatus.PUSH:
            return SettlementOutcome(ready=True, status=BetStatus.PUSH, description=f"Push - {details}")

        a_wins = status_a is BetStatus.WON
        b_wins = status_b is BetStatus.WON
        if a_wins and not b_wins:
            return SettlementOutcome(
                ready=True, status=BetStatus.WON, winning_side="A", description=f"Side A wins - {details}"
            )
        if b_wins and not a_wins:
            return SettlementOutcome(
                ready=True, status=BetStatus.LOST, winning_side="B", description=f"Side B wins - {details}"
            )

        reason = "Both sides satisfied" if a_wins else "Neither side satisfied"
        return SettlementOutcome(ready=True, status=BetStatus.UNKNOWN, description=f"{reason} - {details}")

    # ========================================================================
    # Snapshots
    # ========================================================================

    @staticmethod
    def snapshot_for(bet: Bet, games: Mapping[str, ResolvedGame]) -> Dict:
        """Game state a settlement was computed from, keyed by game id."""
        return {game_id: games[game_id].snapshot() for game_id in bet.game_ids if game_id in games}
