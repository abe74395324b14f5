"""Unit tests for BetSettlementEngine.

Test Strategy:
1. Test single-bet grading for moneyline, spread, over/under and props
2. Test exact landings under both push policies
3. Test readiness (game not final, box score missing, game not loaded)
4. Test parlay aggregation (lost beats won, pushes ignored, unknown legs pending)
5. Test head-to-head outcomes from side A's perspective
6. Test re-grading is deterministic

Each test follows the pattern:
- Given: A bet and the resolved games it references
- When: settle() is called
- Then: The outcome status and description match the deciding facts
"""
from datetime import datetime, timezone

import pytest

from wagerbook.models.domain import (
    Bet,
    BetSide,
    BetStatus,
    BetType,
    BettingMode,
    GameStatus,
    ParlayLeg,
    PushPolicy,
    ResolvedGame,
)
from wagerbook.services.settlement.settlement_engine import BetSettlementEngine

RAIDERS_GAME = "game-chiefs-raiders"
JETS_GAME = "game-bills-jets"


@pytest.fixture
def jets_bills_final() -> ResolvedGame:
    """Bills 13 - Jets 10, Jets at home, no box score."""
    return ResolvedGame(
        game_id=JETS_GAME,
        home_team="New York Jets",
        away_team="Buffalo Bills",
        status=GameStatus.FINAL,
        home_score=10,
        away_score=13,
        kickoff=datetime(2025, 9, 7, 17, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def games(chiefs_raiders_final, jets_bills_final):
    return {RAIDERS_GAME: chiefs_raiders_final, JETS_GAME: jets_bills_final}


@pytest.fixture
def engine() -> BetSettlementEngine:
    return BetSettlementEngine(PushPolicy.LOSS)


@pytest.fixture
def push_engine() -> BetSettlementEngine:
    return BetSettlementEngine(PushPolicy.PUSH)


def single(bet_type, selection, game_id=RAIDERS_GAME, **kwargs) -> Bet:
    return Bet(
        id="bet-1",
        game_id=game_id,
        week=1,
        season=2025,
        placed_by="will",
        participants=["will", "dio"],
        bet_type=bet_type,
        selection=selection,
        amount_per_person=10,
        total_amount=20,
        **kwargs,
    )


def parlay(*legs, **kwargs) -> Bet:
    return Bet(
        id="parlay-1",
        week=1,
        placed_by="will",
        participants=["will"],
        bet_type=BetType.PARLAY,
        parlay_legs=list(legs),
        **kwargs,
    )


def head_to_head(bet_type, selection_a, selection_b, **kwargs) -> Bet:
    return Bet(
        id="h2h-1",
        game_id=RAIDERS_GAME,
        week=1,
        placed_by="will",
        participants=["will", "dio"],
        bet_type=bet_type,
        betting_mode=BettingMode.HEAD_TO_HEAD,
        side_a=BetSide(participants=["will"], selection=selection_a),
        side_b=BetSide(participants=["dio"], selection=selection_b),
        amount_per_person=20,
        **kwargs,
    )


class TestSingleBets:
    """Test suite for single-game grading."""

    # Moneyline Tests
    # ─────────────────────────────────────────────────────────────

    def test_moneyline_road_winner(self, engine, games):
        """Chiefs 24-20 at Raiders: a Chiefs moneyline wins."""
        outcome = engine.settle(single(BetType.MONEYLINE, "Kansas City Chiefs"), games)
        assert outcome.ready
        assert outcome.status is BetStatus.WON
        assert outcome.description == "Kansas City Chiefs won 24-20"

    def test_moneyline_loser(self, engine, games):
        """A Raiders moneyline loses the same game."""
        outcome = engine.settle(single(BetType.MONEYLINE, "Raiders"), games)
        assert outcome.status is BetStatus.LOST

    def test_moneyline_tie(self, engine, push_engine, chiefs_raiders_final):
        """A tie loses under LOSS and pushes under PUSH."""
        tied = chiefs_raiders_final.model_copy(update={"home_score": 20, "away_score": 20})
        bet = single(BetType.MONEYLINE, "Kansas City Chiefs")

        assert engine.settle(bet, {RAIDERS_GAME: tied}).status is BetStatus.LOST
        outcome = push_engine.settle(bet, {RAIDERS_GAME: tied})
        assert outcome.status is BetStatus.PUSH
        assert outcome.description == "Game tied 20-20"

    # Spread Tests
    # ─────────────────────────────────────────────────────────────

    def test_spread_favorite_fails_to_cover(self, engine, games):
        """Jets -7 at home, lose 10-13: the spread bet loses."""
        outcome = engine.settle(single(BetType.SPREAD, "New York Jets -7", game_id=JETS_GAME, line=-7.0), games)
        assert outcome.status is BetStatus.LOST
        assert outcome.description == "New York Jets did not cover -7 (10-13)"

    def test_spread_underdog_covers(self, engine, games):
        """Raiders +6.5, lose by 4: the spread bet wins."""
        outcome = engine.settle(single(BetType.SPREAD, "Raiders +6.5"), games)
        assert outcome.status is BetStatus.WON
        assert outcome.description == "Las Vegas Raiders covered +6.5 (20-24)"

    def test_spread_exact_landing(self, engine, push_engine, games):
        """Chiefs -4 winning by exactly 4 follows the push policy."""
        bet = single(BetType.SPREAD, "Chiefs -4")
        assert engine.settle(bet, games).status is BetStatus.LOST
        outcome = push_engine.settle(bet, games)
        assert outcome.status is BetStatus.PUSH
        assert outcome.description == "Kansas City Chiefs pushed -4 (24-20)"

    # Over/Under Tests
    # ─────────────────────────────────────────────────────────────

    def test_over_misses(self, engine, games):
        """Over 45.5 with 44 total points loses."""
        outcome = engine.settle(single(BetType.OVER_UNDER, "over 45.5"), games)
        assert outcome.status is BetStatus.LOST
        assert outcome.description == "Total 44 points (needed over 45.5)"

    def test_under_hits(self, engine, games):
        """Under 45.5 with 44 total points wins."""
        assert engine.settle(single(BetType.OVER_UNDER, "Under 45.5"), games).status is BetStatus.WON

    def test_total_exact_landing(self, engine, push_engine, games):
        """A total landing on the line follows the push policy."""
        bet = single(BetType.OVER_UNDER, "over", line=44.0)
        assert engine.settle(bet, games).status is BetStatus.LOST
        assert push_engine.settle(bet, games).status is BetStatus.PUSH

    # Player Prop Tests
    # ─────────────────────────────────────────────────────────────

    def test_player_prop_over_misses(self, engine, games):
        """Kelce over 65.5 receiving with 26 yards loses."""
        outcome = engine.settle(single(BetType.PLAYER_PROP, "Travis Kelce over 65.5 receiving yards"), games)
        assert outcome.status is BetStatus.LOST
        assert outcome.description == "Travis Kelce: 26 receiving yards (needed over 65.5)"

    def test_player_prop_by_last_name(self, engine, games):
        """Should find the player by a partial name stored on the bet."""
        bet = single(BetType.PLAYER_PROP, "under 65.5", player_name="Kelce", prop_type="receiving_yards")
        assert engine.settle(bet, games).status is BetStatus.WON

    def test_player_prop_exact_landing(self, engine, push_engine, games):
        """Jeanty at exactly 65.5 receiving yards follows the push policy."""
        bet = single(BetType.PLAYER_PROP, "Ashton Jeanty over 65.5 receiving yards")
        assert engine.settle(bet, games).status is BetStatus.LOST
        assert push_engine.settle(bet, games).status is BetStatus.PUSH

    def test_player_prop_missing_category_counts_zero(self, engine, games):
        """A quarterback with no receiving line has 0 receiving yards."""
        outcome = engine.settle(single(BetType.PLAYER_PROP, "Patrick Mahomes over 10.5 receiving yards"), games)
        assert outcome.status is BetStatus.LOST
        assert outcome.description.startswith("Patrick Mahomes: 0 receiving yards")

    def test_player_not_in_box_score(self, engine, games):
        """An unknown player needs manual review."""
        outcome = engine.settle(single(BetType.PLAYER_PROP, "Davante Adams over 50.5 receiving yards"), games)
        assert outcome.ready
        assert outcome.status is BetStatus.UNKNOWN
        assert outcome.description == "Player Davante Adams not found in box score"

    # Ambiguity Tests
    # ─────────────────────────────────────────────────────────────

    def test_ambiguous_selection_is_unknown(self, engine, games):
        """A selection naming both teams is flagged, not guessed."""
        outcome = engine.settle(single(BetType.MONEYLINE, "Chiefs or Raiders"), games)
        assert outcome.ready
        assert outcome.status is BetStatus.UNKNOWN
        assert outcome.description.startswith("Needs review")


class TestReadiness:
    """Test suite for bets whose games are not settled yet."""

    def test_game_in_progress(self, engine, chiefs_raiders_final):
        """Should not settle while the game is live."""
        live = chiefs_raiders_final.model_copy(update={"status": GameStatus.IN_PROGRESS})
        outcome = engine.settle(single(BetType.MONEYLINE, "Chiefs"), {RAIDERS_GAME: live})
        assert not outcome.ready
        assert outcome.status is BetStatus.ACTIVE
        assert "not final" in outcome.description

    def test_final_without_scores(self, engine, chiefs_raiders_final):
        """Should not settle a final game missing a score."""
        partial = chiefs_raiders_final.model_copy(update={"away_score": None})
        assert not engine.settle(single(BetType.MONEYLINE, "Chiefs"), {RAIDERS_GAME: partial}).ready

    def test_game_not_loaded(self, engine):
        """Should not settle a bet whose game is unknown."""
        outcome = engine.settle(single(BetType.MONEYLINE, "Chiefs"), {})
        assert not outcome.ready
        assert "not loaded" in outcome.description

    def test_prop_without_box_score(self, engine, games):
        """Should wait for player stats before grading a prop."""
        bet = single(BetType.PLAYER_PROP, "Josh Allen over 250.5 passing yards", game_id=JETS_GAME)
        outcome = engine.settle(bet, games)
        assert not outcome.ready
        assert "no player statistics" in outcome.description

    def test_cancelled_bet_is_not_graded(self, engine, games):
        """Should leave cancelled bets alone."""
        bet = single(BetType.MONEYLINE, "Chiefs", status=BetStatus.CANCELLED)
        outcome = engine.settle(bet, games)
        assert not outcome.ready
        assert outcome.status is BetStatus.CANCELLED

    def test_regrading_is_deterministic(self, engine, games):
        """Should give the same outcome on every call, whatever the stored status."""
        bet = single(BetType.OVER_UNDER, "over 45.5")
        first = engine.settle(bet, games)
        again = engine.settle(bet.model_copy(update={"status": BetStatus.LOST}), games)
        assert first == again


class TestParlays:
    """Test suite for parlay aggregation."""

    def test_all_legs_won(self, engine, games):
        """Should win when every leg wins."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.OVER_UNDER, selection="under 30.5"),
        )
        outcome = engine.settle(bet, games)
        assert outcome.status is BetStatus.WON
        assert outcome.description.startswith("Parlay won!")
        assert [r.status for r in outcome.leg_results] == [BetStatus.WON, BetStatus.WON]

    def test_one_lost_leg_loses(self, engine, games):
        """Should lose when any leg loses."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.OVER_UNDER, selection="over 30.5"),
        )
        outcome = engine.settle(bet, games)
        assert outcome.status is BetStatus.LOST
        assert outcome.description.startswith("Parlay lost - 1 of 2 legs lost")

    def test_lost_leg_beats_unknown_leg(self, engine, games):
        """Should lose even when another leg needs review."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.PLAYER_PROP, selection="Davante Adams over 50.5 receiving yards"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.MONEYLINE, selection="Jets"),
        )
        assert engine.settle(bet, games).status is BetStatus.LOST

    def test_unknown_leg_keeps_parlay_pending(self, engine, games):
        """Should stay pending when a leg needs review and none lost."""
        bet = parlay(
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.MONEYLINE, selection="Bills"),
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.PLAYER_PROP, selection="Davante Adams over 50.5 receiving yards"),
        )
        outcome = engine.settle(bet, games)
        assert not outcome.ready
        assert outcome.status is BetStatus.ACTIVE
        assert "leg(s) 2" in outcome.description
        assert len(outcome.leg_results) == 2

    def test_waits_for_every_game(self, engine, games, jets_bills_final):
        """Should not grade any leg until every leg's game is final."""
        games[JETS_GAME] = jets_bills_final.model_copy(update={"status": GameStatus.IN_PROGRESS})
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Raiders"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.MONEYLINE, selection="Bills"),
        )
        outcome = engine.settle(bet, games)
        assert not outcome.ready
        assert outcome.description.startswith("Parlay waiting on 1 leg(s)")

    def test_push_leg_is_ignored(self, push_engine, games):
        """Should drop pushed legs and grade the rest."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.OVER_UNDER, selection="over 23"),
        )
        outcome = push_engine.settle(bet, games)
        assert outcome.status is BetStatus.WON
        assert outcome.leg_results[1].status is BetStatus.PUSH

    def test_all_legs_pushed(self, push_engine, games):
        """Should push when every leg pushes."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.OVER_UNDER, selection="under 44"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.OVER_UNDER, selection="over 23"),
        )
        assert push_engine.settle(bet, games).status is BetStatus.PUSH

    def test_head_to_head_parlay_needs_review(self, engine, games):
        """Should flag head-to-head parlays for manual review."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            betting_mode=BettingMode.HEAD_TO_HEAD,
            side_a=BetSide(participants=["will"], selection="Chiefs"),
            side_b=BetSide(participants=["dio"], selection="Raiders"),
        )
        assert engine.settle(bet, games).status is BetStatus.UNKNOWN

    def test_head_to_head_parlay_waits_for_games(self, engine, chiefs_raiders_final):
        """Should stay active while a head-to-head parlay's game is still being played."""
        live = chiefs_raiders_final.model_copy(update={"status": GameStatus.IN_PROGRESS})
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            betting_mode=BettingMode.HEAD_TO_HEAD,
            side_a=BetSide(participants=["will"], selection="Chiefs"),
            side_b=BetSide(participants=["dio"], selection="Raiders"),
        )
        outcome = engine.settle(bet, {RAIDERS_GAME: live})
        assert not outcome.ready
        assert outcome.status is BetStatus.ACTIVE
        assert outcome.description.startswith("Parlay waiting on 1 leg(s)")

    def test_snapshot_covers_every_leg(self, engine, games):
        """Should snapshot every game a parlay references."""
        bet = parlay(
            ParlayLeg(game_id=RAIDERS_GAME, bet_type=BetType.MONEYLINE, selection="Chiefs"),
            ParlayLeg(game_id=JETS_GAME, bet_type=BetType.MONEYLINE, selection="Bills"),
        )
        snapshot = engine.snapshot_for(bet, games)
        assert set(snapshot) == {RAIDERS_GAME, JETS_GAME}
        assert snapshot[RAIDERS_GAME]["home_score"] == 20


class TestHeadToHead:
    """Test suite for head-to-head bets (status from side A's perspective)."""

    def test_side_a_wins(self, engine, games):
        """Side A on the winner gets WON and winning side A."""
        outcome = engine.settle(head_to_head(BetType.MONEYLINE, "Chiefs", "Raiders"), games)
        assert outcome.status is BetStatus.WON
        assert outcome.winning_side == "A"

    def test_side_b_wins(self, engine, games):
        """Side B on the winner gets LOST and winning side B."""
        outcome = engine.settle(head_to_head(BetType.OVER_UNDER, "over 44.5", "under 44.5"), games)
        assert outcome.status is BetStatus.LOST
        assert outcome.winning_side == "B"

    def test_both_sides_satisfied(self, engine, games):
        """Overlapping selections that both hold need review."""
        outcome = engine.settle(head_to_head(BetType.OVER_UNDER, "under 50.5", "under 47.5"), games)
        assert outcome.status is BetStatus.UNKNOWN
        assert outcome.winning_side is None
        assert outcome.description.startswith("Both sides satisfied")

    def test_neither_side_satisfied(self, engine, games):
        """Both sides landing on the line under LOSS need review."""
        outcome = engine.settle(head_to_head(BetType.OVER_UNDER, "over 44", "under 44"), games)
        assert outcome.status is BetStatus.UNKNOWN
        assert outcome.description.startswith("Neither side satisfied")

    def test_both_sides_push(self, push_engine, games):
        """Both sides landing on the line under PUSH is a push."""
        outcome = push_engine.settle(head_to_head(BetType.OVER_UNDER, "over 44", "under 44"), games)
        assert outcome.status is BetStatus.PUSH

    def test_unreadable_side(self, engine, games):
        """A side that cannot be parsed needs review."""
        outcome = engine.settle(head_to_head(BetType.MONEYLINE, "Chiefs", "Broncos"), games)
        assert outcome.status is BetStatus.UNKNOWN
