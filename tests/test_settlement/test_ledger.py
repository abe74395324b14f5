"""Unit tests for the weekly ledger.

Test Strategy:
1. Test group bets under the bet-maker responsibility model
2. Test head-to-head transfers (explicit sides and legacy two-person bets)
3. Test that only won/lost bets move money
4. Test greedy settlement produces balanced transfers
"""
import pytest

from wagerbook.models.domain import Bet, BetSide, BetStatus, BetType, BettingMode
from wagerbook.services.settlement.ledger import Transfer, WeeklyLedger

MEMBERS = ["will", "dio", "rosen", "charlie"]


def group_bet(status, participants, odds=100, amount=10, placed_by="will") -> Bet:
    return Bet(
        id=f"group-{status.value}",
        game_id="game-1",
        week=1,
        placed_by=placed_by,
        participants=participants,
        bet_type=BetType.MONEYLINE,
        selection="Chiefs",
        odds=odds,
        amount_per_person=amount,
        total_amount=amount * len(participants),
        status=status,
    )


def h2h_bet(status, side_a, side_b, amount=20, participants=None) -> Bet:
    return Bet(
        id="h2h-1",
        game_id="game-1",
        week=1,
        placed_by="will",
        participants=participants or side_a + side_b,
        bet_type=BetType.MONEYLINE,
        betting_mode=BettingMode.HEAD_TO_HEAD,
        side_a=BetSide(participants=side_a, selection="Chiefs"),
        side_b=BetSide(participants=side_b, selection="Raiders"),
        amount_per_person=amount,
        status=status,
    )


def nets(ledger: WeeklyLedger) -> dict:
    return {member: round(balance.net, 2) for member, balance in ledger.balances.items()}


class TestGroupBets:
    """Test suite for the bet-maker model."""

    def test_lost_group_bet_pays_bet_maker(self):
        """Each participant pays their stake to the bet maker."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(group_bet(BetStatus.LOST, ["will", "dio", "rosen"]))

        assert nets(ledger) == {"will": 20.0, "dio": -10.0, "rosen": -10.0, "charlie": 0.0}
        assert ledger.settlements() == [
            Transfer(from_member="dio", to_member="will", amount=10.0),
            Transfer(from_member="rosen", to_member="will", amount=10.0),
        ]

    def test_won_group_bet_paid_by_bet_maker(self):
        """The bet maker pays every participant their profit."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(group_bet(BetStatus.WON, ["will", "dio", "rosen"]))

        assert nets(ledger)["will"] == -20.0
        assert ledger.settlements() == [
            Transfer(from_member="will", to_member="dio", amount=10.0),
            Transfer(from_member="will", to_member="rosen", amount=10.0),
        ]

    def test_won_at_minus_110_rounds_to_cents(self):
        """Profits at -110 are settled to the cent."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(group_bet(BetStatus.WON, ["dio", "rosen"], odds=-110))

        transfers = ledger.settlements()
        assert [t.amount for t in transfers] == [9.09, 9.09]
        assert all(t.from_member == "will" for t in transfers)


class TestHeadToHeadBets:
    """Test suite for direct transfers between sides."""

    def test_side_a_wins(self):
        """Every loser pays the stake; the pot is split across winners."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(h2h_bet(BetStatus.WON, ["will"], ["dio", "rosen"]))

        assert nets(ledger) == {"will": 40.0, "dio": -20.0, "rosen": -20.0, "charlie": 0.0}

    def test_side_b_wins_splits_pot(self):
        """A losing side A pays winners on side B."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(h2h_bet(BetStatus.LOST, ["will"], ["dio", "rosen"]))

        assert nets(ledger) == {"will": -20.0, "dio": 10.0, "rosen": 10.0, "charlie": 0.0}

    def test_legacy_two_person_bet(self):
        """Without side members, the bet maker is side A against the other participant."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(h2h_bet(BetStatus.WON, [], [], participants=["will", "charlie"]))

        assert ledger.settlements() == [Transfer(from_member="charlie", to_member="will", amount=20.0)]


class TestLedger:
    """Test suite for bet filtering and settlement."""

    @pytest.mark.parametrize("status", [BetStatus.PUSH, BetStatus.UNKNOWN, BetStatus.ACTIVE, BetStatus.CANCELLED])
    def test_only_won_and_lost_move_money(self, status):
        """Should ignore bets that are not won or lost."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(group_bet(status, ["will", "dio"]))

        assert ledger.bets_counted == 0
        assert ledger.settlements() == []

    def test_unknown_members_are_added(self):
        """Should add members that appear only on bets."""
        ledger = WeeklyLedger(["will"])
        ledger.add_bet(group_bet(BetStatus.LOST, ["guest"]))

        assert nets(ledger) == {"will": 10.0, "guest": -10.0}

    def test_transfers_balance_nets(self):
        """Transfers should clear every member's net balance."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bets([
            group_bet(BetStatus.LOST, ["will", "dio", "rosen", "charlie"]),
            h2h_bet(BetStatus.LOST, ["dio"], ["charlie"], amount=15),
        ])

        balances = nets(ledger)
        assert sum(balances.values()) == pytest.approx(0)
        for transfer in ledger.settlements():
            balances[transfer.from_member] += transfer.amount
            balances[transfer.to_member] -= transfer.amount
        assert all(abs(value) < 0.01 for value in balances.values())

    def test_summary(self):
        """Should report balances, transfers and the number of bets counted."""
        ledger = WeeklyLedger(MEMBERS)
        ledger.add_bet(group_bet(BetStatus.LOST, ["will", "dio"]))

        summary = ledger.summary()

        assert summary["bets_counted"] == 1
        assert summary["balances"]["dio"] == {"won": 0.0, "lost": 10.0, "net": -10.0}
        assert summary["settlements"] == [{"from_member": "dio", "to_member": "will", "amount": 10.0}]
