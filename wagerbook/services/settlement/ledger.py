"""Weekly ledger: who owes whom once a week's bets are settled.

Group bets follow the bet-maker responsibility model. The member who placed
the bet fronts it for everyone:
- won: the bet maker pays each participant their profit share
- lost: each participant pays their stake to the bet maker

Head-to-head bets are direct transfers: every member on the losing side pays
``amount_per_person``, split evenly across the winning side.

Only won/lost bets move money. Pushes, unknowns, active and cancelled bets
are ignored.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from wagerbook.models.domain import Bet, BetStatus, BettingMode
from wagerbook.services.settlement.odds_math import calculate_payout

logger = logging.getLogger(__name__)

MIN_TRANSFER = 0.01


@dataclass
class MemberBalance:
    won: float = 0.0
    lost: float = 0.0
    net: float = 0.0

    def credit(self, amount: float) -> None:
        self.won += amount
        self.net += amount

    def debit(self, amount: float) -> None:
        self.lost += amount
        self.net -= amount


@dataclass(frozen=True)
class Transfer:
    from_member: str
    to_member: str
    amount: float


class WeeklyLedger:
    """
    Accumulate settled bets and compute the minimal set of payments.

    Args:
        members: Group members (members seen only on bets are added as they appear)
    """

    def __init__(self, members: Optional[Iterable[str]] = None):
        self.balances: Dict[str, MemberBalance] = {m: MemberBalance() for m in (members or [])}
        self.bets_counted = 0

    def _member(self, name: str) -> MemberBalance:
        if name not in self.balances:
            logger.debug(f"Adding ledger member {name}")
            self.balances[name] = MemberBalance()
        return self.balances[name]

    def add_bets(self, bets: Iterable[Bet]) -> None:
        for bet in bets:
            self.add_bet(bet)

    def add_bet(self, bet: Bet) -> None:
        """Book one bet. Bets that are not won or lost are skipped."""
        if bet.status not in (BetStatus.WON, BetStatus.LOST):
            return

        if bet.betting_mode is BettingMode.HEAD_TO_HEAD:
            self._add_head_to_head(bet)
        else:
            self._add_group(bet)
        self.bets_counted += 1

    def _add_group(self, bet: Bet) -> None:
        if not bet.placed_by:
            logger.warning(f"Group bet {bet.id} has no bet maker; skipping")
            return

        maker = self._member(bet.placed_by)
        if bet.status is BetStatus.WON:
            profit = calculate_payout(bet.amount_per_person, bet.odds).profit
            maker.debit(profit * len(bet.participants))
            for participant in bet.participants:
                self._member(participant).credit(profit)
        else:
            for participant in bet.participants:
                self._member(participant).debit(bet.amount_per_person)
            maker.credit(bet.amount_per_person * len(bet.participants))

    def _add_head_to_head(self, bet: Bet) -> None:
        side_a_won = bet.status is BetStatus.WON

        if bet.side_a and bet.side_b and bet.side_a.participants and bet.side_b.participants:
            winners = bet.side_a.participants if side_a_won else bet.side_b.participants
            losers = bet.side_b.participants if side_a_won else bet.side_a.participants
        else:
            # Legacy shape: the bet maker is side A, the other participant side B
            opponent = next((p for p in bet.participants if p != bet.placed_by), None)
            if not bet.placed_by or opponent is None:
                logger.warning(f"Head-to-head bet {bet.id} has no opponent; skipping")
                return
            winners = [bet.placed_by] if side_a_won else [opponent]
            losers = [opponent] if side_a_won else [bet.placed_by]

        pot = bet.amount_per_person * len(losers)
        for loser in losers:
            self._member(loser).debit(bet.amount_per_person)
        for winner in winners:
            self._member(winner).credit(pot / len(winners))

    def settlements(self) -> List[Transfer]:
        """
        Greedy creditor/debtor matching, largest balances first.

        Amounts are rounded to cents; remainders under a cent are dropped.
        """
        net = {member: round(balance.net, 2) for member, balance in self.balances.items()}
        creditors = sorted((m for m in net if net[m] > 0), key=lambda m: -net[m])
        debtors = sorted((m for m in net if net[m] < 0), key=lambda m: net[m])

        transfers: List[Transfer] = []
        ci = di = 0
        while ci < len(creditors) and di < len(debtors):
            creditor, debtor = creditors[ci], debtors[di]
            amount = round(min(net[creditor], -net[debtor]), 2)

            if amount >= MIN_TRANSFER:
                transfers.append(Transfer(from_member=debtor, to_member=creditor, amount=amount))
                net[creditor] = round(net[creditor] - amount, 2)
                net[debtor] = round(net[debtor] + amount, 2)

            if net[creditor] < MIN_TRANSFER:
                ci += 1
            if net[debtor] > -MIN_TRANSFER:
                di += 1

        return transfers

    def summary(self) -> Dict:
        return {
            "balances": {
                member: {"won": round(b.won, 2), "lost": round(b.lost, 2), "net": round(b.net, 2)}
                for member, b in self.balances.items()
            },
            "settlements": [t.__dict__ for t in self.settlements()],
            "bets_counted": self.bets_counted,
        }
