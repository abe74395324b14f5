"""American odds arithmetic.

    -110 → decimal 1.909..., $10 stake profits $9.09
    +150 → decimal 2.5,      $10 stake profits $15.00
"""
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Payout:
    stake: float
    profit: float
    total_payout: float
    odds: int


def american_to_decimal(odds: float) -> float:
    """Convert American odds to decimal odds."""
    if odds == 0:
        raise ValueError("American odds cannot be 0")
    if odds > 0:
        return (odds / 100) + 1
    return (100 / abs(odds)) + 1


def decimal_to_american(decimal: float) -> int:
    """Convert decimal odds to American odds."""
    if decimal <= 1:
        raise ValueError(f"Decimal odds must exceed 1, got {decimal}")
    if decimal >= 2.0:
        return int(round((decimal - 1) * 100))
    return int(round(-100 / (decimal - 1)))


def calculate_payout(stake: float, odds: int) -> Payout:
    """Profit and total return for a winning single bet."""
    if odds > 0:
        profit = stake * odds / 100
    else:
        profit = stake * 100 / abs(odds)
    return Payout(stake=stake, profit=profit, total_payout=stake + profit, odds=odds)


def calculate_parlay_odds(leg_odds: Sequence[int]) -> int:
    """
    Combined American odds for a parlay.

    Raises:
        ValueError: With fewer than two legs
    """
    if len(leg_odds) < 2:
        raise ValueError("Parlay must have at least 2 legs")

    multiplier = 1.0
    for odds in leg_odds:
        multiplier *= american_to_decimal(odds)
    return decimal_to_american(multiplier)


def calculate_parlay_payout(stake: float, parlay_odds: int) -> Payout:
    """Payout at combined parlay odds, rounded to cents."""
    total = stake * american_to_decimal(parlay_odds)
    return Payout(
        stake=stake,
        profit=round(total - stake, 2),
        total_payout=round(total, 2),
        odds=parlay_odds,
    )
