"""
Wagerbook - group NFL wager tracking.

Resolves game identities across the scores and odds providers and settles
the group's bets once games go final.
"""

__version__ = "1.0.0"
