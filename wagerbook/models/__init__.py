"""
Models for the wager book.

Usage:
    from wagerbook.models import Base, Game, GameMapping, Bet, MatchAuditLog
    from wagerbook.models.domain import GameIdentity, ResolvedGame
"""
from wagerbook.models.tables import (
    Base,
    Game,
    GameMapping,
    Bet,
    MatchAuditLog,
)

__all__ = [
    "Base",
    "Game",
    "GameMapping",
    "Bet",
    "MatchAuditLog",
]
