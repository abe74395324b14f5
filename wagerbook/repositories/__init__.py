"""
Repository layer for data access.

Usage:
    from wagerbook.repositories import GameMappingRepository

    repo = GameMappingRepository(db)
    mapping = repo.get(internal_id)
"""
from wagerbook.repositories.base import BaseRepository, AuditLogRepository
from wagerbook.repositories.mapping_repository import GameMappingRepository
from wagerbook.repositories.bet_repository import BetRepository
from wagerbook.repositories.game_repository import GameRepository

__all__ = [
    "BaseRepository",
    "AuditLogRepository",
    "GameMappingRepository",
    "BetRepository",
    "GameRepository",
]
