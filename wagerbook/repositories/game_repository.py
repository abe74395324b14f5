"""
Canonical internal games.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from wagerbook.models import Game
from wagerbook.models.domain import GameIdentity, GameStatus, PlayerStatLine, ResolvedGame
from wagerbook.repositories.base import BaseRepository, from_storage, to_storage, utcnow
from wagerbook.services.schedule_service import classify
from wagerbook.services.sync.utils.game_ids import generate_game_id, generate_readable_game_id
from wagerbook.utils.timezone import get_nfl_season, get_nfl_week, parse_instant

logger = logging.getLogger(__name__)


class GameRepository(BaseRepository[Game]):
    """Access to the ``games`` table and conversion to domain types."""

    def __init__(self, db: Session):
        super().__init__(Game, db)

    def get_or_create(
        self,
        home_team: str,
        away_team: str,
        kickoff: datetime
    ) -> Tuple[Game, bool]:
        """
        Find a game by its deterministic id or create it.

        Week, season and broadcast slot are derived from the kickoff.

        Returns:
            Tuple of (Game, was_created)
        """
        kickoff = parse_instant(kickoff)
        game_id = generate_game_id(kickoff, away_team, home_team)
        game = self.find_by_id(game_id)
        if game:
            return game, False

        season = get_nfl_season(kickoff)
        game = self.create(
            id=game_id,
            readable_id=generate_readable_game_id(kickoff, away_team, home_team),
            season=season,
            week=get_nfl_week(kickoff, season),
            home_team=home_team,
            away_team=away_team,
            kickoff=to_storage(kickoff),
            time_slot=classify(kickoff).value,
            status=GameStatus.SCHEDULED.value,
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        self.save()
        logger.info(f"Created game {game.readable_id} ({game.id})")
        return game, True

    def list_week(self, week: int, season: int) -> List[Game]:
        return (
            self.query()
            .filter(Game.week == week, Game.season == season)
            .order_by(Game.kickoff, Game.id)
            .all()
        )

    def update_result(
        self,
        game_id: str,
        status: GameStatus,
        home_score: Optional[int],
        away_score: Optional[int],
        player_stats: Optional[List[PlayerStatLine]] = None
    ) -> Optional[Game]:
        """Record the latest status and score for a game."""
        game = self.find_by_id(game_id)
        if game is None:
            return None
        game.status = status.value
        game.home_score = home_score
        game.away_score = away_score
        if player_stats is not None:
            game.player_stats = [line.model_dump() for line in player_stats]
        game.updated_at = utcnow()
        self.save()
        return game

    def reclassify(self, game_id: str, kickoff: datetime) -> Optional[Game]:
        """Move a game to a new kickoff and recompute its week and slot."""
        game = self.find_by_id(game_id)
        if game is None:
            return None
        kickoff = parse_instant(kickoff)
        game.kickoff = to_storage(kickoff)
        game.week = get_nfl_week(kickoff, game.season)
        game.time_slot = classify(kickoff).value
        game.updated_at = utcnow()
        self.save()
        return game

    # ========================================================================
    # Domain conversion
    # ========================================================================

    @staticmethod
    def to_identity(game: Game) -> GameIdentity:
        return GameIdentity(
            internal_id=game.id,
            home_team=game.home_team,
            away_team=game.away_team,
            kickoff=from_storage(game.kickoff),
            week=game.week,
            season=game.season,
        )

    @staticmethod
    def to_resolved(game: Game) -> ResolvedGame:
        stats = None
        if game.player_stats is not None:
            stats = [PlayerStatLine(**line) for line in game.player_stats]
        return ResolvedGame(
            game_id=game.id,
            home_team=game.home_team,
            away_team=game.away_team,
            status=GameStatus(game.status),
            home_score=game.home_score,
            away_score=game.away_score,
            kickoff=from_storage(game.kickoff),
            player_stats=stats,
        )

    def resolved_games(self, game_ids: Iterable[str]) -> Dict[str, ResolvedGame]:
        """Load settlement views for the given game ids. Unknown ids are skipped."""
        ids = list(set(game_ids))
        if not ids:
            return {}
        return {game.id: self.to_resolved(game) for game in self.where(Game.id.in_(ids))}
