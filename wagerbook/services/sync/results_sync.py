"""Results sync: copy final scores and box scores onto internal games.

Uses the stored scores-provider id of each game's mapping, so mapping
repair must have run for a game before its result can be synced.
"""
import logging
from typing import Dict, Optional

from wagerbook.core.exceptions import UpstreamFetchFailure
from wagerbook.models.domain import GameStatus
from wagerbook.repositories.game_repository import GameRepository
from wagerbook.repositories.mapping_repository import GameMappingRepository
from wagerbook.services.sync.adapters.espn_adapter import EspnScoreboardAdapter

logger = logging.getLogger(__name__)


class ResultsSyncService:
    """Update internal games from the scores provider."""

    def __init__(
        self,
        games: GameRepository,
        mappings: GameMappingRepository,
        scores_adapter: EspnScoreboardAdapter
    ):
        self.games = games
        self.mappings = mappings
        self.scores_adapter = scores_adapter

    async def sync_week(self, week: int, season: int) -> Dict[str, int]:
        """
        Sync status, scores and (for final games) player stats for a week.

        Raises:
            UpstreamFetchFailure: If the scoreboard cannot be fetched
        """
        candidates = await self.scores_adapter.fetch_week(week, season)
        by_scores_id = {c.scores_provider_id: c for c in candidates}

        stats = {"updated": 0, "unmapped": 0, "box_scores": 0, "errors": 0}
        for game in self.games.list_week(week, season):
            mapping = self.mappings.get(game.id)
            candidate = by_scores_id.get(mapping.scores_provider_id) if mapping else None
            if candidate is None:
                stats["unmapped"] += 1
                continue

            player_stats = None
            if candidate.status is GameStatus.FINAL and game.player_stats is None:
                player_stats = await self._fetch_box_score(candidate.scores_provider_id, stats)

            self.games.update_result(
                game.id,
                candidate.status or GameStatus.SCHEDULED,
                candidate.home_score,
                candidate.away_score,
                player_stats=player_stats,
            )
            stats["updated"] += 1

        logger.info(
            f"Results sync week {week}: {stats['updated']} updated, "
            f"{stats['unmapped']} unmapped, {stats['box_scores']} box scores"
        )
        return stats

    async def _fetch_box_score(self, event_id: str, stats: Dict[str, int]) -> Optional[list]:
        try:
            lines = await self.scores_adapter.fetch_player_stats(event_id)
        except UpstreamFetchFailure as e:
            logger.error(f"Box score fetch failed for event {event_id}: {e}")
            stats["errors"] += 1
            return None
        stats["box_scores"] += 1
        return lines
