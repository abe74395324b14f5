"""ESPN adapter: the scores provider.

Endpoints used (public, unauthenticated):
- {base}/scoreboard?week=N&seasontype=2&year=YYYY - weekly schedule, status and scores
- {base}/summary?event=ID - box score with per-player passing/rushing/receiving lines

Data transformation:
- Scoreboard events → MatchCandidate (scores_provider_id = ESPN event id)
- Box score → PlayerStatLine list (yards are the second stat column)
"""
import logging
from typing import Any, Dict, List, Optional

from wagerbook.core.config import settings
from wagerbook.models.domain import GameStatus, MatchCandidate, PlayerStatLine
from wagerbook.services.sync.adapters.base import BaseProviderAdapter
from wagerbook.utils.timezone import parse_instant

logger = logging.getLogger(__name__)

REGULAR_SEASON = 2
STAT_CATEGORIES = ("passing", "rushing", "receiving")
YARDS_COLUMN = 1


class EspnScoreboardAdapter(BaseProviderAdapter):
    """Fetch NFL schedule, scores and box scores from ESPN."""

    source = "espn"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.ESPN_BASE_URL, **kwargs)

    async def fetch_week(self, week: int, season: Optional[int] = None) -> List[MatchCandidate]:
        """
        Fetch a regular-season week's games.

        Args:
            week: League week
            season: Season year (defaults to settings.CURRENT_SEASON)

        Returns:
            Candidates with status and scores populated

        Raises:
            UpstreamFetchFailure: If ESPN cannot be reached
        """
        season = season or settings.CURRENT_SEASON
        data = await self._get_json(
            "/scoreboard",
            params={"week": week, "seasontype": REGULAR_SEASON, "year": season},
        )

        candidates = []
        for event in data.get("events") or []:
            if not isinstance(event, dict):
                logger.warning(f"Skipping non-object ESPN event {event!r}")
                continue
            candidate = self._parse_event(event, week, season)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"Fetched {len(candidates)} ESPN games for {season} week {week}")
        return candidates

    async def fetch_player_stats(self, event_id: str) -> List[PlayerStatLine]:
        """
        Fetch per-player yardage for a game.

        Raises:
            UpstreamFetchFailure: If ESPN cannot be reached
        """
        data = await self._get_json("/summary", params={"event": event_id})
        return self._parse_box_score(data.get("boxscore", {}))

    @staticmethod
    def _parse_game_status(status: Dict) -> GameStatus:
        """Parse ESPN status block to a GameStatus."""
        status_type = status.get("type", {})
        if status_type.get("completed") or status_type.get("name") == "STATUS_FINAL":
            return GameStatus.FINAL
        if status_type.get("state") == "in":
            return GameStatus.IN_PROGRESS
        return GameStatus.SCHEDULED

    @staticmethod
    def _parse_score(value: Any) -> Optional[int]:
        if value in (None, ""):
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @classmethod
    def _parse_event(cls, event: Dict, week: int, season: int) -> Optional[MatchCandidate]:
        competitions = event.get("competitions") or [{}]
        competition = competitions[0]

        home = away = None
        for competitor in competition.get("competitors", []):
            if competitor.get("homeAway") == "home":
                home = competitor
            else:
                away = competitor

        if not home or not away or not event.get("date"):
            logger.warning(f"Skipping malformed ESPN event {event.get('id')}")
            return None

        try:
            kickoff = parse_instant(event["date"])
        except ValueError:
            logger.warning(f"Skipping ESPN event {event.get('id')} with bad date {event.get('date')!r}")
            return None

        status = cls._parse_game_status(event.get("status") or competition.get("status") or {})
        has_scores = status is not GameStatus.SCHEDULED

        return MatchCandidate(
            scores_provider_id=str(event.get("id")),
            home_team=home.get("team", {}).get("displayName", ""),
            away_team=away.get("team", {}).get("displayName", ""),
            kickoff=kickoff,
            week=week,
            season=season,
            status=status,
            home_score=cls._parse_score(home.get("score")) if has_scores else None,
            away_score=cls._parse_score(away.get("score")) if has_scores else None,
        )

    @classmethod
    def _parse_box_score(cls, boxscore: Dict) -> List[PlayerStatLine]:
        """Merge passing/rushing/receiving tables into one line per player."""
        lines: Dict[str, Dict[str, Any]] = {}

        for team_block in boxscore.get("players", []):
            team_name = team_block.get("team", {}).get("displayName")
            for table in team_block.get("statistics", []):
                category = table.get("name")
                if category not in STAT_CATEGORIES:
                    continue
                for entry in table.get("athletes", []):
                    name = entry.get("athlete", {}).get("displayName")
                    stats = entry.get("stats") or []
                    if not name or len(stats) <= YARDS_COLUMN:
                        continue
                    yards = cls._parse_score(stats[YARDS_COLUMN])
                    line = lines.setdefault(name, {"player_name": name, "team": team_name})
                    line[f"{category}_yards"] = yards

        return [PlayerStatLine(**line) for line in lines.values()]

