"""Odds API adapter: the odds provider.

Uses The Odds API v4 events listing, which returns every scheduled event
with its id, teams and commence time:

    GET {base}/sports/americanfootball_nfl/events?apiKey=...&commenceTimeFrom=...&commenceTimeTo=...

Data transformation:
- Odds API event → MatchCandidate (odds_provider_id = event id)
- Team names are kept as sent ("Kansas City Chiefs")
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from wagerbook.core.config import settings
from wagerbook.core.exceptions import UpstreamFetchFailure
from wagerbook.models.domain import MatchCandidate
from wagerbook.services.sync.adapters.base import BaseProviderAdapter
from wagerbook.utils.timezone import get_nfl_week_boundaries, parse_instant

logger = logging.getLogger(__name__)


def _iso_z(value: datetime) -> str:
    """Format as the API expects: second precision with a Z suffix."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class OddsApiAdapter(BaseProviderAdapter):
    """
    Adapter for The Odds API events.

    Without an API key every fetch fails with ``UpstreamFetchFailure``.
    """

    source = "odds_api"

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        """
        Initialize the Odds API adapter.

        Args:
            api_key: The Odds API key (defaults to settings)
            base_url: API root (defaults to settings)
        """
        super().__init__(base_url or settings.ODDS_API_BASE_URL, **kwargs)
        self.api_key = api_key if api_key is not None else settings.THE_ODDS_API_KEY
        self.sport_key = settings.ODDS_API_SPORT_KEY

    async def fetch_week(self, week: int, season: Optional[int] = None) -> List[MatchCandidate]:
        """
        Fetch events whose kickoff falls in a league week.

        Raises:
            UpstreamFetchFailure: If the API key is missing or the API fails
        """
        if not self.api_key:
            raise UpstreamFetchFailure(self.source, "THE_ODDS_API_KEY is not configured")

        season = season or settings.CURRENT_SEASON
        start, end = get_nfl_week_boundaries(week, season)
        events = await self._get_json(
            f"/sports/{self.sport_key}/events",
            params={
                "apiKey": self.api_key,
                "commenceTimeFrom": _iso_z(start),
                "commenceTimeTo": _iso_z(end.replace(microsecond=0)),
            },
            expected=list,
        )

        candidates = []
        for event in events:
            if not isinstance(event, dict):
                logger.warning(f"Skipping non-object Odds API event {event!r}")
                continue
            candidate = self._parse_event(event, week, season)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"Fetched {len(candidates)} Odds API events for {season} week {week}")
        return candidates

    @staticmethod
    def _parse_event(event: Dict, week: int, season: int) -> Optional[MatchCandidate]:
        if not event.get("id") or not event.get("home_team") or not event.get("away_team"):
            logger.warning(f"Skipping malformed Odds API event {event.get('id')}")
            return None
        try:
            kickoff = parse_instant(event.get("commence_time"))
        except ValueError:
            logger.warning(f"Skipping Odds API event {event['id']} without a commence time")
            return None

        return MatchCandidate(
            odds_provider_id=event["id"],
            home_team=event["home_team"],
            away_team=event["away_team"],
            kickoff=kickoff,
            week=week,
            season=season,
        )
