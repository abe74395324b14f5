"""
Deterministic game identifiers.

Every provider describes the same contest with its own id. Internally a game
is keyed by its Eastern calendar date and its two teams, so that the id can be
recomputed from any provider's record:

    readable id: 20250914-jets-patriots  (YYYYMMDD-away-home)
    game id:     md5 hex digest of the readable id
"""
import hashlib
from datetime import datetime
from typing import Union

from wagerbook.models.domain import GameIdentity
from wagerbook.services.sync.utils.teams import team_key
from wagerbook.utils.timezone import parse_instant, utc_to_eastern


def generate_readable_game_id(kickoff: Union[datetime, str], away_team: str, home_team: str) -> str:
    eastern = utc_to_eastern(parse_instant(kickoff))
    return f"{eastern.strftime('%Y%m%d')}-{team_key(away_team)}-{team_key(home_team)}"


def generate_game_id(kickoff: Union[datetime, str], away_team: str, home_team: str) -> str:
    readable = generate_readable_game_id(kickoff, away_team, home_team)
    return hashlib.md5(readable.encode("utf-8")).hexdigest()


def generate_game_signature(game: GameIdentity) -> str:
    """
    Provider-independent signature used to collapse duplicate candidates.

    Example:
        '2025-w1-20250907-raiders@chiefs'
    """
    eastern = utc_to_eastern(game.kickoff)
    week = game.week if game.week is not None else "x"
    return (
        f"{game.season}-w{week}-{eastern.strftime('%Y%m%d')}-"
        f"{team_key(game.away_team)}@{team_key(game.home_team)}"
    )
