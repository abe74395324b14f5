"""Confidence scoring for cross-provider game matches.

Scores are integers from 0 to 100, built additively:

- Shared provider id: 100, short-circuits everything else
- Team agreement (max 50): both sides 50, one side 20
- Kickoff proximity (max 30): <=30m 30, <=2h 25, <=6h 15, <=24h 5
- Same league week and season: 20, only when at least one team agrees

One noisy signal (e.g. a feed that mislabels its timezone) lowers the score
without vetoing an otherwise obvious match.
"""
from wagerbook.models.domain import GameIdentity, MatchMethod, Provider
from wagerbook.services.sync.utils.teams import teams_match

EXACT_ID_SCORE = 100
BOTH_TEAMS_POINTS = 50
ONE_TEAM_POINTS = 20
WEEK_POINTS = 20

# (max minutes apart, points), checked in order
TIME_BANDS = (
    (30, 30),
    (120, 25),
    (360, 15),
    (1440, 5),
)


def shared_source_id(a: GameIdentity, b: GameIdentity) -> bool:
    """True when both records carry the same non-empty id for the same provider."""
    for provider in Provider:
        a_id = a.source_id(provider)
        if a_id and a_id == b.source_id(provider):
            return True
    return False


def team_points(a: GameIdentity, b: GameIdentity) -> int:
    home = teams_match(a.home_team, b.home_team)
    away = teams_match(a.away_team, b.away_team)
    if home and away:
        return BOTH_TEAMS_POINTS
    if home or away:
        return ONE_TEAM_POINTS
    return 0


def time_points(a: GameIdentity, b: GameIdentity) -> int:
    minutes_apart = abs((a.kickoff - b.kickoff).total_seconds()) / 60
    for max_minutes, points in TIME_BANDS:
        if minutes_apart <= max_minutes:
            return points
    return 0


def week_points(a: GameIdentity, b: GameIdentity) -> int:
    if a.week is None or a.season is None:
        return 0
    if a.week == b.week and a.season == b.season:
        return WEEK_POINTS
    return 0


def calculate_game_match_confidence(a: GameIdentity, b: GameIdentity) -> int:
    """
    Calculate confidence that two records describe the same contest.

    Args:
        a: First game (typically the internal record)
        b: Second game (typically a provider candidate)

    Returns:
        Confidence score between 0 and 100
    """
    if shared_source_id(a, b):
        return EXACT_ID_SCORE

    teams = team_points(a, b)
    score = teams + time_points(a, b)
    if teams:
        score += week_points(a, b)
    return min(score, EXACT_ID_SCORE)


def method_from_confidence(confidence: int) -> MatchMethod:
    """Map a confidence score to its band label."""
    if confidence >= 100:
        return MatchMethod.EXACT_ID
    elif confidence >= 95:
        return MatchMethod.TEAM_AND_TIME
    elif confidence >= 85:
        return MatchMethod.TEAM_AND_WEEK
    else:
        return MatchMethod.FUZZY_TEAM


def get_match_method_description(confidence: int, method: MatchMethod) -> str:
    """
    Get human-readable description of a match.

    Args:
        confidence: Confidence score (0 to 100)
        method: Match method band

    Returns:
        Human-readable description
    """
    descriptions = {
        MatchMethod.EXACT_ID: f'Exact match ({confidence}% confidence)',
        MatchMethod.TEAM_AND_TIME: f'Teams and kickoff time match ({confidence}% confidence)',
        MatchMethod.TEAM_AND_WEEK: f'Teams and week match ({confidence}% confidence)',
        MatchMethod.FUZZY_TEAM: f'Fuzzy team match ({confidence}% confidence)',
    }
    return descriptions[method]
