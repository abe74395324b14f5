"""
Timezone and league-calendar utilities.

All instants are stored in UTC. The league schedules in Eastern Time, and
Sunday broadcast windows are easiest to read in Pacific Time, so both
conversions are provided.

US daylight saving rules (both zones):
- DST starts: Second Sunday in March at 2:00 AM local time
- DST ends: First Sunday in November at 2:00 AM local time

Eastern: EST UTC-5 / EDT UTC-4
Pacific: PST UTC-8 / PDT UTC-7
"""
from datetime import date, datetime, timezone, timedelta
from typing import Optional, Tuple, Union

UTC = timezone.utc

EASTERN_STANDARD_OFFSET = timedelta(hours=-5)
PACIFIC_STANDARD_OFFSET = timedelta(hours=-8)

REGULAR_SEASON_WEEKS = 18
# Wild card, divisional, conference, bye week, Super Bowl
POSTSEASON_WEEKS = 5


# =============================================================================
# INSTANT PARSING
# =============================================================================

def parse_instant(value: Union[datetime, str, None]) -> datetime:
    """
    Parse a kickoff instant into a timezone-aware UTC datetime.

    Naive datetimes are taken to be UTC. Strings must be ISO 8601; a
    trailing 'Z' is accepted.

    Raises:
        ValueError: If the value is missing or cannot be parsed
    """
    if value is None:
        raise ValueError("kickoff instant is missing")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("kickoff instant is empty")
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise ValueError(f"unsupported kickoff type: {type(value).__name__}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


# =============================================================================
# TIMEZONE CONVERSIONS
# =============================================================================

def _find_nth_sunday(year: int, month: int, n: int) -> datetime:
    """Find the nth Sunday of the given month."""
    first = datetime(year, month, 1)
    days_until_sunday = (6 - first.weekday()) % 7
    return first + timedelta(days=days_until_sunday + 7 * (n - 1))


def _get_dst_transitions(year: int, standard_offset: timedelta) -> Tuple[datetime, datetime]:
    """
    Get DST transition instants for a US zone.

    Args:
        year: Year to calculate transitions for
        standard_offset: The zone's standard-time UTC offset

    Returns:
        Tuple of (dst_start, dst_end) as aware UTC datetimes
    """
    daylight_offset = standard_offset + timedelta(hours=1)

    dst_start_local = _find_nth_sunday(year, 3, 2).replace(hour=2)
    dst_start_utc = (dst_start_local - standard_offset).replace(tzinfo=UTC)

    dst_end_local = _find_nth_sunday(year, 11, 1).replace(hour=2)
    dst_end_utc = (dst_end_local - daylight_offset).replace(tzinfo=UTC)

    return dst_start_utc, dst_end_utc


def _utc_offset_for(utc_datetime: datetime, standard_offset: timedelta) -> timedelta:
    dst_start, dst_end = _get_dst_transitions(utc_datetime.year, standard_offset)
    if dst_start <= utc_datetime < dst_end:
        return standard_offset + timedelta(hours=1)
    return standard_offset


def _convert(utc_datetime: Optional[datetime], standard_offset: timedelta) -> Optional[datetime]:
    if utc_datetime is None:
        return None
    aware = parse_instant(utc_datetime)
    local = aware + _utc_offset_for(aware, standard_offset)
    return local.replace(tzinfo=None)


def utc_to_eastern(utc_datetime: Optional[datetime]) -> Optional[datetime]:
    """
    Convert UTC datetime to Eastern Time (EST/EDT).

    Returns:
        Eastern wall-clock time as a naive datetime

    Example:
        >>> utc_to_eastern(datetime(2025, 9, 12, 0, 15))
        datetime(2025, 9, 11, 20, 15)  # Thursday night, EDT
    """
    return _convert(utc_datetime, EASTERN_STANDARD_OFFSET)


def utc_to_pacific(utc_datetime: Optional[datetime]) -> Optional[datetime]:
    """
    Convert UTC datetime to Pacific Time (PST/PDT).

    Returns:
        Pacific wall-clock time as a naive datetime
    """
    return _convert(utc_datetime, PACIFIC_STANDARD_OFFSET)


def eastern_to_utc(eastern_datetime: datetime) -> datetime:
    """
    Convert a naive Eastern wall-clock time to an aware UTC datetime.

    During the repeated hour in November the daylight reading is used.
    """
    if eastern_datetime.tzinfo is not None:
        return eastern_datetime.astimezone(UTC)

    as_edt = (eastern_datetime - (EASTERN_STANDARD_OFFSET + timedelta(hours=1))).replace(tzinfo=UTC)
    if _utc_offset_for(as_edt, EASTERN_STANDARD_OFFSET) != EASTERN_STANDARD_OFFSET:
        return as_edt
    return (eastern_datetime - EASTERN_STANDARD_OFFSET).replace(tzinfo=UTC)


def format_game_time_eastern(utc_datetime: Optional[datetime]) -> str:
    """
    Format a UTC datetime as an Eastern Time string.

    Example:
        >>> format_game_time_eastern(datetime(2025, 9, 12, 0, 15))
        '2025-09-11 20:15 ET'
    """
    if utc_datetime is None:
        return "N/A"
    return f"{utc_to_eastern(utc_datetime).strftime('%Y-%m-%d %H:%M')} ET"


# =============================================================================
# LEAGUE CALENDAR
# =============================================================================

def get_season_opener(season: int) -> date:
    """
    Get the Eastern calendar date of the season's opening Thursday.

    The league opens on the Thursday after Labor Day (first Monday of
    September): September 4 for 2025, September 5 for 2024.
    """
    sept_first = date(season, 9, 1)
    labor_day = sept_first + timedelta(days=(0 - sept_first.weekday()) % 7)
    return labor_day + timedelta(days=3)


def get_nfl_week_boundaries(week: int, season: int) -> Tuple[datetime, datetime]:
    """
    Get the UTC span of a league week.

    Each week runs from Thursday 00:00 ET through the following Wednesday
    23:59:59.999999 ET.

    Args:
        week: League week (1-based)
        season: Season year (e.g. 2025 for the 2025-26 season)

    Returns:
        Tuple of (start, end) as aware UTC datetimes
    """
    if week < 1:
        raise ValueError(f"week must be >= 1, got {week}")

    start_date = get_season_opener(season) + timedelta(weeks=week - 1)
    start_local = datetime.combine(start_date, datetime.min.time())
    end_local = start_local + timedelta(days=7) - timedelta(microseconds=1)

    return eastern_to_utc(start_local), eastern_to_utc(end_local)


def get_nfl_season(kickoff: Union[datetime, str]) -> int:
    """
    Get the season a kickoff belongs to.

    January and February games (playoffs) belong to the previous year's season.
    """
    eastern = utc_to_eastern(parse_instant(kickoff))
    return eastern.year if eastern.month >= 3 else eastern.year - 1


def get_nfl_week(kickoff: Union[datetime, str], season: Optional[int] = None) -> Optional[int]:
    """
    Get the league week a kickoff falls in.

    Args:
        kickoff: Kickoff instant
        season: Season year; derived from the kickoff when omitted

    Returns:
        Week number (1-based, postseason continues the count), or None when
        the kickoff is outside the season
    """
    eastern = utc_to_eastern(parse_instant(kickoff))
    if season is None:
        season = get_nfl_season(kickoff)

    days_since_opener = (eastern.date() - get_season_opener(season)).days
    if days_since_opener < 0:
        return None

    week = days_since_opener // 7 + 1
    if week > REGULAR_SEASON_WEEKS + POSTSEASON_WEEKS:
        return None
    return week
