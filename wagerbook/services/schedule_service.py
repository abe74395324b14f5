"""
Broadcast-slot classification.

The weekday is taken in Eastern Time, computed from the UTC instant. Sunday
windows are split on the Pacific wall clock:

    Thursday                  -> thursday
    Monday                    -> monday
    Sunday, before 12:00 PT   -> sunday_early
    Sunday, 12:00-14:59 PT    -> sunday_afternoon
    Sunday, 15:00 PT or later -> sunday_night
    anything else             -> sunday_early

Classification never raises. An unreadable kickoff is logged and classified
as sunday_early.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Tuple, Union

from wagerbook.models.domain import TimeSlot
from wagerbook.utils.timezone import parse_instant, utc_to_eastern, utc_to_pacific

logger = logging.getLogger(__name__)

THURSDAY = 3
SUNDAY = 6
MONDAY = 0

SUNDAY_AFTERNOON_START_HOUR = 12
SUNDAY_NIGHT_START_HOUR = 15

KickoffValue = Union[datetime, str, None]


def _slot_for(kickoff: datetime) -> TimeSlot:
    eastern = utc_to_eastern(kickoff)
    weekday = eastern.weekday()

    if weekday == THURSDAY:
        return TimeSlot.THURSDAY
    if weekday == MONDAY:
        return TimeSlot.MONDAY
    if weekday == SUNDAY:
        pacific_hour = utc_to_pacific(kickoff).hour
        if pacific_hour < SUNDAY_AFTERNOON_START_HOUR:
            return TimeSlot.SUNDAY_EARLY
        if pacific_hour < SUNDAY_NIGHT_START_HOUR:
            return TimeSlot.SUNDAY_AFTERNOON
        return TimeSlot.SUNDAY_NIGHT

    return TimeSlot.SUNDAY_EARLY


def classify(kickoff: KickoffValue) -> TimeSlot:
    """
    Assign a kickoff instant to its broadcast window.

    Example:
        >>> classify("2025-09-12T00:15:00Z")  # Thursday 8:15 PM ET
        <TimeSlot.THURSDAY: 'thursday'>
    """
    try:
        return _slot_for(parse_instant(kickoff))
    except (ValueError, OverflowError) as e:
        logger.warning(f"Invalid kickoff {kickoff!r}, defaulting to sunday_early: {e}")
        return TimeSlot.SUNDAY_EARLY


def classify_many(kickoffs: Iterable[Tuple[str, KickoffValue]]) -> Tuple[Dict[str, TimeSlot], List[str]]:
    """
    Classify a batch of games.

    Args:
        kickoffs: (game_id, kickoff) pairs

    Returns:
        Tuple of ({game_id: slot}, [error messages]). Games with an invalid
        kickoff are still classified (sunday_early) and listed in the errors.
    """
    slots: Dict[str, TimeSlot] = {}
    errors: List[str] = []

    for game_id, kickoff in kickoffs:
        try:
            slots[game_id] = _slot_for(parse_instant(kickoff))
        except (ValueError, OverflowError) as e:
            logger.warning(f"Invalid kickoff for game {game_id}: {e}")
            errors.append(f"{game_id}: invalid kickoff {kickoff!r}")
            slots[game_id] = TimeSlot.SUNDAY_EARLY

    if errors:
        logger.info(f"Classified {len(slots)} games, {len(errors)} with invalid kickoffs")
    return slots, errors
