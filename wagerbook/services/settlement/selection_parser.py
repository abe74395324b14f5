"""
Free-text selection parsing.

Bettors type selections like "Kansas City Chiefs", "Chiefs -3.5",
"over 45.5" or "Travis Kelce over 65.5 receiving yards". Everything that
interprets that text lives here so the grading rules never touch raw strings.
"""
import re
from dataclasses import dataclass
from typing import Optional

from wagerbook.core.exceptions import AmbiguousSelection
from wagerbook.models.domain import BetType, PropCategory
from wagerbook.services.sync.utils.name_normalizer import normalize_team_name

HOME = "home"
AWAY = "away"
OVER = "over"
UNDER = "under"

_DIRECTION_RE = re.compile(r"\b(over|under)\b", re.IGNORECASE)
# Standalone signed number: matches "-3.5" and "45.5", not the "49" in "49ers"
_NUMBER_RE = re.compile(r"(?<![\w.])([+-]?\d+(?:\.\d+)?)(?![\w.])")

_CATEGORY_KEYWORDS = (
    (PropCategory.RECEIVING, ("receiving", "rec yds")),
    (PropCategory.RUSHING, ("rushing", "rush yds")),
    (PropCategory.PASSING, ("passing", "pass yds")),
)


@dataclass(frozen=True)
class ParsedSelection:
    """Structured view of a selection. Fields a bet type does not use stay None."""
    side: Optional[str] = None
    direction: Optional[str] = None
    line: Optional[float] = None
    player_name: Optional[str] = None
    category: Optional[PropCategory] = None


def extract_direction(text: str) -> Optional[str]:
    match = _DIRECTION_RE.search(text or "")
    return match.group(1).lower() if match else None


def extract_line(text: str) -> Optional[float]:
    """Last standalone number in the text ("Chiefs -3.5" → -3.5)."""
    numbers = _NUMBER_RE.findall(text or "")
    return float(numbers[-1]) if numbers else None


def _mentions_team(text: str, team: str) -> bool:
    """Full name or trailing word (mascot), as whole words."""
    normalized_team = normalize_team_name(team)
    if not normalized_team:
        return False
    padded = f" {text} "
    if f" {normalized_team} " in padded:
        return True
    mascot = normalized_team.split()[-1]
    return f" {mascot} " in padded


def extract_side(text: str, home_team: str, away_team: str) -> Optional[str]:
    """
    Which team the selection backs.

    Raises:
        AmbiguousSelection: If both teams are mentioned
    """
    normalized = normalize_team_name(text)
    tokens = normalized.split()

    home = _mentions_team(normalized, home_team)
    away = _mentions_team(normalized, away_team)
    if home and away:
        raise AmbiguousSelection(text, "selection names both teams")
    if home:
        return HOME
    if away:
        return AWAY

    if HOME in tokens and AWAY not in tokens:
        return HOME
    if AWAY in tokens and HOME not in tokens:
        return AWAY
    return None


def extract_player_name(text: str) -> Optional[str]:
    """Words before the first 'over'/'under' ("Travis Kelce over 65.5" → "Travis Kelce")."""
    match = _DIRECTION_RE.search(text or "")
    if not match:
        return None
    name = text[:match.start()].strip()
    return name or None


def extract_category(text: str, prop_type: Optional[str] = None) -> Optional[PropCategory]:
    lowered = (text or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    if prop_type:
        for category in PropCategory:
            if prop_type.lower().startswith(category.value):
                return category
    return None


def parse_selection(
    bet_type: BetType,
    selection: str,
    home_team: str = "",
    away_team: str = "",
    line: Optional[float] = None,
    player_name: Optional[str] = None,
    prop_type: Optional[str] = None
) -> ParsedSelection:
    """
    Parse a selection for grading.

    An explicit ``line`` / ``player_name`` / ``prop_type`` on the bet wins
    over anything read from the text.

    Raises:
        AmbiguousSelection: If a field the bet type needs cannot be determined
    """
    text = selection or ""

    if bet_type is BetType.MONEYLINE:
        side = extract_side(text, home_team, away_team)
        if side is None:
            raise AmbiguousSelection(text, "no team recognized")
        return ParsedSelection(side=side)

    if bet_type is BetType.SPREAD:
        side = extract_side(text, home_team, away_team)
        if side is None:
            raise AmbiguousSelection(text, "no team recognized")
        spread = line if line is not None else extract_line(text)
        if spread is None:
            raise AmbiguousSelection(text, "no spread line")
        return ParsedSelection(side=side, line=spread)

    if bet_type is BetType.OVER_UNDER:
        direction = extract_direction(text)
        if direction is None:
            raise AmbiguousSelection(text, "no over/under direction")
        total = line if line is not None else extract_line(text)
        if total is None:
            raise AmbiguousSelection(text, "no total line")
        return ParsedSelection(direction=direction, line=total)

    if bet_type is BetType.PLAYER_PROP:
        direction = extract_direction(text)
        if direction is None:
            raise AmbiguousSelection(text, "no over/under direction")
        name = player_name or extract_player_name(text)
        if not name:
            raise AmbiguousSelection(text, "no player name")
        category = extract_category(text, prop_type)
        if category is None:
            raise AmbiguousSelection(text, "no stat category (passing, rushing or receiving)")
        direction_at = _DIRECTION_RE.search(text).start()
        prop_line = line if line is not None else extract_line(text[direction_at:])
        if prop_line is None:
            raise AmbiguousSelection(text, "no prop line")
        return ParsedSelection(direction=direction, line=prop_line, player_name=name, category=category)

    raise AmbiguousSelection(text, f"{bet_type.value} selections are graded per leg")
