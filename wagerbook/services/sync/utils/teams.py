"""
NFL franchise directory and team alias resolution.

Providers spell teams differently ("Kansas City Chiefs", "KC", "Chiefs",
"Oakland Raiders", "Washington Football Team"). Every spelling resolves to
one ``NflTeam``; comparisons then happen on alias sets.

City-only aliases shared by two franchises ("New York", "Los Angeles") are
never treated as identifying.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Optional, Tuple

from rapidfuzz import fuzz, process

from wagerbook.services.sync.utils.name_normalizer import compact_key, normalize_team_name

FUZZY_TEAM_THRESHOLD = 90


@dataclass(frozen=True)
class NflTeam:
    full_name: str
    city: str
    nickname: str
    abbreviations: Tuple[str, ...]
    extra_aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def key(self) -> str:
        """Short stable key used in readable game ids ("chiefs", "49ers")."""
        return compact_key(self.nickname)


TEAMS: Tuple[NflTeam, ...] = (
    NflTeam("Arizona Cardinals", "Arizona", "Cardinals", ("ARI", "ARZ"), ("Phoenix Cardinals",)),
    NflTeam("Atlanta Falcons", "Atlanta", "Falcons", ("ATL",)),
    NflTeam("Baltimore Ravens", "Baltimore", "Ravens", ("BAL", "BLT")),
    NflTeam("Buffalo Bills", "Buffalo", "Bills", ("BUF",)),
    NflTeam("Carolina Panthers", "Carolina", "Panthers", ("CAR",)),
    NflTeam("Chicago Bears", "Chicago", "Bears", ("CHI",)),
    NflTeam("Cincinnati Bengals", "Cincinnati", "Bengals", ("CIN",), ("Cincy",)),
    NflTeam("Cleveland Browns", "Cleveland", "Browns", ("CLE", "CLV")),
    NflTeam("Dallas Cowboys", "Dallas", "Cowboys", ("DAL",)),
    NflTeam("Denver Broncos", "Denver", "Broncos", ("DEN",)),
    NflTeam("Detroit Lions", "Detroit", "Lions", ("DET",)),
    NflTeam("Green Bay Packers", "Green Bay", "Packers", ("GB", "GNB")),
    NflTeam("Houston Texans", "Houston", "Texans", ("HOU", "HST")),
    NflTeam("Indianapolis Colts", "Indianapolis", "Colts", ("IND",), ("Indy",)),
    NflTeam("Jacksonville Jaguars", "Jacksonville", "Jaguars", ("JAX", "JAC"), ("Jags",)),
    NflTeam("Kansas City Chiefs", "Kansas City", "Chiefs", ("KC", "KAN")),
    NflTeam("Las Vegas Raiders", "Las Vegas", "Raiders", ("LV", "LVR", "OAK"), ("Oakland Raiders",)),
    NflTeam("Los Angeles Chargers", "Los Angeles", "Chargers", ("LAC", "SD", "SDG"), ("LA Chargers", "San Diego Chargers")),
    NflTeam("Los Angeles Rams", "Los Angeles", "Rams", ("LAR", "STL"), ("LA Rams", "St. Louis Rams")),
    NflTeam("Miami Dolphins", "Miami", "Dolphins", ("MIA",), ("Fins",)),
    NflTeam("Minnesota Vikings", "Minnesota", "Vikings", ("MIN",)),
    NflTeam("New England Patriots", "New England", "Patriots", ("NE", "NWE"), ("Pats",)),
    NflTeam("New Orleans Saints", "New Orleans", "Saints", ("NO", "NOR")),
    NflTeam("New York Giants", "New York", "Giants", ("NYG",), ("NY Giants",)),
    NflTeam("New York Jets", "New York", "Jets", ("NYJ",), ("NY Jets",)),
    NflTeam("Philadelphia Eagles", "Philadelphia", "Eagles", ("PHI",), ("Philly",)),
    NflTeam("Pittsburgh Steelers", "Pittsburgh", "Steelers", ("PIT",)),
    NflTeam("San Francisco 49ers", "San Francisco", "49ers", ("SF", "SFO"), ("Niners",)),
    NflTeam("Seattle Seahawks", "Seattle", "Seahawks", ("SEA",)),
    NflTeam("Tampa Bay Buccaneers", "Tampa Bay", "Buccaneers", ("TB", "TAM"), ("Bucs",)),
    NflTeam("Tennessee Titans", "Tennessee", "Titans", ("TEN",)),
    NflTeam(
        "Washington Commanders", "Washington", "Commanders", ("WAS", "WSH"),
        ("Washington Football Team", "Washington Redskins"),
    ),
)


def _spellings(team: NflTeam) -> Tuple[str, ...]:
    return (team.full_name, team.city, team.nickname) + team.abbreviations + team.extra_aliases


@lru_cache(maxsize=1)
def _alias_index() -> Tuple[Dict[str, NflTeam], FrozenSet[str]]:
    """Map every normalized spelling to its team. Spellings claimed twice are ambiguous."""
    index: Dict[str, NflTeam] = {}
    ambiguous = set()
    for team in TEAMS:
        for spelling in _spellings(team):
            alias = normalize_team_name(spelling)
            owner = index.get(alias)
            if owner is not None and owner != team:
                ambiguous.add(alias)
            index[alias] = team
    for alias in ambiguous:
        del index[alias]
    return index, frozenset(ambiguous)


def canonical_team(name: str) -> Optional[NflTeam]:
    """
    Resolve any spelling of a franchise to its ``NflTeam``.

    Lookup order: exact alias, trailing word (mascot), fuzzy match against
    full names (WRatio >= 90). Shared-city names resolve to None.

    Examples:
        >>> canonical_team("KC").full_name
        'Kansas City Chiefs'
        >>> canonical_team("Oakland Raiders").nickname
        'Raiders'
        >>> canonical_team("New York") is None
        True
    """
    normalized = normalize_team_name(name)
    if not normalized:
        return None

    index, ambiguous = _alias_index()
    if normalized in ambiguous:
        return None
    if normalized in index:
        return index[normalized]

    mascot = normalized.split()[-1]
    if mascot in index and mascot not in ambiguous and index[mascot].nickname.lower() == mascot:
        return index[mascot]

    if len(normalized) < 4:
        return None

    choices = {team.full_name: normalize_team_name(team.full_name) for team in TEAMS}
    best = process.extractOne(
        normalized,
        choices,
        scorer=fuzz.WRatio,
        score_cutoff=FUZZY_TEAM_THRESHOLD,
    )
    if best is None:
        return None
    # extractOne on a mapping returns (value, score, key)
    return next(team for team in TEAMS if team.full_name == best[2])


@lru_cache(maxsize=512)
def team_aliases(name: str) -> FrozenSet[str]:
    """
    Comparison alias set for a team name.

    Known franchises expand to full name, nickname, abbreviations, media
    shortenings, historical names and (when unique) city. Unknown names
    fall back to the normalized name and its trailing word.
    """
    team = canonical_team(name)
    _, ambiguous = _alias_index()
    if team is not None:
        return frozenset(
            alias for alias in (normalize_team_name(s) for s in _spellings(team))
            if alias and alias not in ambiguous
        )

    normalized = normalize_team_name(name)
    if not normalized:
        return frozenset()
    aliases = {normalized, normalized.split()[-1]}
    return frozenset(alias for alias in aliases if alias not in ambiguous)


def teams_match(name1: str, name2: str) -> bool:
    """True when the two spellings share at least one alias."""
    return bool(team_aliases(name1) & team_aliases(name2))


def team_key(name: str) -> str:
    """
    Stable key for id generation.

    Known teams use their nickname key; anything else is compacted to
    lowercase alphanumerics.
    """
    team = canonical_team(name)
    if team is not None:
        return team.key
    return compact_key(name)
