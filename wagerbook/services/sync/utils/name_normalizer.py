"""Name normalization utilities for player and team name matching.

Handles common variations across providers:
- Suffixes: "Jr.", "Sr.", "III", "IV", "II"
- Punctuation: "A.J. Brown" → "aj brown"
- Accents: "Tomás Rivera" → "tomas rivera"
- Case: "TRAVIS KELCE" → "travis kelce"
- Extra spaces: "Josh  Allen" → "josh allen"
"""
import re
import unicodedata

from rapidfuzz import fuzz


# Common name suffixes that should be removed for comparison
SUFFIXES = {'jr', 'sr', 'ii', 'iii', 'iv', 'v'}


def normalize(name: str) -> str:
    """
    Normalize a person's name for comparison.

    Examples:
        >>> normalize("A.J. Brown")
        'aj brown'
        >>> normalize("Marvin Harrison Jr.")
        'marvin harrison'
        >>> normalize("Josh  Allen")
        'josh allen'
    """
    if not name:
        return ""

    name = _remove_suffixes(name)
    name = _normalize_unicode(name)
    name = name.lower()
    name = re.sub(r'[^\w\s]', '', name)
    return ' '.join(name.split())


def _remove_suffixes(name: str) -> str:
    parts = name.split()
    if len(parts) > 1 and parts[-1].lower().replace('.', '') in SUFFIXES:
        return ' '.join(parts[:-1])
    return name


def _normalize_unicode(name: str) -> str:
    """Remove accents and diacritics ('é' → 'e')."""
    normalized = unicodedata.normalize('NFD', name)
    return ''.join(c for c in normalized if unicodedata.category(c) != 'Mn')


def normalize_team_name(team_name: str) -> str:
    """
    Normalize team names for comparison.

    Lowercases, strips accents and punctuation, and collapses whitespace.
    No alias expansion happens here; see ``teams.team_aliases`` for that.

    Examples:
        >>> normalize_team_name("St. Louis Rams")
        'st louis rams'
        >>> normalize_team_name("  KANSAS CITY  chiefs ")
        'kansas city chiefs'
    """
    if not team_name:
        return ""

    normalized = _normalize_unicode(team_name).lower()
    normalized = re.sub(r'[^\w\s]', ' ', normalized)
    return ' '.join(normalized.split())


def compact_key(text: str) -> str:
    """Lowercase alphanumerics only ("San Francisco 49ers" → "sanfrancisco49ers")."""
    return re.sub(r'[^a-z0-9]', '', _normalize_unicode(text or "").lower())


def are_names_equal(name1: str, name2: str, fuzzy: bool = False) -> bool:
    """
    Check if two names are equal after normalization.

    Args:
        name1: First name
        name2: Second name
        fuzzy: If True, also try fuzzy matching as fallback

    Returns:
        True if names match after normalization
    """
    norm1 = normalize(name1)
    norm2 = normalize(name2)

    if norm1 == norm2:
        return True

    if fuzzy:
        return fuzz.WRatio(norm1, norm2) >= 90

    return False


def names_overlap(name1: str, name2: str) -> bool:
    """
    Case-insensitive substring containment in either direction.

    Used to find a bettor-typed player name in a box score
    ("Kelce" ↔ "Travis Kelce").
    """
    norm1 = normalize(name1)
    norm2 = normalize(name2)
    if not norm1 or not norm2:
        return False
    return norm1 in norm2 or norm2 in norm1
