"""Unit tests for the franchise directory and alias resolution.

Test Strategy:
1. Test canonical lookup by full name, abbreviation, mascot and history
2. Test shared-city names never identify a team
3. Test fuzzy recovery from misspellings
4. Test alias-based team comparison and id keys
"""
import pytest

from wagerbook.services.sync.utils.teams import TEAMS, canonical_team, team_aliases, team_key, teams_match


class TestCanonicalTeam:
    """Test suite for resolving spellings to franchises."""

    def test_directory_has_32_teams(self):
        """Should list every franchise once."""
        assert len(TEAMS) == 32
        assert len({team.full_name for team in TEAMS}) == 32

    @pytest.mark.parametrize("spelling,expected", [
        ("Kansas City Chiefs", "Kansas City Chiefs"),
        ("KC", "Kansas City Chiefs"),
        ("chiefs", "Kansas City Chiefs"),
        ("Oakland Raiders", "Las Vegas Raiders"),
        ("LA Rams", "Los Angeles Rams"),
        ("St. Louis Rams", "Los Angeles Rams"),
        ("Washington Football Team", "Washington Commanders"),
        ("Niners", "San Francisco 49ers"),
        ("NY Jets", "New York Jets"),
    ])
    def test_resolves_known_spellings(self, spelling, expected):
        """Should resolve full names, abbreviations, nicknames and old names."""
        assert canonical_team(spelling).full_name == expected

    def test_resolves_by_mascot(self):
        """Should fall back to the trailing word when the city is garbled."""
        assert canonical_team("Kansas Cty Chiefs").full_name == "Kansas City Chiefs"

    def test_resolves_misspelling_fuzzily(self):
        """Should recover a close misspelling of a full name."""
        assert canonical_team("Kansas City Chefs").full_name == "Kansas City Chiefs"

    @pytest.mark.parametrize("spelling", ["New York", "Los Angeles", "LA", "", "XFL"])
    def test_ambiguous_or_unknown_is_none(self, spelling):
        """Should not guess between franchises that share a city."""
        assert canonical_team(spelling) is None


class TestTeamComparison:
    """Test suite for alias-based comparison."""

    def test_abbreviation_matches_full_name(self):
        """Should match an abbreviation against the full name."""
        assert teams_match("KC", "Kansas City Chiefs")
        assert teams_match("LV", "Las Vegas Raiders")

    def test_historical_name_matches_current(self):
        """Should match a relocated franchise's old name."""
        assert teams_match("San Diego Chargers", "Los Angeles Chargers")

    def test_shared_city_teams_do_not_match(self):
        """Should keep same-city franchises apart."""
        assert not teams_match("New York Jets", "New York Giants")
        assert not teams_match("Los Angeles Chargers", "Los Angeles Rams")

    def test_shared_city_not_in_alias_set(self):
        """Should drop ambiguous city aliases."""
        assert "new york" not in team_aliases("New York Jets")
        assert "jets" in team_aliases("New York Jets")

    @pytest.mark.parametrize("spelling,key", [
        ("San Francisco 49ers", "49ers"),
        ("SF", "49ers"),
        ("Kansas City Chiefs", "chiefs"),
        ("Washington Football Team", "commanders"),
    ])
    def test_team_key(self, spelling, key):
        """Should key every spelling of a team the same way."""
        assert team_key(spelling) == key
