"""Tests for map, difficulty and request-key normalization."""

import pytest

from racers_api.core.normalize import (
    MAP_ORDER,
    Difficulty,
    MapName,
    normalize_difficulty,
    normalize_map,
    normalize_request_keys,
)


class TestNormalizeMap:
    """Tests for map name normalization."""

    @pytest.mark.parametrize(
        "raw",
        ["karman station", "KarmanStation", "karman_station", "KARMAN", "  Karman_Station  "],
    )
    def test_karman_aliases(self, raw):
        """All spellings of Karman Station resolve to one name."""
        assert normalize_map(raw) == "Karman_Station"

    @pytest.mark.parametrize("raw", ["club silo", "clubsilo", "Club_Silo", "silo"])
    def test_silo_aliases(self, raw):
        assert normalize_map(raw) == "Silo"

    @pytest.mark.parametrize(
        "raw",
        ["foregone", "Foregone Destruction", "foregonedestruction", "foregone_destruction"],
    )
    def test_foregone_aliases(self, raw):
        assert normalize_map(raw) == "Foregone_Destruction"

    def test_simple_maps_are_case_insensitive(self):
        assert normalize_map("IMPACT") == "Impact"
        assert normalize_map("highwind") == "Highwind"

    def test_unknown_map_falls_back_to_capitalized(self):
        """Unknown maps are accepted, not rejected."""
        assert normalize_map("new track") == "New track"
        assert normalize_map("NEON_CITY") == "Neon_city"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input_is_none(self, raw):
        assert normalize_map(raw) is None

    def test_every_canonical_name_is_stable(self):
        """Normalizing a canonical name returns it unchanged."""
        for name in MAP_ORDER:
            assert normalize_map(name) == name
        assert len(MAP_ORDER) == 14
        assert MapName.from_alias("karman station") is MapName.KARMAN_STATION


class TestNormalizeDifficulty:
    """Tests for difficulty normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("easy", "Easy"), (" MEDIUM ", "Medium"), ("Hard", "Hard"), ("nightmare", "Nightmare")],
    )
    def test_normalize(self, raw, expected):
        assert normalize_difficulty(raw) == expected

    def test_empty_input_is_none(self):
        assert normalize_difficulty(None) is None
        assert normalize_difficulty("") is None

    def test_enum_lookup(self):
        assert Difficulty.from_alias("hard") is Difficulty.HARD
        assert Difficulty.from_alias("insane") is None


class TestNormalizeRequestKeys:
    """Tests for case-insensitive request keys."""

    def test_known_keys_are_renamed(self):
        body = {"PLATFORMUSERID": "42", "timems": 1000, "Map": "impact", "extra": 1}
        assert normalize_request_keys(body) == {
            "platformUserId": "42",
            "timeMs": 1000,
            "map": "impact",
            "extra": 1,
        }

    def test_canonical_keys_unchanged(self):
        body = {"platformUserId": "1", "timeMs": 5, "difficulty": "Hard", "platform": "Steam"}
        assert normalize_request_keys(body) == body
