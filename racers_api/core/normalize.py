"""
Name normalization for maps, difficulties and request fields.

Game clients and players send map and difficulty names in many spellings
("karman station", "KarmanStation", "karman_station"). Everything stored in
player documents and leaderboards uses one canonical display form.

Unknown names are not rejected: they fall back to a capitalized form of the
trimmed input so that new maps work before they are added here.
"""

from enum import Enum
from typing import Any, Optional


class MapName(Enum):
    """Known maps, in leaderboard priority order."""
    ABYSS = "Abyss"
    ATLANTIS = "Atlantis"
    CRAG = "Crag"
    FOREGONE_DESTRUCTION = "Foregone_Destruction"
    HELIX = "Helix"
    HIGHWIND = "Highwind"
    IMPACT = "Impact"
    KARMAN_STATION = "Karman_Station"
    LAVAWELL = "Lavawell"
    OASIS = "Oasis"
    OLYMPUS = "Olympus"
    PANTHEON = "Pantheon"
    SILO = "Silo"
    STADIUM = "Stadium"

    @classmethod
    def from_alias(cls, raw: str) -> Optional["MapName"]:
        """Resolve a free-form alias, ignoring case and separators."""
        key = _squash(raw)
        for member in cls:
            if _squash(member.value) == key:
                return member
        return _MAP_ALIASES.get(key)


class Difficulty(Enum):
    """Known difficulties, in leaderboard order."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def from_alias(cls, raw: str) -> Optional["Difficulty"]:
        key = _squash(raw)
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


# Extra spellings that are not just separator variants of the canonical name.
_MAP_ALIASES = {
    "clubsilo": MapName.SILO,
    "foregone": MapName.FOREGONE_DESTRUCTION,
    "karman": MapName.KARMAN_STATION,
}

# Lower-cased request keys -> canonical field names
_FIELD_NAMES = {
    "difficulty": "difficulty",
    "map": "map",
    "platform": "platform",
    "platformuserid": "platformUserId",
    "timems": "timeMs",
}

MAP_ORDER: list[str] = [m.value for m in MapName]
DIFFICULTY_ORDER: list[str] = [d.value for d in Difficulty]


def _squash(value: str) -> str:
    return value.strip().lower().replace(" ", "").replace("_", "")


def _capitalize(value: str) -> str:
    value = value.strip().lower()
    return value[:1].upper() + value[1:]


def normalize_map(raw: Optional[str]) -> Optional[str]:
    """Return the canonical map name, or None for empty input."""
    if raw is None or not str(raw).strip():
        return None
    raw = str(raw)
    member = MapName.from_alias(raw)
    if member is not None:
        return member.value
    return _capitalize(raw)


def normalize_difficulty(raw: Optional[str]) -> Optional[str]:
    """Return the canonical difficulty name, or None for empty input."""
    if raw is None or not str(raw).strip():
        return None
    raw = str(raw)
    member = Difficulty.from_alias(raw)
    if member is not None:
        return member.value
    return _capitalize(raw)


def normalize_request_keys(body: dict[str, Any]) -> dict[str, Any]:
    """Rename request keys case-insensitively to their canonical field names.

    Keys that are not recognised are passed through unchanged.
    """
    normalized: dict[str, Any] = {}
    for key, value in body.items():
        normalized[_FIELD_NAMES.get(str(key).lower(), key)] = value
    return normalized
