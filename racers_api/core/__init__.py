# Core module
from .aggregate import (
    LeaderboardRequest,
    aggregate,
    build_leaderboard,
    collect_entries,
    player_summary,
)
from .best_times import BestTimes, order_best_times
from .errors import (
    AuthError,
    LeaderboardError,
    NotFoundError,
    UpstreamError,
    ValidationError,
    VersionConflictError,
)
from .normalize import (
    Difficulty,
    MapName,
    normalize_difficulty,
    normalize_map,
    normalize_request_keys,
)
from .ranking import ALL, LeaderboardEntry, parse_length, rank
from .records import PlayerRecord, RecordEvaluation, apply_submission, current_best, evaluate
from .result import Failed, NotFound, Ok, Result
from .time_parser import format_time, parse_time, time_sort_key

__all__ = [
    "LeaderboardRequest",
    "aggregate",
    "build_leaderboard",
    "collect_entries",
    "player_summary",
    "BestTimes",
    "order_best_times",
    "AuthError",
    "LeaderboardError",
    "NotFoundError",
    "UpstreamError",
    "ValidationError",
    "VersionConflictError",
    "Difficulty",
    "MapName",
    "normalize_difficulty",
    "normalize_map",
    "normalize_request_keys",
    "ALL",
    "LeaderboardEntry",
    "parse_length",
    "rank",
    "PlayerRecord",
    "RecordEvaluation",
    "apply_submission",
    "current_best",
    "evaluate",
    "Failed",
    "NotFound",
    "Ok",
    "Result",
    "format_time",
    "parse_time",
    "time_sort_key",
]
