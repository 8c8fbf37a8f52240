"""Exceptions raised by the leaderboard domain and its collaborators."""

from typing import Optional


class LeaderboardError(Exception):
    """Base exception carrying the HTTP status it should be reported with."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(LeaderboardError):
    """Exception raised when a required field is missing or malformed."""

    status_code = 400


class AuthError(LeaderboardError):
    """Exception raised when platform authentication fails."""

    status_code = 401


class NotFoundError(LeaderboardError):
    """Exception raised when a named resource does not exist."""

    status_code = 404


class VersionConflictError(LeaderboardError):
    """Exception raised when a conditional write finds a newer version."""

    status_code = 409


class UpstreamError(LeaderboardError):
    """Exception raised when the document store or Steam misbehaves."""

    status_code = 500
