"""Custom exception types for repoflow."""

from __future__ import annotations

from typing import Optional


class RepoFlowError(Exception):
    """Base exception for all recoverable repoflow errors."""


class ConfigurationError(RepoFlowError):
    """Raised when runtime configuration values are missing or invalid."""


class ApiError(RepoFlowError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class RateLimitedError(ApiError):
    """Raised when GitHub reports that the request budget is exhausted."""


class NotFoundError(ApiError):
    """Raised when the requested repository does not exist or is not visible."""


class UpstreamFailureError(ApiError):
    """Raised for any other non-success response from GitHub.

    ``status_code`` is ``None`` when no response was received at all
    (connection errors, timeouts).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class FetchCancelledError(RepoFlowError):
    """Raised when a fetch is cancelled by the caller. Not a user-facing failure."""
