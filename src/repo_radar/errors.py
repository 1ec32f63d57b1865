"""Error taxonomy and mapping to boundary status codes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class AnalyticsError(Exception):
    """Base exception for repository analytics failures."""

    status_code = 500
    default_message = (
        "Failed to fetch repository analytics. "
        "Please check if the repository exists and try again."
    )

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidRequestError(AnalyticsError):
    """Raised when owner/name or another request parameter is malformed."""

    status_code = 400
    default_message = "Invalid repository owner or name format"


class NotFoundError(AnalyticsError):
    """Raised when a repository doesn't exist or is not accessible."""

    status_code = 404
    default_message = "Repository not found or is private"


class RequestTimeout(AnalyticsError):
    """Raised when a bounded operation exceeds its time budget."""

    status_code = 408
    default_message = (
        "Request timed out. The repository might be too large or the "
        "GitHub API is slow. Please try again."
    )


class RateLimitedError(AnalyticsError):
    """Raised when the upstream API quota is exhausted."""

    status_code = 429
    default_message = "GitHub API rate limit exceeded. Please try again later."

    def __init__(
        self, message: str | None = None, reset_at: datetime | None = None
    ) -> None:
        super().__init__(message)
        self.reset_at = reset_at


class UpstreamError(AnalyticsError):
    """Raised for any other upstream failure."""

    def __init__(
        self, message: str | None = None, upstream_status: int | None = None
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


@dataclass(frozen=True)
class ErrorResponse:
    status: int
    message: str


def to_error_response(exc: BaseException) -> ErrorResponse:
    """Map an exception to the status and message shown to the user."""
    if isinstance(exc, AnalyticsError):
        return ErrorResponse(exc.status_code, exc.message)
    return ErrorResponse(500, AnalyticsError.default_message)
