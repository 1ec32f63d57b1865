"""GitHub API rate limit tracking."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)


class RateLimitMonitor:
    """Tracks GitHub API rate limit from response headers.

    Quota is only observed, never budgeted: an exhausted limit is reported to
    the caller as an error and no request is delayed or retried.
    """

    def __init__(self, threshold: int = 10) -> None:
        self._remaining: int | None = None
        self._reset_at: float | None = None
        self._threshold = threshold

    @property
    def remaining(self) -> int | None:
        return self._remaining

    @property
    def reset_at(self) -> datetime | None:
        if self._reset_at is None:
            return None
        return datetime.fromtimestamp(self._reset_at, tz=timezone.utc)

    def update(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset_at = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_at is not None:
            self._reset_at = float(reset_at)
        if self._remaining is not None and self._remaining <= self._threshold:
            logger.warning(
                "GitHub API rate limit nearly exhausted: %d requests left",
                self._remaining,
            )

    def is_exhausted(self, response: httpx.Response) -> bool:
        """Whether a failed response was caused by the rate limit."""
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        if response.headers.get("Retry-After") is not None:
            return True
        try:
            message = str(response.json().get("message", ""))
        except (ValueError, AttributeError):
            return False
        return "rate limit" in message.lower()
