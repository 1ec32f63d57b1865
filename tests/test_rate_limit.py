"""Tests for rate limit tracking."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx

from repo_radar.github.rate_limit import RateLimitMonitor


def _response(status_code=200, headers=None, json_data=None):
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.headers = headers or {}
    resp.json.return_value = json_data if json_data is not None else {}
    return resp


def test_update_tracks_headers():
    monitor = RateLimitMonitor()
    monitor.update(_response(headers={"X-RateLimit-Remaining": "4000", "X-RateLimit-Reset": "1717200000"}))
    assert monitor.remaining == 4000
    assert monitor.reset_at == datetime.fromtimestamp(1717200000, tz=timezone.utc)


def test_update_warns_near_threshold(caplog):
    monitor = RateLimitMonitor(threshold=10)
    with caplog.at_level(logging.WARNING, logger="repo_radar.github.rate_limit"):
        monitor.update(_response(headers={"X-RateLimit-Remaining": "3"}))
    assert "nearly exhausted" in caplog.text


def test_exhausted_on_429():
    assert RateLimitMonitor().is_exhausted(_response(429))


def test_exhausted_on_403_with_zero_remaining():
    assert RateLimitMonitor().is_exhausted(_response(403, headers={"X-RateLimit-Remaining": "0"}))


def test_exhausted_on_secondary_rate_limit():
    monitor = RateLimitMonitor()
    assert monitor.is_exhausted(_response(403, headers={"Retry-After": "60"}))
    assert monitor.is_exhausted(
        _response(403, json_data={"message": "You have exceeded a secondary rate limit"})
    )


def test_plain_403_is_not_rate_limit():
    monitor = RateLimitMonitor()
    assert not monitor.is_exhausted(_response(403, json_data={"message": "Resource not accessible"}))
    assert not monitor.is_exhausted(_response(500))
