"""Tests for the dates module."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from repo_radar.dates import (
    format_timestamp,
    month_key,
    parse_timestamp,
    shift_months,
    week_key,
    week_start,
)


def test_parse_timestamp_with_z():
    parsed = parse_timestamp("2024-06-03T10:30:00Z")
    assert parsed == datetime(2024, 6, 3, 10, 30, tzinfo=timezone.utc)


def test_parse_timestamp_naive_assumed_utc():
    parsed = parse_timestamp("2024-06-03T10:30:00")
    assert parsed.tzinfo == timezone.utc


def test_format_timestamp_converts_to_utc():
    moment = datetime(2024, 6, 3, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(moment) == "2024-06-03T10:00:00Z"


def test_shift_months_clamps_day():
    moment = datetime(2024, 3, 31, tzinfo=timezone.utc)
    assert shift_months(moment, -1) == datetime(2024, 2, 29, tzinfo=timezone.utc)


def test_shift_months_across_years():
    moment = datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert shift_months(moment, -12) == datetime(2023, 1, 15, tzinfo=timezone.utc)
    assert shift_months(moment, -1) == datetime(2023, 12, 15, tzinfo=timezone.utc)


def test_month_key():
    assert month_key(datetime(2024, 6, 3, tzinfo=timezone.utc)) == "2024-06"


def test_week_start_is_monday():
    # 2024-06-05 is a Wednesday
    assert week_start(date(2024, 6, 5)) == date(2024, 6, 3)
    assert week_start(datetime(2024, 6, 9, 23, 0, tzinfo=timezone.utc)) == date(2024, 6, 3)
    assert week_key(date(2024, 6, 3)) == "2024-06-03"
