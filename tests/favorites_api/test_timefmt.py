"""Tests for display timestamp formatting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from favorites_api.utils.timefmt import format_display_timestamp, utcnow


def test_aware_utc_value_is_shifted_to_display_offset() -> None:
    value = datetime(2024, 1, 31, 20, 0, 5, tzinfo=UTC)

    assert format_display_timestamp(value) == "2024-02-01 01:30:05"


def test_naive_value_is_treated_as_utc() -> None:
    value = datetime(2024, 6, 15, 0, 0, 0)

    assert format_display_timestamp(value) == "2024-06-15 05:30:00"


def test_other_offsets_are_normalised() -> None:
    new_york = timezone(timedelta(hours=-5))
    value = datetime(2024, 3, 10, 23, 45, 0, tzinfo=new_york)

    assert format_display_timestamp(value) == "2024-03-11 10:15:00"


def test_microseconds_are_dropped() -> None:
    value = datetime(2024, 1, 1, 0, 0, 0, 999_999, tzinfo=UTC)

    assert format_display_timestamp(value) == "2024-01-01 05:30:00"


def test_none_passes_through() -> None:
    assert format_display_timestamp(None) is None


def test_utcnow_is_timezone_aware() -> None:
    assert utcnow().utcoffset() == timedelta(0)
