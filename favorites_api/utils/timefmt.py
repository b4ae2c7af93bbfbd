"""Presentation helpers for timestamps leaving the API.

Stored values stay timezone-aware UTC.  Every timestamp rendered for clients uses
one fixed civil offset (UTC+05:30) and a ``YYYY-MM-DD HH:MM:SS`` layout so that
output never depends on the host timezone or a client locale.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

DISPLAY_TIMEZONE = timezone(timedelta(hours=5, minutes=30), name="IST")
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"

__all__ = [
    "DISPLAY_FORMAT",
    "DISPLAY_TIMEZONE",
    "format_display_timestamp",
    "utcnow",
]


def utcnow() -> datetime:
    """Return the current timezone-aware UTC datetime."""

    return datetime.now(UTC)


def format_display_timestamp(value: datetime | None) -> str | None:
    """Render ``value`` at the display offset, treating naive input as UTC.

    SQLite hands ``DateTime(timezone=True)`` columns back without tzinfo, so the
    naive branch is the common one in tests and local development.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(DISPLAY_TIMEZONE).strftime(DISPLAY_FORMAT)
