"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for event capture."""
    return dt.datetime.now(dt.UTC)


def ensure_utc(value: dt.datetime, *, field: str) -> dt.datetime:
    """Return *value* converted to UTC, rejecting naive datetimes."""
    if value.tzinfo is None:
        msg = f"{field} must be timezone-aware"
        raise ValueError(msg)
    return value.astimezone(dt.UTC)
