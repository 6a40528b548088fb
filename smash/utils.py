"""Utility functions for the application."""

from __future__ import annotations

import datetime
from typing import Any


def parse_datetime(value: Any) -> datetime.datetime:
    """Coerce a stored date value into a ``datetime``.

    Accepts ``datetime`` objects, Firestore timestamps (anything exposing
    ``to_datetime``) and ISO-8601 strings, including a trailing ``Z``.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime.datetime):
        return value
    if hasattr(value, "to_datetime"):
        return value.to_datetime()
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    if isinstance(value, str) and value:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.datetime.fromisoformat(text)
    raise ValueError(f"Invalid date value: {value!r}")


def to_iso(value: datetime.datetime) -> str:
    """Serialize a datetime the way match documents store it.

    Aware values are written in UTC with a trailing ``Z``. Naive values are
    venue wall-clock times and are written without an offset.
    """
    if value.tzinfo is None:
        return value.isoformat()
    utc = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return f"{utc.isoformat()}Z"


def add_minutes(value: datetime.datetime, minutes: int) -> datetime.datetime:
    """Return ``value`` shifted forward by ``minutes``."""
    return value + datetime.timedelta(minutes=minutes)
