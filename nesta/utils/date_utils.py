# nesta/utils/date_utils.py

"""Utility functions for converting between Steam Unix timestamps, stored
ISO-8601 strings and display strings.

Steam reports unlock times as Unix seconds where ``0`` means "never".
The store keeps timestamps as ISO-8601 text (UTC), and the CLI renders
them in the local timezone.
"""

from __future__ import annotations

from datetime import datetime, timezone

__all__ = ["format_datetime", "from_iso", "from_unix_seconds", "now_utc", "to_iso"]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def from_unix_seconds(value: object) -> datetime | None:
    """Converts a raw Steam unlock time to an aware UTC datetime.

    Only strictly positive integers produce a datetime; ``0``, negatives,
    ``None`` and non-numeric values all mean "no timestamp".

    Args:
        value: Raw ``unlocktime`` value from the Steam API.

    Returns:
        A timezone-aware datetime, or None.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Serializes a datetime to ISO-8601 for storage (None stays None)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: str | None) -> datetime | None:
    """Parses a stored ISO-8601 string back into an aware datetime.

    Rows written by older tools may use SQLite's ``datetime('now')``
    format (``YYYY-MM-DD HH:MM:SS``, UTC, no offset) or a trailing ``Z``;
    those are accepted too. Unparseable values yield None.
    """
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_datetime(value: datetime | str | None) -> str:
    """Renders a timestamp in local time for terminal output.

    Handles multiple input types gracefully:
        - datetime            -> "YYYY-MM-DD HH:MM" in local time
        - ISO-8601 string     -> parsed, then as above
        - unparseable string  -> returned as-is
        - None / empty        -> empty string
    """
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        parsed = from_iso(value)
        if parsed is None:
            return value
        value = parsed
    return value.astimezone().strftime("%Y-%m-%d %H:%M")
