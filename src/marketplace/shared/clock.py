"""Timestamp helpers.

Stored timestamps are timezone-aware UTC. Values coming from callers or from
older snapshots may be naive; they are read as UTC before any comparison.
"""

from datetime import UTC, datetime


def utcnow():
    return datetime.now(UTC)


def as_utc(value):
    """Return `value` as an aware UTC datetime (None stays None)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
