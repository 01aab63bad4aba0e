"""UTC time helpers shared by services and models."""
from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Ensure the provided datetime is timezone-aware in UTC.

    SQLite hands back naive values for ``DateTime(timezone=True)`` columns; they
    are stored in UTC, so the zone is attached rather than converted.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
