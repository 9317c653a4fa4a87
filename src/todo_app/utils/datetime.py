"""Datetime utilities with consistent UTC timezone handling.

Due dates are stored as timezone-aware datetimes in UTC. These helpers keep
parsing and serialization in one place so the store, the storage backends and
the CLI all agree on the format.
"""

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Return current datetime in UTC timezone."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string with timezone info."""
    if dt is None:
        return None

    return ensure_aware(dt).isoformat()


def from_iso_string(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string produced by :func:`to_iso_string`.

    Raises:
        ValueError: If the value is not a valid ISO-8601 string
        TypeError: If the value is not a string
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected ISO date string, got {type(value).__name__}")
    return ensure_aware(datetime.fromisoformat(value))
