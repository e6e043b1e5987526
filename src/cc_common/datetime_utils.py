"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision: 2024-05-01T12:00:00.000Z."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
