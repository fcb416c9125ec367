"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """ISO8601 string for API payloads; None passes through."""
    return value.isoformat() if value is not None else None
