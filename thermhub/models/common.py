"""Common types and helpers shared across models."""

from datetime import UTC, datetime

VERSION = "0.1.0"
USER_AGENT = f"thermhub/{VERSION}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
