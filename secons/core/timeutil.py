# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""UTC clock helpers shared by repositories and services."""

from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db(value: Optional[datetime]) -> Optional[str]:
    """Serialise a timestamp for a bind parameter (ISO-8601, UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def to_iso(value: Any) -> Optional[str]:
    """Render a timestamp column; drivers return datetime or ISO text."""
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat a naive timestamp from a request body as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
