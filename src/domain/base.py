from datetime import UTC, datetime
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC wall clock; all persisted timestamps use this representation."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_iso8601(value: Optional[datetime]) -> Optional[str]:
    """Render a (naive UTC or aware) timestamp as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"
