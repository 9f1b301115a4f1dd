"""
UTC datetime helpers.

Every timestamp the engine writes (completion stamps, audit records) is
timezone-aware UTC. Use these helpers instead of datetime.now() or
datetime.utcnow().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    SQLite hands back naive datetimes even for DateTime(timezone=True)
    columns, so repositories normalise at the persistence boundary.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)
