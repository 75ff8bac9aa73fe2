"""
UTC timestamp helpers.

Source tables carry "Last Modified" / "Last Updated" cells that may arrive
as ``datetime`` objects, dates, or ISO-8601 strings depending on how the
table was loaded. ``parse_timestamp`` normalises all of them to aware UTC
datetimes so cursor comparisons never mix naive and aware values.

STDLIB ONLY.
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_iso8601(dt: datetime) -> str:
    """Serialize a datetime as ISO-8601, assuming UTC for naive values."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.isoformat()


def from_iso8601(s: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Accepts a trailing ``Z``. Naive strings are treated as UTC.
    """
    text = s.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Coerce a cell value to an aware UTC datetime, or ``None``.

    Blank cells and unparsable text both yield ``None``; the sync engines
    treat that as "timestamp absent".
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return from_iso8601(value)
        except ValueError:
            return None
    return None
