"""
Shared field types and date coercion helpers.

Money is carried as Decimal everywhere inside the application and
rendered as a plain JSON number on the wire, which is what the
frontend and the original document store both expect.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import PlainSerializer


Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


def parse_calendar_date(value: Any) -> date:
    """
    Coerce a stored value into a calendar date.

    Accepts date objects, datetimes (the date part is kept), and ISO-8601
    strings in either the plain `YYYY-MM-DD` or full timestamp form.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text).date()
    raise ValueError(f"Not a calendar date: {value!r}")


def as_utc_instant(value: date | datetime) -> datetime:
    """
    Place a date or datetime on the absolute UTC timeline.

    Calendar dates become midnight UTC; naive datetimes are taken as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current instant, timezone-aware."""
    return datetime.now(timezone.utc)
