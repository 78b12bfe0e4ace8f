"""Canonical ``YYYY-MM-DD`` date keys.

Dates reach the engine as ``date`` objects, naive or aware ``datetime``
objects, date-only strings and ISO timestamps. All of them are reduced to a
single string key here. A date-only value is never turned back into a
datetime at midnight: the time of day is pinned to noon so that shifting it
into any UTC offset between -12:00 and +12:00 keeps the calendar day.
"""

from datetime import date, datetime, time, tzinfo
from typing import Optional, Union


DateLike = Union[str, date, datetime]

PINNED_TIME = time(12, 0)


def date_key(value: DateLike) -> str:
    """Reduce a date-like value to its ``YYYY-MM-DD`` key.

    Aware datetimes keep the calendar day of their own offset; they are not
    converted to UTC first.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text).isoformat()
        return date_key(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Unsupported date value: {value!r}")


def parse_date_key(key: str) -> date:
    """Parse a key produced by :func:`date_key`."""
    return date.fromisoformat(date_key(key))


def pinned_datetime(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    """Build the noon datetime for the value's calendar day."""
    return datetime.combine(parse_date_key(date_key(value)), PINNED_TIME, tzinfo=tz)


def month_of(value: DateLike) -> tuple:
    """Get ``(year, month)`` for a date-like value."""
    day = parse_date_key(date_key(value))
    return day.year, day.month
