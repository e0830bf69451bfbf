"""Date parsing and differences for answer values."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:T.*)?$")


def parse_date(value: Any) -> Optional[date]:
    """
    Coerce an answer value into a calendar date.

    Accepts `date`/`datetime` objects and ISO strings (`2020-01-01` or a full
    timestamp, of which only the date part is kept). Anything else, including
    impossible dates like `2020-02-30`, yields None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _ISO_DATE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def years_between(start: date, end: date) -> int:
    """Whole calendar years from start to end (negative when end < start)."""
    if end < start:
        return -years_between(end, start)
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def days_between(start: date, end: date) -> int:
    return (end - start).days
