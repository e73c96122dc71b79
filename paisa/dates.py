"""Calendar arithmetic used by the aggregation engine.

All helpers operate on :class:`datetime.date` values; there is no time
component anywhere in the pipeline.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def days_in_month(year: int, month: int) -> int:
    """Return the length of ``month`` in ``year``, or 0 for an invalid month."""

    if not 1 <= month <= 12:
        return 0
    return calendar.monthrange(year, month)[1]


def day_of_year(value: date, year: int) -> int:
    """Day of year 1-366, or 0 when ``value`` does not fall in ``year``."""

    if value.year != year:
        return 0
    return value.timetuple().tm_yday


def day_of_month(value: date) -> int:
    return value.day


def iso_week(value: date) -> int:
    return value.isocalendar()[1]


def week_of_month(value: date) -> int:
    """Week of month 1-5 (days 1-7, 8-14, 15-21, 22-28, 29-31)."""

    return min(5, (value.day + 6) // 7)


def date_from_day_of_year(year: int, day: int) -> date:
    return date(year, 1, 1) + timedelta(days=day - 1)


def parse_date(value: object) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` string (or a date-like object).

    Returns ``None`` for blank or unparseable input so callers can decide how
    to treat the row.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    stringified = str(value).strip()
    if not stringified or stringified in {"NaT", "nan"}:
        return None
    try:
        return date_parser.isoparse(stringified).date()
    except (ValueError, OverflowError):
        return None
