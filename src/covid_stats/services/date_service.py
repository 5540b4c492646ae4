"""Date parsing for ECDC `dateRep` strings.

Every date in the engine is a plain `datetime.date` built from integer
components, so results never depend on the local timezone or locale.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Iterable, Tuple, Union

from covid_stats.data_models.covid_record import CovidRecord
from covid_stats.exceptions import EmptyDataset, MalformedDate


DATE_PATTERN = re.compile(r"^([0-9]{2})[/-]([0-9]{2})[/-]([0-9]{4})$")


def parse_api_date(date_rep: str) -> date:
    """Parse a DD/MM/YYYY or DD-MM-YYYY string into a calendar day.

    Raises:
        MalformedDate: wrong shape, month outside 1-12, day outside 1-31,
            or a day that does not exist in that month (e.g. 31/02).
    """
    text = str(date_rep).strip()
    match = DATE_PATTERN.match(text)
    if match is None:
        raise MalformedDate(date_rep, "Expected DD/MM/YYYY or DD-MM-YYYY")

    dd, mm, yyyy = match.groups()
    day, month, year = int(dd), int(mm), int(yyyy)

    if not 1 <= month <= 12:
        raise MalformedDate(date_rep, f"Invalid month {mm!r}")
    if not 1 <= day <= 31:
        raise MalformedDate(date_rep, f"Invalid day {dd!r}")

    try:
        return date(year, month, day)
    except ValueError:
        # e.g. 31/02 or year 0000
        raise MalformedDate(date_rep, "Invalid calendar date") from None


def format_day_key(day: date) -> str:
    """Canonical YYYY-MM-DD key for a calendar day."""
    return day.isoformat()


def normalize_date(value: Union[date, datetime]) -> date:
    """Drop the time-of-day part of a date or datetime.

    Aware datetimes are converted to UTC first; naive ones are taken as-is.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def is_date_in_range(day: date, start: date, end: date) -> bool:
    """Inclusive `start <= day <= end`, compared by value."""
    return normalize_date(start) <= normalize_date(day) <= normalize_date(end)


def get_min_max_dates(records: Iterable[CovidRecord]) -> Tuple[date, date]:
    """Return the earliest and latest `dateRep` across the records.

    Raises:
        EmptyDataset: if there are no records.
        MalformedDate: if any record carries an invalid date.
    """
    lo = hi = None
    for record in records:
        current = parse_api_date(record.date_rep)
        if lo is None or current < lo:
            lo = current
        if hi is None or current > hi:
            hi = current

    if lo is None or hi is None:
        raise EmptyDataset("Cannot compute min/max dates from an empty collection")
    return lo, hi
