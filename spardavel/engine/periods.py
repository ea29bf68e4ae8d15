"""
Calendar month helpers.

Months are identified by ``YYYY-MM`` keys. Keys sort lexically in
chronological order, which the scheduler relies on.
"""

import calendar
from datetime import date, timedelta
from typing import Iterator


def month_key(day: date) -> str:
    """``date(2025, 8, 17)`` -> ``"2025-08"``."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a month key into (year, month). Raises ValueError if malformed."""
    try:
        year_part, month_part = key.split("-")
        year, month = int(year_part), int(month_part)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    if not 1 <= month <= 12 or len(year_part) != 4:
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    return year, month


def month_bounds(key: str) -> tuple[date, date]:
    """First and last calendar day of a month."""
    year, month = parse_month_key(key)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def next_month_key(key: str) -> str:
    year, month = parse_month_key(key)
    if month == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{month + 1:02d}"


def iter_month_keys(start_key: str, stop_key: str) -> Iterator[str]:
    """Month keys from start_key up to, but excluding, stop_key."""
    current = start_key
    while current < stop_key:
        yield current
        current = next_month_key(current)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every day from start to end, both inclusive."""
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        yield current
        current += one_day
