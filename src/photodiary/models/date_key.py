"""
Calendar date keys.

A date key is ``YYYY-MM-DD``, zero-padded, taken from the local wall-clock
date. Zero padding makes lexicographic order equal chronological order, which
is what lets a month be fetched with a single range scan.
"""

import re
from datetime import date, datetime

from ..errors import InvalidInputError

DATE_KEY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

# Upper day used for month range queries regardless of the month's real length.
MONTH_END_DAY = 31


def format_date_key(value: date | datetime) -> str:
    """
    Format a date as a date key.

    Args:
        value: Local date or naive/local datetime

    Returns:
        str: ``YYYY-MM-DD``
    """
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def today_key() -> str:
    """Date key of the current local day."""
    return format_date_key(date.today())


def is_date_key_shape(key: object) -> bool:
    """True if ``key`` looks like ``YYYY-MM-DD``; the day itself is not checked."""
    return isinstance(key, str) and DATE_KEY_PATTERN.fullmatch(key) is not None


def parse_date_key(key: str) -> date:
    """
    Parse a date key into a date.

    Args:
        key: Date key to parse

    Returns:
        date: The calendar day

    Raises:
        InvalidInputError: If the key is malformed or not a real calendar day
    """
    if not is_date_key_shape(key):
        raise InvalidInputError(
            f"Malformed date key {key!r}, expected YYYY-MM-DD",
            code="malformed_date_key",
            details={"date_key": repr(key)},
        )

    try:
        return date(int(key[0:4]), int(key[5:7]), int(key[8:10]))
    except ValueError as e:
        raise InvalidInputError(
            f"Date key {key!r} is not a calendar day",
            code="invalid_calendar_day",
            details={"date_key": key},
            original_exception=e,
        ) from e


def validate_date_key(key: str) -> str:
    """Return ``key`` unchanged if it names a real calendar day, raise InvalidInputError otherwise."""
    parse_date_key(key)
    return key


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """
    Inclusive key range covering one month.

    The upper bound always uses day 31. For shorter months it names a day that
    cannot exist as a stored key, so the scan still ends at the real last day.

    Raises:
        InvalidInputError: If year or month is out of range
    """
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise InvalidInputError(
            f"Invalid month {year}-{month}",
            code="invalid_month",
            details={"year": year, "month": month},
        )

    prefix = f"{year:04d}-{month:02d}"
    return f"{prefix}-01", f"{prefix}-{MONTH_END_DAY:02d}"


def is_future(key: str, today: date | None = None) -> bool:
    """True if the day named by ``key`` comes after ``today`` (local date by default)."""
    reference = today or date.today()
    return parse_date_key(key) > reference
