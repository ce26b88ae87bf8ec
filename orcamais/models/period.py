"""
Period keys

A period is one calendar month written as ``YYYY-MM``. It is the unit
every summary and comparison is computed over.

Matching a date to a period is a plain prefix comparison on the ISO
text of the date (its first 7 characters). It is not calendar aware:
a value that is not ISO-ordered simply fails to match.
"""

import re
from datetime import date, datetime
from typing import Optional, Union


PERIOD_LENGTH = 7

_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

MONTH_NAMES_PT = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


class InvalidPeriodError(ValueError):
    """Raised when a string is not a ``YYYY-MM`` period key."""


def parse_period(key: str) -> tuple[int, int]:
    """
    Split a period key into ``(year, month)``.

    Raises:
        InvalidPeriodError: If the key is not a valid ``YYYY-MM`` string
    """
    match = _PERIOD_RE.match(key.strip()) if isinstance(key, str) else None
    if match is None:
        raise InvalidPeriodError(f"Invalid period key: {key!r} (expected YYYY-MM)")
    return int(match.group(1)), int(match.group(2))


def is_valid_period(key: str) -> bool:
    try:
        parse_period(key)
    except InvalidPeriodError:
        return False
    return True


def make_period(year: int, month: int) -> str:
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Month out of range: {month}")
    if not 0 <= year <= 9999:
        raise InvalidPeriodError(f"Year out of range: {year}")
    return f"{year:04d}-{month:02d}"


def current_period(today: Optional[date] = None) -> str:
    """Period key of the month containing ``today`` (defaults to the local date)."""
    today = today or date.today()
    return make_period(today.year, today.month)


def shift_period(key: str, months: int) -> str:
    """Move a period forward (positive) or backward (negative) by whole months."""
    year, month = parse_period(key)
    index = year * 12 + (month - 1) + months
    return make_period(index // 12, index % 12 + 1)


def previous_period(key: str) -> str:
    return shift_period(key, -1)


def next_period(key: str) -> str:
    return shift_period(key, 1)


def period_of(value: Union[date, datetime, str]) -> str:
    """
    Period prefix of a date.

    Strings are not parsed: the first 7 characters are returned as-is,
    so a malformed string yields a key that matches nothing.
    """
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}"
    return str(value)[:PERIOD_LENGTH]


def in_period(value: Union[date, datetime, str], key: str) -> bool:
    """Strict prefix match of a date against a period key. Never raises."""
    if not isinstance(key, str):
        return False
    return period_of(value) == key.strip()


def format_period(key: str) -> str:
    """Human label for a period, e.g. ``"2024-01"`` -> ``"Janeiro 2024"``."""
    year, month = parse_period(key)
    return f"{MONTH_NAMES_PT[month - 1]} {year}"
