"""Date parsing utilities for bank statement rows."""

import re
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser

MONTH_FIRST = "MM/DD/YYYY"
DAY_FIRST = "DD/MM/YYYY"
ISO = "YYYY-MM-DD"

# Fills the parts a partial date leaves out, so "2024-01" is the 1st
_MISSING_PARTS = datetime(2000, 1, 1)

_QUOTES = re.compile(r"['\"]")


def parse_statement_date(date_str: Optional[str], date_format: Optional[str]) -> Optional[str]:
    """Parse a statement date into an ISO ``YYYY-MM-DD`` string.

    Slash formats are split positionally; ``YYYY-MM-DD`` and anything
    unrecognized go through the generic dateutil parser. The result is built
    from the calendar fields of the parsed value, never through a timezone
    conversion, so the day cannot shift.

    Args:
        date_str: Raw cell value
        date_format: Declared statement date format (``DateFormat`` or its value)

    Returns:
        ISO date string, or None when the value is empty or unparseable
    """
    if not date_str:
        return None

    cleaned = _QUOTES.sub("", str(date_str)).strip()
    if not cleaned:
        return None

    try:
        if date_format == MONTH_FIRST:
            month, day, year = _split_slashes(cleaned)
            parsed = date(year, month, day)
        elif date_format == DAY_FIRST:
            day, month, year = _split_slashes(cleaned)
            parsed = date(year, month, day)
        else:
            parsed = date_parser.parse(cleaned, default=_MISSING_PARTS).date()
    except (ValueError, TypeError, OverflowError):
        return None

    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


def format_statement_date(value: date, date_format: Optional[str]) -> str:
    """Render a date the way a statement with ``date_format`` writes it."""
    if date_format == MONTH_FIRST:
        return value.strftime("%m/%d/%Y")
    if date_format == DAY_FIRST:
        return value.strftime("%d/%m/%Y")
    return value.strftime("%Y-%m-%d")


def _split_slashes(value: str) -> tuple[int, int, int]:
    parts = value.split("/")
    if len(parts) != 3:
        raise ValueError(f"Expected three '/'-separated parts in '{value}'")
    first, second, year = (int(part.strip()) for part in parts)
    return first, second, year
