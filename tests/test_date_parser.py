"""Tests for statement date and amount parsing."""

import re
import time
from datetime import date

import pytest
from decimal import Decimal

from ledgerkit.domain.entities import DateFormat
from ledgerkit.utils.amount_parser import parse_amount, parse_amount_text
from ledgerkit.utils.date_parser import format_statement_date, parse_statement_date

ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def test_parse_month_first():
    """MM/DD/YYYY splits on slashes with the month first."""
    assert parse_statement_date("01/15/2024", DateFormat.MM_DD_YYYY) == "2024-01-15"


def test_parse_day_first():
    """DD/MM/YYYY swaps day and month."""
    assert parse_statement_date("15/01/2024", DateFormat.DD_MM_YYYY) == "2024-01-15"


def test_parse_iso():
    """ISO dates go through the generic parser."""
    assert parse_statement_date("2024-01-15", DateFormat.YYYY_MM_DD) == "2024-01-15"


def test_parse_strips_quotes_and_whitespace():
    """Quotes and surrounding whitespace are removed before parsing."""
    assert parse_statement_date(' "03/04/2024" ', DateFormat.DD_MM_YYYY) == "2024-04-03"


def test_parse_single_digit_parts_are_zero_padded():
    """Output always has two-digit month and day."""
    assert parse_statement_date("1/5/2024", DateFormat.MM_DD_YYYY) == "2024-01-05"


def test_parse_unrecognized_format_falls_back_to_generic_parser():
    """An unknown format value uses the generic parser."""
    assert parse_statement_date("Jan 15 2024", "whatever") == "2024-01-15"


@pytest.mark.parametrize(
    "value,date_format",
    [
        ("", DateFormat.YYYY_MM_DD),
        (None, DateFormat.YYYY_MM_DD),
        ("not a date", DateFormat.YYYY_MM_DD),
        ("2024-01-15", DateFormat.MM_DD_YYYY),
        ("13/45/2024", DateFormat.MM_DD_YYYY),
        ("02/30/2024", DateFormat.MM_DD_YYYY),
        ('""', DateFormat.DD_MM_YYYY),
    ],
)
def test_parse_invalid_returns_none(value, date_format):
    """Unparseable or impossible dates give None."""
    assert parse_statement_date(value, date_format) is None


@pytest.mark.parametrize(
    "value,date_format",
    [
        ("12/31/2023", DateFormat.MM_DD_YYYY),
        ("31/12/2023", DateFormat.DD_MM_YYYY),
        ("2023-12-31", DateFormat.YYYY_MM_DD),
        ("2024-02-29", DateFormat.YYYY_MM_DD),
    ],
)
def test_parsed_dates_are_iso_and_keep_the_calendar_day(value, date_format):
    """Output is YYYY-MM-DD and names the same calendar day as the input."""
    result = parse_statement_date(value, date_format)
    assert ISO_PATTERN.match(result)
    assert date.fromisoformat(result).day in (31, 29)


@pytest.mark.parametrize("value", ["2024-01", "Jan 2024"])
def test_partial_dates_fall_on_the_first(value):
    """A missing day is the 1st of the month, whatever today is."""
    assert parse_statement_date(value, DateFormat.YYYY_MM_DD) == "2024-01-01"


@pytest.fixture(params=["Pacific/Kiritimati", "America/Adak", "UTC"])
def local_timezone(request, monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", request.param)
    time.tzset()
    yield request.param
    monkeypatch.undo()
    time.tzset()


@pytest.mark.parametrize(
    "value,date_format",
    [
        ("12/31/2023", DateFormat.MM_DD_YYYY),
        ("31/12/2023", DateFormat.DD_MM_YYYY),
        ("2023-12-31", DateFormat.YYYY_MM_DD),
    ],
)
def test_calendar_day_does_not_depend_on_local_timezone(local_timezone, value, date_format):
    assert parse_statement_date(value, date_format) == "2023-12-31"


def test_format_statement_date_round_trip():
    """Formatting a date for a statement and parsing it back is lossless."""
    value = date(2024, 3, 9)
    for date_format in DateFormat:
        text = format_statement_date(value, date_format)
        assert parse_statement_date(text, date_format) == "2024-03-09"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("100.00", 100.0),
        ("-75.5", -75.5),
        ("$1,234.56", 1234.56),
        ("EUR -12.30", -12.3),
        ("", 0.0),
        (None, 0.0),
        ("n/a", 0.0),
    ],
)
def test_parse_amount_text(text, expected):
    """Bank amount cells keep only digits, minus and dot."""
    assert parse_amount_text(text) == pytest.approx(expected)


def test_parse_amount_handles_parentheses_and_symbols():
    """User-entered amounts support currency symbols and accounting negatives."""
    assert parse_amount("$1,234.50") == Decimal("1234.50")
    assert parse_amount("(45.00)") == Decimal("-45.00")
    assert parse_amount("-12") == Decimal("-12")


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects_non_numbers(text):
    """Non-numeric input raises ValueError."""
    with pytest.raises(ValueError):
        parse_amount(text)
