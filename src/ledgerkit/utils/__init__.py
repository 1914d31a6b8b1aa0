"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_statement_date
from ledgerkit.utils.amount_parser import parse_amount, parse_amount_text
from ledgerkit.utils.currency_format import format_currency

__all__ = ["parse_statement_date", "parse_amount", "parse_amount_text", "format_currency"]
