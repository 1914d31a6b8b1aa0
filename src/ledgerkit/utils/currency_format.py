"""Currency formatting for user-facing messages."""

_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def format_currency(amount: float, currency_code: str | None = None) -> str:
    """Format an amount for display, e.g. ``$1,234.50`` or ``1,234.50 CHF``.

    Only for messages; comparisons always use the raw float.
    """
    code = (currency_code or "USD").upper()
    sign = "-" if amount < 0 else ""
    body = f"{abs(amount):,.2f}"
    symbol = _SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{body}"
    return f"{sign}{body} {code}"
