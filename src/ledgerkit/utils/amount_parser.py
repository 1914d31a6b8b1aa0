"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_NON_NUMERIC = re.compile(r"[^-0-9.]")
_LEADING_NUMBER = re.compile(r"-?(\d+\.?\d*|\.\d+)")


def parse_amount_text(amount_str: str | None) -> float:
    """Parse a bank export amount cell into a float.

    Every character except digits, ``-`` and ``.`` is dropped, then the
    leading number is read. Anything unreadable counts as 0.

    Examples:
        "1,234.56" -> 1234.56
        "$-50.00" -> -50.0
        "" -> 0.0
    """
    if amount_str is None:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(amount_str))
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return 0.0
    return float(match.group(0))


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount
