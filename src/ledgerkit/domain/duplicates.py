"""Duplicate detection against the existing ledger."""

from datetime import date
from typing import Iterable, Optional

from ledgerkit.domain.entities import CanonicalTransaction, Transaction

AMOUNT_TOLERANCE = 0.01
DESCRIPTION_PREFIX_LENGTH = 10


def _normalize_reference(reference: Optional[str]) -> str:
    return (reference or "").strip().lower()


def _date_text(value: date | str | None) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return value


def descriptions_match(first: Optional[str], second: Optional[str]) -> bool:
    """True when either description contains the other's lowercase prefix.

    Reordered or differently abbreviated descriptions do not match; the
    check is a heuristic that prefers missing a duplicate over inventing one.
    """
    if not first or not second:
        return False
    first, second = first.lower(), second.lower()
    return (
        first[:DESCRIPTION_PREFIX_LENGTH] in second
        or second[:DESCRIPTION_PREFIX_LENGTH] in first
    )


def matches_existing(candidate: CanonicalTransaction, existing: Transaction) -> bool:
    """Amount, date and description heuristic for rows without a reference."""
    try:
        amount_gap = abs(float(existing.amount) - float(candidate.amount))
    except (TypeError, ValueError):
        return False
    if not amount_gap < AMOUNT_TOLERANCE:
        return False
    if _date_text(existing.date) != candidate.date:
        return False
    return descriptions_match(existing.description, candidate.description)


def is_duplicate(candidate: CanonicalTransaction, existing: Iterable[Transaction]) -> bool:
    """Decide whether ``candidate`` is probably already in the ledger.

    A non-empty reference is compared case-insensitively against every
    existing reference, and only that comparison counts. Without a reference
    the amount/date/description heuristic applies.

    Args:
        candidate: Import-stage transaction
        existing: Ledger transactions to compare against

    Returns:
        True if a match was found
    """
    reference = _normalize_reference(candidate.reference)
    if reference:
        return any(_normalize_reference(t.reference) == reference for t in existing)
    return any(matches_existing(candidate, t) for t in existing)
