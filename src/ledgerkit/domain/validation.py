"""Validation of canonical transactions before review."""

import math

from ledgerkit.domain.entities import CanonicalTransaction, ImportStatus, ValidationResult


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _invalid_amount(amount) -> bool:
    try:
        number = float(amount)
    except (TypeError, ValueError):
        return True
    return math.isnan(number) or number == 0


def validate_transaction(transaction: CanonicalTransaction) -> ValidationResult:
    """Check the fields a transaction needs before it can be imported.

    Errors block the ``ready`` status; warnings flag gaps that can be fixed
    during review. ``info`` lists the optional fields that were mapped.
    """
    result = ValidationResult()
    errors, warnings, info = result.errors, result.warnings, result.info

    if not transaction.date:
        errors.append("Missing or invalid date - check date field mapping")
    if _is_blank(transaction.description):
        errors.append("Missing description - check description field mapping")
    if _invalid_amount(transaction.amount):
        errors.append("Invalid amount - check amount/debit/credit field mapping")
    if _is_blank(transaction.subcategory_id):
        errors.append("Missing subcategory - transaction classification required")

    if not (transaction.account_id or transaction.from_account_id or transaction.to_account_id):
        warnings.append("No account mapping - will need manual assignment during review")

    transaction_type = (transaction.transaction_type or "").lower()
    if transaction_type == "income" and not transaction.payer:
        warnings.append("Income transaction missing payer")
    if transaction_type == "expenses" and not transaction.payee:
        warnings.append("Expenses transaction missing payee")
    if transaction_type == "transfer" and not transaction.destination_account_id:
        warnings.append("Transfer transaction missing destination account")
    if "investment" in transaction_type:
        if not transaction.destination_account_id:
            warnings.append("Investment transaction missing destination account")
        if _invalid_amount(transaction.destination_amount):
            warnings.append("Investment transaction missing destination amount")
        if not transaction.payee and not transaction.payer:
            warnings.append("Investment transaction missing broker information")

    if transaction.transaction_type:
        info.append(f"Transaction type mapped: {transaction.transaction_type}")
    if transaction.transaction_group:
        info.append(f"Transaction group mapped: {transaction.transaction_group}")
    if transaction.subcategory_id:
        info.append("Subcategory mapped")
    if transaction.payee:
        info.append(f"Payee mapped: {transaction.payee}")
    if transaction.payer:
        info.append(f"Payer mapped: {transaction.payer}")
    if transaction.reference:
        info.append(f"Reference mapped: {transaction.reference}")
    if transaction.tag:
        info.append(f"Tag mapped: {transaction.tag}")
    if transaction.notes:
        info.append("Notes mapped")

    return result


def derive_status(validation: ValidationResult, is_duplicate: bool) -> ImportStatus:
    """Errors win over warnings; a suspected duplicate is a warning."""
    if validation.errors:
        return ImportStatus.ERROR
    if validation.warnings or is_duplicate:
        return ImportStatus.WARNING
    return ImportStatus.READY


def is_reviewable(transaction: CanonicalTransaction) -> bool:
    """Final completeness gate: a date, a description and a numeric amount."""
    try:
        amount = float(transaction.amount)
    except (TypeError, ValueError):
        return False
    return bool(transaction.date) and bool(transaction.description) and not math.isnan(amount)
