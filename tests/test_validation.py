"""Tests for transaction validation and status derivation."""

import math

from ledgerkit.domain.entities import ImportStatus, ValidationResult
from ledgerkit.domain.validation import derive_status, is_reviewable, validate_transaction


def test_complete_transaction_has_no_errors(make_transaction):
    result = validate_transaction(make_transaction())
    assert result.errors == []
    assert result.warnings == []
    assert "Subcategory mapped" in result.info


def test_missing_required_fields(make_transaction):
    """Date, description, amount and subcategory problems are errors."""
    txn = make_transaction(date=None, description=" ", amount=0.0, subcategory_id="")
    errors = validate_transaction(txn).errors

    assert errors == [
        "Missing or invalid date - check date field mapping",
        "Missing description - check description field mapping",
        "Invalid amount - check amount/debit/credit field mapping",
        "Missing subcategory - transaction classification required",
    ]


def test_nan_amount_is_an_error(make_transaction):
    errors = validate_transaction(make_transaction(amount=math.nan)).errors
    assert errors == ["Invalid amount - check amount/debit/credit field mapping"]


def test_missing_subcategory_is_always_an_error(make_transaction):
    """Even an otherwise perfect row is not ready without a subcategory."""
    txn = make_transaction(subcategory_id="", payee="Shop", reference="R1")
    result = validate_transaction(txn)
    assert result.errors == ["Missing subcategory - transaction classification required"]
    assert derive_status(result, False) is ImportStatus.ERROR


def test_no_account_is_a_warning(make_transaction):
    result = validate_transaction(make_transaction(account_id=None))
    assert result.warnings == ["No account mapping - will need manual assignment during review"]


def test_type_specific_warnings(make_transaction):
    income = validate_transaction(make_transaction(transaction_type="Income"))
    expense = validate_transaction(make_transaction(transaction_type="expenses"))
    transfer = validate_transaction(make_transaction(transaction_type="transfer"))

    assert income.warnings == ["Income transaction missing payer"]
    assert expense.warnings == ["Expenses transaction missing payee"]
    assert transfer.warnings == ["Transfer transaction missing destination account"]


def test_investment_warnings(make_transaction):
    result = validate_transaction(make_transaction(transaction_type="investment_buy"))
    assert result.warnings == [
        "Investment transaction missing destination account",
        "Investment transaction missing destination amount",
        "Investment transaction missing broker information",
    ]

    complete = make_transaction(
        transaction_type="investment_buy",
        destination_account_id="7",
        destination_amount=3.0,
        payee="Broker",
    )
    assert validate_transaction(complete).warnings == []


def test_info_lists_mapped_optional_fields(make_transaction):
    txn = make_transaction(payee="Shop", payer="Me", reference="R1", tag="food", notes="x")
    info = validate_transaction(txn).info
    assert "Payee mapped: Shop" in info
    assert "Payer mapped: Me" in info
    assert "Reference mapped: R1" in info
    assert "Tag mapped: food" in info
    assert "Notes mapped" in info


def test_derive_status():
    assert derive_status(ValidationResult(), False) is ImportStatus.READY
    assert derive_status(ValidationResult(warnings=["w"]), False) is ImportStatus.WARNING
    assert derive_status(ValidationResult(), True) is ImportStatus.WARNING
    assert derive_status(ValidationResult(errors=["e"], warnings=["w"]), True) is ImportStatus.ERROR


def test_is_reviewable(make_transaction):
    """Zero amounts are reviewable; NaN amounts and missing dates are not."""
    assert is_reviewable(make_transaction(amount=0.0))
    assert not is_reviewable(make_transaction(amount=math.nan))
    assert not is_reviewable(make_transaction(date=None))
    assert not is_reviewable(make_transaction(description=""))
