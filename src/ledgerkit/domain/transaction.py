"""Transaction domain service."""

from typing import Optional, Sequence
from datetime import date
from decimal import Decimal
from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Transaction as TransactionEntity
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    currency_not_found,
)


class TransactionService:
    """Service for managing ledger transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_transaction(
        self,
        account_id: int,
        date: date,
        amount: Decimal,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        subcategory_id: Optional[str] = None,
        transaction_type: Optional[str] = None,
        payee: Optional[str] = None,
        payer: Optional[str] = None,
        notes: Optional[str] = None,
        currency_id: Optional[int] = None,
        category_id: Optional[str] = None,
        transaction_group: Optional[str] = None,
        tags: Sequence[str] = (),
        destination_account_id: Optional[int] = None,
        destination_amount: Optional[Decimal] = None,
    ) -> int:
        """Add a transaction to the ledger.

        ``amount`` is signed, negative for money leaving the account. The
        optional fields mirror the canonical import fields, so a committed
        import row and a hand-entered one look the same.

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the account, destination account or currency doesn't exist
            ValidationError: If the amount is not a finite number
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if destination_account_id is not None and self.db.get_account(destination_account_id) is None:
            raise NotFoundError(account_not_found(destination_account_id))
        if currency_id is not None and self.db.get_currency(currency_id) is None:
            raise NotFoundError(currency_not_found(currency_id))
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {amount}")

        return self.db.create_transaction(
            account_id=account_id,
            date=date,
            amount=amount,
            description=description,
            reference=reference,
            subcategory_id=subcategory_id,
            transaction_type=transaction_type,
            payee=payee,
            payer=payer,
            notes=notes,
            currency_id=currency_id,
            category_id=category_id,
            transaction_group=transaction_group,
            tags=tags,
            destination_account_id=destination_account_id,
            destination_amount=destination_amount,
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        return self.db.get_transaction(transaction_id)

    def list_transactions(self, account_id: Optional[int] = None) -> list[TransactionEntity]:
        """List transactions, newest first, optionally for one account."""
        return self.db.list_transactions(account_id=account_id)

    def list_unreconciled(self, account_id: Optional[int] = None) -> list[TransactionEntity]:
        """List transactions that carry no reconciliation reference."""
        return self.db.get_unreconciled_transactions(account_id=account_id)
