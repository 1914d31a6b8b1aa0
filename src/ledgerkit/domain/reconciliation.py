"""Bank statement reconciliation.

A ``ReconciliationSession`` collects unreconciled ledger transactions of one
account until their sum matches the statement total, then tags them all
with the session's reference. Nothing is written before ``complete``.

States::

    setup --start--> selecting --complete--> setup
      ^                  |
      +------reset-------+
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import NamedEnum, Transaction
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ReconciliationCommitError,
    ValidationError,
    transaction_already_reconciled,
    transaction_not_found,
)
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.currency_format import format_currency

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = 0.01

ConfirmCallback = Callable[[str], bool]


class SessionStep(NamedEnum):
    SETUP = "setup"
    SELECTING = "selecting"


@dataclass(frozen=True)
class ReconciliationSummary:
    """Snapshot of a session for display."""

    reference: str
    bank_statement_total: float
    running_total: float
    selected_count: int
    difference: float

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < BALANCE_TOLERANCE


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of ``ReconciliationSession.complete``.

    ``requires_confirmation`` is set when the totals differ and the caller
    did not confirm; nothing was written in that case.
    """

    committed: bool
    requires_confirmation: bool = False
    reconciled_ids: tuple[int, ...] = ()
    summary: Optional[ReconciliationSummary] = None


@dataclass(frozen=True)
class ReferenceSummary:
    """Totals of the transactions reconciled under one reference."""

    reference: str
    transaction_count: int
    total_amount: Decimal
    account_ids: list[int]


class ReconciliationSession:
    """In-memory reconciliation of one account against a statement total."""

    def __init__(self, db: Database):
        self.db = db
        self.account_service = AccountService(db)
        self.reset()

    def reset(self) -> None:
        """Discard the session and return to setup. Writes nothing."""
        self.step = SessionStep.SETUP
        self.reference = ""
        self.bank_statement_total = 0.0
        self.account_id: Optional[int] = None
        self.selected_ids: set[int] = set()
        self.running_total = 0.0

    def start(self, reference: str, bank_statement_total, account: int | str) -> None:
        """Begin selecting transactions.

        Args:
            reference: Reconciliation reference to tag the transactions with
            bank_statement_total: Statement total (number or text such as "1,234.50")
            account: Account ID or name

        Raises:
            ValidationError: If a session is already running, the reference is
                empty, no account is given or the total is not a number
            NotFoundError: If the account doesn't exist
        """
        if self.step is not SessionStep.SETUP:
            raise ValidationError(
                f"Reconciliation '{self.reference}' is already in progress; reset it first"
            )
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError("Reconciliation reference is required")
        if account is None or (isinstance(account, str) and not account.strip()):
            raise ValidationError("An account must be chosen")
        try:
            total = float(parse_amount(str(bank_statement_total)))
        except ValueError as e:
            raise ValidationError(
                f"Bank statement total must be a number, got '{bank_statement_total}'"
            ) from e

        account_id = self.account_service.resolve(account)

        self.reference = reference
        self.bank_statement_total = total
        self.account_id = account_id
        self.selected_ids = set()
        self.running_total = 0.0
        self.step = SessionStep.SELECTING
        logger.debug(
            "Started reconciliation %s for account %s (total %s)", reference, account_id, total
        )

    def available_transactions(self, include_reconciled: bool = False) -> list[Transaction]:
        """Transactions of the session account that can be shown for selection.

        With ``include_reconciled`` the already reconciled rows are listed
        too (for auditing); they still cannot be selected.
        """
        self._require_selecting()
        if include_reconciled:
            return self.db.get_transactions_by_account(self.account_id)
        return self.db.get_unreconciled_transactions(self.account_id)

    def toggle(self, transaction_id: int) -> bool:
        """Select or deselect a transaction.

        Returns:
            True if the transaction is selected afterwards

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction is already reconciled
            ValidationError: If no session is running or the transaction
                belongs to another account
        """
        self._require_selecting()
        if transaction_id in self.selected_ids:
            self.selected_ids.discard(transaction_id)
            self._recompute_running_total()
            return False

        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.is_reconciled:
            raise ConflictError(
                transaction_already_reconciled(transaction_id, txn.reconciliation_reference)
            )
        if txn.account_id != self.account_id:
            raise ValidationError(
                f"Transaction {transaction_id} belongs to account {txn.account_id}, "
                f"not {self.account_id}"
            )

        self.selected_ids.add(transaction_id)
        self._recompute_running_total()
        return True

    def is_selected(self, transaction_id: int) -> bool:
        return transaction_id in self.selected_ids

    @property
    def difference(self) -> float:
        return self.running_total - self.bank_statement_total

    def summary(self) -> ReconciliationSummary:
        return ReconciliationSummary(
            reference=self.reference,
            bank_statement_total=self.bank_statement_total,
            running_total=self.running_total,
            selected_count=len(self.selected_ids),
            difference=self.difference,
        )

    def complete(self, confirm: Optional[ConfirmCallback] = None) -> CompletionResult:
        """Tag every selected transaction with the reference and reset.

        When the totals differ by at least ``BALANCE_TOLERANCE`` the
        ``confirm`` callback is asked with a message describing the gap.
        Without a callback, or when it declines, nothing is written.

        Writes are not rolled back if one fails part way; the session keeps
        its state so the completion can be retried.

        Raises:
            ValidationError: If no session is running or nothing is selected
            ReconciliationCommitError: If the repository rejects a write
        """
        self._require_selecting()
        if not self.selected_ids:
            raise ValidationError("Select at least one transaction to complete the reconciliation")

        self._recompute_running_total()
        summary = self.summary()
        if not summary.is_balanced:
            message = self._imbalance_message(summary)
            if confirm is None or not confirm(message):
                logger.debug("Completion of %s awaits confirmation: %s", self.reference, message)
                return CompletionResult(
                    committed=False, requires_confirmation=True, summary=summary
                )

        reconciled: list[int] = []
        for transaction_id in sorted(self.selected_ids):
            try:
                txn = self.db.get_transaction(transaction_id)
                if txn is not None and txn.reconciliation_reference == self.reference:
                    # written by an earlier, interrupted completion
                    reconciled.append(transaction_id)
                    continue
                self.db.reconcile_transaction(transaction_id, self.reference)
            except Exception as e:
                logger.exception(
                    "Reconciling transaction %s under %s failed", transaction_id, self.reference
                )
                raise ReconciliationCommitError(
                    f"Could not reconcile transaction {transaction_id} under "
                    f"'{self.reference}': {e}. {len(reconciled)} transactions were "
                    "already reconciled and stay reconciled.",
                    failed_id=transaction_id,
                    reconciled_ids=list(reconciled),
                ) from e
            reconciled.append(transaction_id)

        logger.info("Reconciliation %s completed with %d transactions", self.reference, len(reconciled))
        self.reset()
        return CompletionResult(
            committed=True, reconciled_ids=tuple(reconciled), summary=summary
        )

    def _require_selecting(self) -> None:
        if self.step is not SessionStep.SELECTING:
            raise ValidationError("No reconciliation in progress; start one first")

    def _recompute_running_total(self) -> None:
        if not self.selected_ids:
            self.running_total = 0.0
            return
        amounts = (
            t.amount
            for t in self.db.get_transactions_by_account(self.account_id)
            if t.id in self.selected_ids
        )
        self.running_total = float(sum(amounts, Decimal("0")))

    def _imbalance_message(self, summary: ReconciliationSummary) -> str:
        code = None
        account = self.db.get_account(self.account_id)
        if account is not None and account.currency_id is not None:
            currency = self.db.get_currency(account.currency_id)
            code = currency.code if currency else None
        return (
            f"Selected total {format_currency(summary.running_total, code)} differs from "
            f"the statement total {format_currency(summary.bank_statement_total, code)} "
            f"by {format_currency(summary.difference, code)}. Complete anyway?"
        )


class ReconciliationService:
    """Service for reviewing and undoing completed reconciliations."""

    def __init__(self, db: Database):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db

    def new_session(self) -> ReconciliationSession:
        return ReconciliationSession(self.db)

    def list_references(self) -> list[str]:
        """List the references used by completed reconciliations."""
        return self.db.list_reconciliation_references()

    def transactions_for(self, reference: str) -> list[Transaction]:
        """List the transactions reconciled under a reference."""
        return self.db.get_reconciled_transactions(reference)

    def summarize(self, reference: str) -> ReferenceSummary:
        """Summarize a completed reconciliation.

        Raises:
            NotFoundError: If no transaction carries the reference
        """
        data = self.db.get_reconciliation_summary(reference)
        if data["transaction_count"] == 0:
            raise NotFoundError(f"Reconciliation '{reference}' not found")
        return ReferenceSummary(
            reference=reference,
            transaction_count=data["transaction_count"],
            total_amount=data["total_amount"],
            account_ids=list(data["account_ids"]),
        )

    def unreconcile(self, transaction_id: int) -> Transaction:
        """Clear the reconciliation reference of a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValidationError: If the transaction is not reconciled
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if not txn.is_reconciled:
            raise ValidationError(f"Transaction {transaction_id} is not reconciled")
        updated = self.db.unreconcile_transaction(transaction_id)
        logger.info(
            "Transaction %s removed from reconciliation %s",
            transaction_id,
            txn.reconciliation_reference,
        )
        return updated

    def unreconcile_many(self, transaction_ids: Iterable[int]) -> list[Transaction]:
        """Clear the reconciliation reference of several transactions.

        Every id is checked before any transaction is changed, so one bad id
        leaves all of them reconciled.

        Raises:
            NotFoundError: If a transaction doesn't exist
            ValidationError: If a transaction is not reconciled, or no ids are given
        """
        ids = list(dict.fromkeys(transaction_ids))
        if not ids:
            raise ValidationError("No transactions given")
        for transaction_id in ids:
            txn = self.db.get_transaction(transaction_id)
            if txn is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            if not txn.is_reconciled:
                raise ValidationError(f"Transaction {transaction_id} is not reconciled")
        return [self.unreconcile(transaction_id) for transaction_id in ids]

    def undo(self, reference: str) -> list[Transaction]:
        """Remove every transaction from the reconciliation ``reference``.

        Raises:
            NotFoundError: If no transaction carries the reference
        """
        transactions = self.transactions_for(reference)
        if not transactions:
            raise NotFoundError(f"Reconciliation '{reference}' not found")
        return self.unreconcile_many(txn.id for txn in transactions)
