"""Import pipeline: statement files to a validated review queue."""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.currency import CurrencyService
from ledgerkit.domain.duplicates import is_duplicate
from ledgerkit.domain.entities import (
    BankConfiguration,
    CanonicalTransaction,
    ImportStatus,
    NamedEnum,
    ProcessingRule,
    Transaction,
)
from ledgerkit.domain.errors import (
    DomainError,
    ImportPipelineError,
    NotFoundError,
    bank_configuration_not_found,
)
from ledgerkit.domain.field_mapping import map_row
from ledgerkit.domain.rules import apply_rules
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.domain.validation import derive_status, is_reviewable, validate_transaction
from ledgerkit.utils.row_reader import FileReadError, read_rows

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ImportOutcome(NamedEnum):
    OK = "ok"
    NO_VALID_TRANSACTIONS = "no_valid_transactions"


@dataclass
class ImportStats:
    """Counters accumulated over one import run."""

    total_rows: int = 0
    total_transactions: int = 0
    valid_transactions: int = 0
    transactions_with_rules: int = 0
    total_rules_applied: int = 0
    skipped_transactions: int = 0
    row_errors: int = 0

    @property
    def excluded_transactions(self) -> int:
        """Rows dropped for reasons other than an ignore rule."""
        return self.total_rows - self.skipped_transactions - self.valid_transactions


@dataclass
class ImportResult:
    """Review queue and diagnostics of one import run.

    ``transactions`` holds the rows complete enough for review (errors
    included, for display); ``all_parsed`` holds every non-ignored row.
    """

    transactions: list[CanonicalTransaction] = field(default_factory=list)
    all_parsed: list[CanonicalTransaction] = field(default_factory=list)
    stats: ImportStats = field(default_factory=ImportStats)
    file_errors: list[str] = field(default_factory=list)
    row_errors: list[str] = field(default_factory=list)
    outcome: ImportOutcome = ImportOutcome.OK
    guidance: list[str] = field(default_factory=list)

    def with_status(self, status: ImportStatus) -> list[CanonicalTransaction]:
        return [t for t in self.transactions if t.status is status]


@dataclass
class CommitResult:
    """Ledger writes performed for an accepted review queue."""

    imported_ids: list[int] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)


def _to_money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _optional_money(value: Optional[float]) -> Optional[Decimal]:
    if value is None or not math.isfinite(value):
        return None
    return _to_money(value)


def _tags_of(txn: CanonicalTransaction) -> list[str]:
    """Tags list plus the single ``tag`` field, which rules may have set."""
    tags = [t for t in txn.tags if t]
    if txn.tag and txn.tag not in tags:
        tags.append(txn.tag)
    return tags


class CSVImportService:
    """Service for importing bank statement files."""

    def __init__(self, db: Database):
        """Initialize import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.transaction_service = TransactionService(db)
        self.account_service = AccountService(db)
        self.bank_config_service = BankConfigService(db)
        self.currency_service = CurrencyService(db)

    def import_files(
        self,
        file_paths: Sequence[str | Path],
        bank_name: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Process statement files with a named bank configuration.

        Uses the bank's active rules and the whole ledger for duplicate
        detection. Nothing is written to the ledger.

        Raises:
            NotFoundError: If the bank configuration doesn't exist
            ImportPipelineError: If the run fails as a whole
        """
        bank_config = self.bank_config_service.get_configuration_by_name(bank_name)
        if bank_config is None:
            raise NotFoundError(bank_configuration_not_found(bank_name))
        return self.process_files(file_paths, bank_config, on_progress=on_progress)

    def process_files(
        self,
        file_paths: Sequence[str | Path],
        bank_config: BankConfiguration,
        rules: Optional[Sequence[ProcessingRule]] = None,
        existing: Optional[Sequence[Transaction]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Run files through mapping, rules, duplicate detection and validation.

        Files are processed in the given order and rows in file order; the
        output keeps that order. Unreadable or empty files are reported in
        ``file_errors`` and do not stop the other files.

        Args:
            file_paths: Statement files (CSV or XLSX)
            bank_config: Bank configuration to map rows with
            rules: Processing rules (defaults to the bank's active rules)
            existing: Ledger transactions for duplicate detection (defaults to all)
            on_progress: Called after each file with the fraction of files done

        Returns:
            ImportResult

        Raises:
            ImportPipelineError: If the configuration is unusable or the run
                fails unexpectedly
        """
        is_valid, missing = self.bank_config_service.validate_configuration(bank_config)
        if not is_valid:
            raise ImportPipelineError(
                "\n".join(
                    [
                        f"Bank configuration '{bank_config.name}' cannot be used for import.",
                        f"Missing field mappings: {', '.join(missing)}",
                        f"Add them with: ledgerkit bank map '{bank_config.name}' FIELD COLUMN",
                    ]
                )
            )

        try:
            if rules is None:
                rules = self.db.get_active_processing_rules(bank_config.id)
            if existing is None:
                existing = self.db.list_transactions()
            return self._run(file_paths, bank_config, list(rules), list(existing), on_progress)
        except ImportPipelineError:
            raise
        except Exception as e:
            logger.exception("Import with bank configuration '%s' failed", bank_config.name)
            raise ImportPipelineError(
                "\n".join(
                    [
                        f"Import with bank configuration '{bank_config.name}' failed.",
                        f"Reason: {type(e).__name__}: {e}",
                        "Check the bank configuration settings and field mapping,",
                        "then run the import again.",
                    ]
                )
            ) from e

    def _run(
        self,
        file_paths: Sequence[str | Path],
        bank_config: BankConfiguration,
        rules: list[ProcessingRule],
        existing: list[Transaction],
        on_progress: Optional[ProgressCallback],
    ) -> ImportResult:
        result = ImportResult()
        settings = bank_config.settings
        currencies = self.db.list_currencies()
        base_currency_id = self.currency_service.ensure_base_currency().id
        timestamp = int(time.time() * 1000)

        for file_index, file_path in enumerate(file_paths):
            path = Path(file_path)
            try:
                rows = read_rows(
                    path,
                    has_headers=settings.has_headers,
                    delimiter=settings.delimiter,
                    encoding=settings.encoding,
                    date_format=settings.date_format,
                )
            except FileReadError as e:
                logger.warning("Skipping %s: %s", path.name, e)
                result.file_errors.append(str(e))
                rows = None

            if rows is not None and not rows:
                message = f"{path.name}: no data found"
                logger.warning(message)
                result.file_errors.append(message)

            for row_index, row in enumerate(rows or []):
                result.stats.total_rows += 1
                try:
                    transaction = map_row(
                        row,
                        bank_config,
                        file_index,
                        row_index,
                        currencies=currencies,
                        base_currency_id=base_currency_id,
                        file_name=path.name,
                        timestamp=timestamp,
                    )
                    rule_result = apply_rules(transaction, rules)
                    if rule_result.ignored:
                        result.stats.skipped_transactions += 1
                        continue

                    transaction = rule_result.transaction
                    transaction.validation = validate_transaction(transaction)
                    transaction.is_duplicate = is_duplicate(transaction, existing)
                    transaction.status = derive_status(
                        transaction.validation, transaction.is_duplicate
                    )
                except (DomainError, ArithmeticError, TypeError, ValueError) as e:
                    result.stats.row_errors += 1
                    result.row_errors.append(f"{path.name} row {row_index + 1}: {e}")
                    continue

                result.all_parsed.append(transaction)

            logger.debug("Processed %s (%d rows)", path.name, len(rows or []))
            if on_progress is not None:
                on_progress((file_index + 1) / len(file_paths))

        result.transactions = [t for t in result.all_parsed if is_reviewable(t)]
        self._collect_stats(result)

        if not result.transactions:
            result.outcome = ImportOutcome.NO_VALID_TRANSACTIONS
            result.guidance = self._guidance(bank_config, result)
        return result

    @staticmethod
    def _collect_stats(result: ImportResult) -> None:
        stats = result.stats
        stats.total_transactions = len(result.all_parsed)
        stats.valid_transactions = len(result.transactions)
        stats.transactions_with_rules = sum(1 for t in result.all_parsed if t.rules_applied)
        stats.total_rules_applied = sum(len(t.rules_applied) for t in result.all_parsed)

    @staticmethod
    def _guidance(bank_config: BankConfiguration, result: ImportResult) -> list[str]:
        settings = bank_config.settings
        mapping = ", ".join(
            f"{key.value} -> '{column}'" for key, column in bank_config.field_mapping.items()
        )
        guidance = [
            f"Date format mismatch: the configuration expects {settings.date_format.value} dates.",
            f"Field mapping problems: check that the columns exist in the file ({mapping}).",
        ]
        if settings.has_headers:
            guidance.append("The first line of each file is read as the header row.")
        else:
            guidance.append("Files are read without a header row; columns are mapped by position.")
        if result.stats.skipped_transactions:
            guidance.append(
                f"{result.stats.skipped_transactions} rows were dropped by ignore rules."
            )
        if result.file_errors:
            guidance.append(f"{len(result.file_errors)} files could not be read.")
        return guidance

    def commit_transactions(
        self,
        transactions: Sequence[CanonicalTransaction],
        bank_config: Optional[BankConfiguration] = None,
        include_duplicates: bool = False,
    ) -> CommitResult:
        """Write accepted review-queue rows to the ledger.

        Rows with status ``ready`` or ``warning`` are written; suspected
        duplicates only with ``include_duplicates``; ``error`` rows never.
        The account comes from the row (ID or name), else from the bank
        configuration's default account.

        Returns:
            CommitResult with the new transaction IDs and the skipped rows
        """
        result = CommitResult()
        default_account = bank_config.settings.account_id if bank_config else None

        for txn in transactions:
            if txn.status is ImportStatus.ERROR:
                result.skipped.append((txn.id, "has validation errors"))
                continue
            if txn.is_duplicate and not include_duplicates:
                result.skipped.append((txn.id, "suspected duplicate"))
                continue

            account_ref = txn.account_id or default_account
            if account_ref is None:
                result.skipped.append((txn.id, "no account"))
                continue
            try:
                account_id = self.account_service.resolve(account_ref)
                destination_id = (
                    self.account_service.resolve(txn.destination_account_id)
                    if txn.destination_account_id
                    else None
                )
                transaction_id = self.transaction_service.add_transaction(
                    account_id=account_id,
                    date=date.fromisoformat(txn.date),
                    amount=_to_money(txn.amount),
                    description=txn.description,
                    reference=txn.reference or None,
                    subcategory_id=txn.subcategory_id or None,
                    transaction_type=txn.transaction_type or None,
                    payee=txn.payee or None,
                    payer=txn.payer or None,
                    notes=txn.notes or (f"Imported from {txn.file_name}" if txn.file_name else None),
                    currency_id=txn.currency_id,
                    category_id=txn.category_id or None,
                    transaction_group=txn.transaction_group or None,
                    tags=_tags_of(txn),
                    destination_account_id=destination_id,
                    destination_amount=_optional_money(txn.destination_amount),
                )
            except DomainError as e:
                result.skipped.append((txn.id, str(e)))
                continue
            result.imported_ids.append(transaction_id)

        logger.info(
            "Committed %d transactions, skipped %d",
            len(result.imported_ids),
            len(result.skipped),
        )
        return result
