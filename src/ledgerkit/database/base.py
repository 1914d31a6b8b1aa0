"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    BankConfiguration,
    BankSettings,
    Currency,
    MappingKey,
    ProcessingRule,
    RuleAction,
    RuleCondition,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerkit.

    This is the transaction repository the import pipeline and the
    reconciliation session work against.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, name: str, bank_name: str, currency_id: Optional[int] = None) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        pass

    # Currency operations
    @abstractmethod
    def create_currency(self, code: str, name: str, is_base: bool = False) -> int:
        """Create a currency. Returns currency ID."""
        pass

    @abstractmethod
    def get_currency(self, currency_id: int) -> Optional[Currency]:
        """Get currency by ID."""
        pass

    @abstractmethod
    def get_currency_by_code(self, code: str) -> Optional[Currency]:
        """Get currency by ISO code."""
        pass

    @abstractmethod
    def list_currencies(self) -> list[Currency]:
        """List all currencies."""
        pass

    # Bank configuration operations
    @abstractmethod
    def create_bank_configuration(
        self,
        name: str,
        type: str,
        field_mapping: dict[MappingKey, str],
        settings: BankSettings,
    ) -> int:
        """Create a bank configuration. Returns configuration ID."""
        pass

    @abstractmethod
    def get_bank_configuration(self, config_id: int) -> Optional[BankConfiguration]:
        """Get bank configuration by ID."""
        pass

    @abstractmethod
    def get_bank_configuration_by_name(self, name: str) -> Optional[BankConfiguration]:
        """Get bank configuration by name."""
        pass

    @abstractmethod
    def list_bank_configurations(self) -> list[BankConfiguration]:
        """List all bank configurations."""
        pass

    @abstractmethod
    def update_bank_configuration(
        self,
        config_id: int,
        name: Optional[str] = None,
        field_mapping: Optional[dict[MappingKey, str]] = None,
        settings: Optional[BankSettings] = None,
    ) -> None:
        """Update the provided fields of a bank configuration."""
        pass

    @abstractmethod
    def delete_bank_configuration(self, config_id: int) -> None:
        """Delete a bank configuration and its processing rules."""
        pass

    # Processing rule operations
    @abstractmethod
    def create_processing_rule(
        self,
        bank_config_id: int,
        name: str,
        type: str,
        conditions: list[RuleCondition],
        condition_logic: str,
        actions: list[RuleAction],
        rule_order: int = 0,
        active: bool = True,
    ) -> int:
        """Create a processing rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_processing_rule(self, rule_id: int) -> Optional[ProcessingRule]:
        """Get processing rule by ID."""
        pass

    @abstractmethod
    def list_processing_rules(self, bank_config_id: int) -> list[ProcessingRule]:
        """List the rules of a bank configuration in evaluation order."""
        pass

    @abstractmethod
    def get_active_processing_rules(self, bank_config_id: int) -> list[ProcessingRule]:
        """List the active rules of a bank configuration in evaluation order."""
        pass

    @abstractmethod
    def update_processing_rule(
        self,
        rule_id: int,
        name: Optional[str] = None,
        type: Optional[str] = None,
        conditions: Optional[list[RuleCondition]] = None,
        condition_logic: Optional[str] = None,
        actions: Optional[list[RuleAction]] = None,
    ) -> None:
        """Update the provided fields of a rule."""
        pass

    @abstractmethod
    def update_processing_rule_active(self, rule_id: int, active: bool) -> None:
        """Activate or deactivate a rule."""
        pass

    @abstractmethod
    def update_processing_rule_order(self, rule_id: int, rule_order: int) -> None:
        """Change the evaluation order of a rule."""
        pass

    @abstractmethod
    def delete_processing_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
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
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(self, account_id: Optional[int] = None) -> list[Transaction]:
        """List transactions, optionally filtered by account."""
        pass

    @abstractmethod
    def get_transactions_by_account(self, account_id: int) -> list[Transaction]:
        """List all transactions of an account, reconciled or not."""
        pass

    @abstractmethod
    def get_unreconciled_transactions(self, account_id: Optional[int] = None) -> list[Transaction]:
        """List transactions without a reconciliation reference."""
        pass

    @abstractmethod
    def reconcile_transaction(self, transaction_id: int, reference: str) -> Transaction:
        """Tag a transaction with a reconciliation reference."""
        pass

    @abstractmethod
    def unreconcile_transaction(self, transaction_id: int) -> Transaction:
        """Clear the reconciliation reference of a transaction."""
        pass

    @abstractmethod
    def get_reconciled_transactions(self, reference: str) -> list[Transaction]:
        """List the transactions reconciled under a reference."""
        pass

    @abstractmethod
    def list_reconciliation_references(self) -> list[str]:
        """List distinct reconciliation references, sorted."""
        pass

    @abstractmethod
    def get_reconciliation_summary(self, reference: str) -> dict[str, Any]:
        """Summarize a reconciliation reference.

        Returns a dictionary with transaction_count, total_amount and
        account_ids. This aggregation result is kept as dict for convenience.
        """
        pass
