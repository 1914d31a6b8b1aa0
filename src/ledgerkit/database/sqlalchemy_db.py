"""Generic SQLAlchemy database implementation."""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from ledgerkit.database.base import Database
from ledgerkit.database.models import (
    Account,
    BankConfiguration,
    Currency,
    ProcessingRule,
    Transaction,
    create_session_factory,
)
from ledgerkit.database.mappers import (
    account_to_domain,
    action_to_record,
    bank_configuration_to_domain,
    condition_to_record,
    currency_to_domain,
    field_mapping_to_record,
    processing_rule_to_domain,
    transaction_to_domain,
)
from ledgerkit.domain.entities import (
    Account as DomainAccount,
    BankConfiguration as DomainBankConfiguration,
    BankSettings,
    Currency as DomainCurrency,
    MappingKey,
    ProcessingRule as DomainProcessingRule,
    RuleAction,
    RuleCondition,
    Transaction as DomainTransaction,
)
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    bank_configuration_not_found,
    processing_rule_not_found,
    transaction_already_reconciled,
    transaction_not_found,
)

logger = logging.getLogger(__name__)


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Account operations
    def create_account(self, name: str, bank_name: str, currency_id: Optional[int] = None) -> int:
        """Create a new account. Returns account ID."""
        session = self._get_session()
        account = Account(name=name, bank_name=bank_name, currency_id=currency_id)
        session.add(account)
        session.commit()
        return account.id

    def get_account(self, account_id: int) -> Optional[DomainAccount]:
        """Get account by ID."""
        session = self._get_session()
        account = session.query(Account).filter(Account.id == account_id).first()
        if account is None:
            return None
        return account_to_domain(account)

    def list_accounts(self) -> list[DomainAccount]:
        """List all accounts."""
        session = self._get_session()
        accounts = session.query(Account).order_by(Account.name).all()
        return [account_to_domain(acc) for acc in accounts]

    # Currency operations
    def create_currency(self, code: str, name: str, is_base: bool = False) -> int:
        """Create a currency. Returns currency ID.

        Flagging a currency as base clears the flag on every other currency.
        """
        session = self._get_session()
        if is_base:
            session.query(Currency).update({Currency.is_base: False})
        currency = Currency(code=code.upper(), name=name, is_base=is_base)
        session.add(currency)
        session.commit()
        return currency.id

    def get_currency(self, currency_id: int) -> Optional[DomainCurrency]:
        """Get currency by ID."""
        session = self._get_session()
        currency = session.query(Currency).filter(Currency.id == currency_id).first()
        if currency is None:
            return None
        return currency_to_domain(currency)

    def get_currency_by_code(self, code: str) -> Optional[DomainCurrency]:
        """Get currency by ISO code."""
        session = self._get_session()
        currency = session.query(Currency).filter(Currency.code == code.upper()).first()
        if currency is None:
            return None
        return currency_to_domain(currency)

    def list_currencies(self) -> list[DomainCurrency]:
        """List all currencies."""
        session = self._get_session()
        currencies = session.query(Currency).order_by(Currency.code).all()
        return [currency_to_domain(c) for c in currencies]

    # Bank configuration operations
    def create_bank_configuration(
        self,
        name: str,
        type: str,
        field_mapping: dict[MappingKey, str],
        settings: BankSettings,
    ) -> int:
        """Create a bank configuration. Returns configuration ID."""
        session = self._get_session()
        config = BankConfiguration(name=name, type=type, field_mapping=field_mapping_to_record(field_mapping))
        self._apply_settings(config, settings)
        session.add(config)
        session.commit()
        return config.id

    @staticmethod
    def _apply_settings(config: BankConfiguration, settings: BankSettings) -> None:
        config.has_headers = settings.has_headers
        config.delimiter = settings.delimiter
        config.encoding = settings.encoding
        config.date_format = settings.date_format.value
        config.amount_handling = settings.amount_handling.value
        config.currency = settings.currency
        config.account_id = settings.account_id

    def _require_bank_configuration(self, config_id: int) -> BankConfiguration:
        session = self._get_session()
        config = session.query(BankConfiguration).filter(BankConfiguration.id == config_id).first()
        if config is None:
            raise NotFoundError(bank_configuration_not_found(config_id))
        return config

    def get_bank_configuration(self, config_id: int) -> Optional[DomainBankConfiguration]:
        """Get bank configuration by ID."""
        session = self._get_session()
        config = session.query(BankConfiguration).filter(BankConfiguration.id == config_id).first()
        if config is None:
            return None
        return bank_configuration_to_domain(config)

    def get_bank_configuration_by_name(self, name: str) -> Optional[DomainBankConfiguration]:
        """Get bank configuration by name."""
        session = self._get_session()
        config = session.query(BankConfiguration).filter(BankConfiguration.name == name).first()
        if config is None:
            return None
        return bank_configuration_to_domain(config)

    def list_bank_configurations(self) -> list[DomainBankConfiguration]:
        """List all bank configurations."""
        session = self._get_session()
        configs = session.query(BankConfiguration).order_by(BankConfiguration.name).all()
        return [bank_configuration_to_domain(c) for c in configs]

    def update_bank_configuration(
        self,
        config_id: int,
        name: Optional[str] = None,
        field_mapping: Optional[dict[MappingKey, str]] = None,
        settings: Optional[BankSettings] = None,
    ) -> None:
        """Update the provided fields of a bank configuration."""
        session = self._get_session()
        config = self._require_bank_configuration(config_id)

        if name is not None:
            existing = (
                session.query(BankConfiguration)
                .filter(BankConfiguration.name == name, BankConfiguration.id != config_id)
                .first()
            )
            if existing is not None:
                raise ConflictError(f"Bank configuration with name '{name}' already exists")
            config.name = name
        if field_mapping is not None:
            # Reassign so the JSON column is flagged dirty
            config.field_mapping = field_mapping_to_record(field_mapping)
        if settings is not None:
            self._apply_settings(config, settings)

        session.commit()

    def delete_bank_configuration(self, config_id: int) -> None:
        """Delete a bank configuration and its processing rules."""
        session = self._get_session()
        config = self._require_bank_configuration(config_id)
        session.delete(config)
        session.commit()

    # Processing rule operations
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
        session = self._get_session()
        self._require_bank_configuration(bank_config_id)
        rule = ProcessingRule(
            bank_config_id=bank_config_id,
            name=name,
            type=type,
            active=active,
            rule_order=rule_order,
            conditions=[condition_to_record(c) for c in conditions],
            condition_logic=condition_logic,
            actions=[action_to_record(a) for a in actions],
        )
        session.add(rule)
        session.commit()
        return rule.id

    def _require_processing_rule(self, rule_id: int) -> ProcessingRule:
        session = self._get_session()
        rule = session.query(ProcessingRule).filter(ProcessingRule.id == rule_id).first()
        if rule is None:
            raise NotFoundError(processing_rule_not_found(rule_id))
        return rule

    def get_processing_rule(self, rule_id: int) -> Optional[DomainProcessingRule]:
        """Get processing rule by ID."""
        session = self._get_session()
        rule = session.query(ProcessingRule).filter(ProcessingRule.id == rule_id).first()
        if rule is None:
            return None
        return processing_rule_to_domain(rule)

    def list_processing_rules(self, bank_config_id: int) -> list[DomainProcessingRule]:
        """List the rules of a bank configuration in evaluation order."""
        session = self._get_session()
        rules = (
            session.query(ProcessingRule)
            .filter(ProcessingRule.bank_config_id == bank_config_id)
            .order_by(ProcessingRule.rule_order, ProcessingRule.id)
            .all()
        )
        return [processing_rule_to_domain(r) for r in rules]

    def get_active_processing_rules(self, bank_config_id: int) -> list[DomainProcessingRule]:
        """List the active rules of a bank configuration in evaluation order."""
        return [r for r in self.list_processing_rules(bank_config_id) if r.active]

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
        session = self._get_session()
        rule = self._require_processing_rule(rule_id)

        if name is not None:
            rule.name = name
        if type is not None:
            rule.type = type
        if conditions is not None:
            rule.conditions = [condition_to_record(c) for c in conditions]
        if condition_logic is not None:
            rule.condition_logic = condition_logic
        if actions is not None:
            rule.actions = [action_to_record(a) for a in actions]

        session.commit()

    def update_processing_rule_active(self, rule_id: int, active: bool) -> None:
        """Activate or deactivate a rule."""
        session = self._get_session()
        rule = self._require_processing_rule(rule_id)
        rule.active = active
        session.commit()

    def update_processing_rule_order(self, rule_id: int, rule_order: int) -> None:
        """Change the evaluation order of a rule."""
        session = self._get_session()
        rule = self._require_processing_rule(rule_id)
        rule.rule_order = rule_order
        session.commit()

    def delete_processing_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        session = self._get_session()
        rule = self._require_processing_rule(rule_id)
        session.delete(rule)
        session.commit()

    # Transaction operations
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
        session = self._get_session()
        transaction = Transaction(
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
            tags=list(tags),
            destination_account_id=destination_account_id,
            destination_amount=destination_amount,
        )
        session.add(transaction)
        session.commit()
        return transaction.id

    def _require_transaction(self, transaction_id: int) -> Transaction:
        session = self._get_session()
        txn = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def get_transaction(self, transaction_id: int) -> Optional[DomainTransaction]:
        """Get transaction by ID."""
        session = self._get_session()
        txn = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if txn is None:
            return None
        return transaction_to_domain(txn)

    def list_transactions(self, account_id: Optional[int] = None) -> list[DomainTransaction]:
        """List transactions, optionally filtered by account."""
        session = self._get_session()
        query = session.query(Transaction)
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        transactions = query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()
        return [transaction_to_domain(txn) for txn in transactions]

    def get_transactions_by_account(self, account_id: int) -> list[DomainTransaction]:
        """List all transactions of an account, reconciled or not."""
        return self.list_transactions(account_id=account_id)

    def get_unreconciled_transactions(self, account_id: Optional[int] = None) -> list[DomainTransaction]:
        """List transactions without a reconciliation reference."""
        session = self._get_session()
        query = session.query(Transaction).filter(Transaction.reconciliation_reference.is_(None))
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        transactions = query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()
        return [transaction_to_domain(txn) for txn in transactions]

    def reconcile_transaction(self, transaction_id: int, reference: str) -> DomainTransaction:
        """Tag a transaction with a reconciliation reference."""
        session = self._get_session()
        txn = self._require_transaction(transaction_id)
        if txn.reconciliation_reference is not None:
            raise ConflictError(
                transaction_already_reconciled(transaction_id, txn.reconciliation_reference)
            )
        txn.reconciliation_reference = reference
        txn.reconciled_at = datetime.now(UTC)
        session.commit()
        logger.debug("Reconciled transaction %s under %s", transaction_id, reference)
        return transaction_to_domain(txn)

    def unreconcile_transaction(self, transaction_id: int) -> DomainTransaction:
        """Clear the reconciliation reference of a transaction."""
        session = self._get_session()
        txn = self._require_transaction(transaction_id)
        txn.reconciliation_reference = None
        txn.reconciled_at = None
        session.commit()
        logger.debug("Cleared reconciliation of transaction %s", transaction_id)
        return transaction_to_domain(txn)

    def get_reconciled_transactions(self, reference: str) -> list[DomainTransaction]:
        """List the transactions reconciled under a reference."""
        session = self._get_session()
        transactions = (
            session.query(Transaction)
            .filter(Transaction.reconciliation_reference == reference)
            .order_by(Transaction.date, Transaction.id)
            .all()
        )
        return [transaction_to_domain(txn) for txn in transactions]

    def list_reconciliation_references(self) -> list[str]:
        """List distinct reconciliation references, sorted."""
        session = self._get_session()
        rows = (
            session.query(Transaction.reconciliation_reference)
            .filter(Transaction.reconciliation_reference.isnot(None))
            .distinct()
            .order_by(Transaction.reconciliation_reference)
            .all()
        )
        return [row[0] for row in rows]

    def get_reconciliation_summary(self, reference: str) -> dict[str, Any]:
        """Summarize a reconciliation reference."""
        transactions = self.get_reconciled_transactions(reference)
        return {
            "reference": reference,
            "transaction_count": len(transactions),
            "total_amount": sum((t.amount for t in transactions), Decimal("0")),
            "account_ids": sorted({t.account_id for t in transactions}),
        }
