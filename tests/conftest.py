"""Shared pytest fixtures for ledgerkit tests."""

import logging
import tempfile
import os
from datetime import datetime
from pathlib import Path
import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.currency import CurrencyService
from ledgerkit.domain.entities import (
    AmountHandling,
    BankSettings,
    CanonicalTransaction,
    ConditionLogic,
    DateFormat,
    ProcessingRule,
    RuleType,
)
from ledgerkit.domain.processing_rules import ProcessingRuleService
from ledgerkit.domain.transaction import TransactionService


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the root logger changes made by CLI invocations."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def currency_service(temp_db):
    """Create a CurrencyService with a temporary database."""
    return CurrencyService(temp_db)


@pytest.fixture
def bank_config_service(temp_db):
    """Create a BankConfigService with a temporary database."""
    return BankConfigService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    """Create a ProcessingRuleService with a temporary database."""
    return ProcessingRuleService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(name="Test Account", bank_name="Test Bank")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_bank_config(bank_config_service, sample_account):
    """Bank configuration with a signed amount column and ISO dates."""
    config_id = bank_config_service.create_configuration(
        name="Test Bank",
        field_mapping={
            "date": "Date",
            "description": "Description",
            "amount": "Amount",
            "subcategoryId": "Category",
            "reference": "Reference",
        },
        settings=BankSettings(account_id=sample_account.id),
    )
    return bank_config_service.get_configuration(config_id)


@pytest.fixture
def separate_bank_config(bank_config_service, sample_account):
    """Bank configuration with debit/credit columns and US dates."""
    config_id = bank_config_service.create_configuration(
        name="Debit Credit Bank",
        field_mapping={
            "date": "Posted",
            "description": "Details",
            "debit": "Debit",
            "credit": "Credit",
            "subcategoryId": "Type",
        },
        settings=BankSettings(
            date_format=DateFormat.MM_DD_YYYY,
            amount_handling=AmountHandling.SEPARATE,
            account_id=sample_account.id,
        ),
    )
    return bank_config_service.get_configuration(config_id)


@pytest.fixture
def make_transaction():
    """Factory for canonical transactions with sensible defaults."""

    def _make(**overrides):
        values = {
            "id": "import_1700000000000_0_0",
            "date": "2024-01-15",
            "description": "Grocery Store",
            "amount": -50.0,
            "account_id": "1",
            "subcategory_id": "groceries",
        }
        values.update(overrides)
        return CanonicalTransaction(**values)

    return _make


@pytest.fixture
def make_rule():
    """Factory for in-memory processing rules."""
    counter = {"id": 0}

    def _make(
        name="Rule",
        type=RuleType.FIELD_VALUE_SET,
        conditions=(),
        actions=(),
        condition_logic=ConditionLogic.ANY,
        rule_order=0,
        active=True,
    ):
        counter["id"] += 1
        now = datetime(2024, 1, 1)
        return ProcessingRule(
            id=counter["id"],
            bank_config_id=1,
            name=name,
            type=type,
            active=active,
            rule_order=rule_order,
            conditions=tuple(conditions),
            condition_logic=condition_logic,
            actions=tuple(actions),
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
