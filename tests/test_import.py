"""Tests for the statement import command."""

from datetime import date
from decimal import Decimal

from ledgerkit.cli.main import cli


def _import(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "import", *args])


def test_import_shows_review_queue(cli_runner, temp_db, sample_bank_config, fixtures_dir, transaction_service):
    """Test import without --commit only shows the queue."""
    csv_file = fixtures_dir / "signed_statement.csv"

    result = _import(cli_runner, temp_db, str(csv_file), "--bank", "Test Bank")

    assert result.exit_code == 0
    assert "Review queue" in result.output
    assert "Grocery Store" in result.output
    assert "Valid for review:   3" in result.output
    assert "Nothing written" in result.output
    assert transaction_service.list_transactions() == []


def test_import_commit(cli_runner, temp_db, sample_bank_config, fixtures_dir, transaction_service):
    """Test import with --commit writes the accepted rows."""
    csv_file = fixtures_dir / "signed_statement.csv"

    result = _import(cli_runner, temp_db, str(csv_file), "--bank", "Test Bank", "--commit")

    assert result.exit_code == 0
    assert "Imported 3 transactions" in result.output
    assert len(transaction_service.list_transactions()) == 3


def test_import_duplicate_detection(
    cli_runner, temp_db, sample_account, sample_bank_config, fixtures_dir, transaction_service
):
    """Test suspected duplicates are skipped unless asked for."""
    transaction_service.add_transaction(
        account_id=sample_account.id,
        date=date(2024, 1, 16),
        amount=Decimal("2500.00"),
        description="Salary",
        reference="REF002",
    )
    csv_file = fixtures_dir / "signed_statement.csv"

    result = _import(cli_runner, temp_db, str(csv_file), "--bank", "Test Bank", "--commit")

    assert result.exit_code == 0
    assert "[duplicate?]" in result.output
    assert "Imported 2 transactions" in result.output
    assert "suspected duplicate" in result.output


def test_import_include_duplicates(
    cli_runner, temp_db, sample_account, sample_bank_config, fixtures_dir
):
    from ledgerkit.domain.transaction import TransactionService

    TransactionService(temp_db).add_transaction(
        account_id=sample_account.id,
        date=date(2024, 1, 16),
        amount=Decimal("2500.00"),
        reference="REF002",
    )
    csv_file = fixtures_dir / "signed_statement.csv"

    result = _import(
        cli_runner, temp_db, str(csv_file), "--bank", "Test Bank", "--commit", "--include-duplicates"
    )

    assert result.exit_code == 0
    assert "Imported 3 transactions" in result.output


def test_import_reports_bad_files(cli_runner, temp_db, sample_bank_config, fixtures_dir):
    """Test a malformed file is reported while the others import."""
    result = _import(
        cli_runner,
        temp_db,
        str(fixtures_dir / "malformed.csv"),
        str(fixtures_dir / "signed_statement.csv"),
        "--bank",
        "Test Bank",
    )

    assert result.exit_code == 0
    assert "File error: malformed.csv" in result.output
    assert "Valid for review:   3" in result.output


def test_import_no_valid_transactions(cli_runner, temp_db, separate_bank_config, fixtures_dir):
    """Test the diagnostic exit when nothing can be reviewed."""
    csv_file = fixtures_dir / "signed_statement.csv"

    result = _import(cli_runner, temp_db, str(csv_file), "--bank", "Debit Credit Bank")

    assert result.exit_code == 1
    assert "No valid transactions found" in result.output
    assert "MM/DD/YYYY" in result.output


def test_import_unknown_bank(cli_runner, temp_db, fixtures_dir):
    result = _import(cli_runner, temp_db, str(fixtures_dir / "signed_statement.csv"), "--bank", "Nope")

    assert result.exit_code == 1
    assert "Bank configuration 'Nope' not found" in result.output


def test_import_incomplete_configuration(cli_runner, temp_db, bank_config_service, fixtures_dir):
    bank_config_service.create_configuration(name="Half", field_mapping={"date": "Date"})

    result = _import(cli_runner, temp_db, str(fixtures_dir / "signed_statement.csv"), "--bank", "Half")

    assert result.exit_code == 1
    assert "Missing field mappings: description, amount" in result.output


def test_import_verbose_lists_rules(
    cli_runner, temp_db, sample_bank_config, rule_service, fixtures_dir
):
    from ledgerkit.domain.processing_rules import parse_condition, parse_set_action

    rule_service.create_rule(
        sample_bank_config.id,
        "Name the shop",
        "FIELD_VALUE_SET",
        conditions=[parse_condition("description contains Grocery")],
        actions=[parse_set_action("payee=Local Grocer")],
    )

    result = _import(
        cli_runner, temp_db, str(fixtures_dir / "signed_statement.csv"), "--bank", "Test Bank", "-v"
    )

    assert result.exit_code == 0
    assert "rule: Name the shop" in result.output
    assert "Payee mapped: Local Grocer" in result.output
