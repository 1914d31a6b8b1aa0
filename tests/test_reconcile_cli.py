"""Tests for reconciliation commands."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.cli.main import cli


@pytest.fixture
def ledger_ids(transaction_service, sample_account):
    """Two unreconciled transactions on the sample account."""
    return [
        transaction_service.add_transaction(
            account_id=sample_account.id,
            date=date(2024, 1, 15),
            amount=Decimal("-50.00"),
            description="Grocery Store",
        ),
        transaction_service.add_transaction(
            account_id=sample_account.id,
            date=date(2024, 1, 16),
            amount=Decimal("-4.50"),
            description="Coffee Shop",
        ),
    ]


def _run(cli_runner, temp_db, *args, input=None):
    return cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "reconcile",
            "run",
            "--account",
            "Test Account",
            "--reference",
            "STMT-1",
            *args,
        ],
        input=input,
    )


def test_run_without_selection_lists_transactions(cli_runner, temp_db, ledger_ids):
    result = _run(cli_runner, temp_db, "--total", "-54.50")

    assert result.exit_code == 0
    assert "Grocery Store" in result.output
    assert "Coffee Shop" in result.output
    assert "--select" in result.output


def test_run_balanced(cli_runner, temp_db, ledger_ids, transaction_service):
    result = _run(
        cli_runner, temp_db, "--total", "-54.50",
        "--select", str(ledger_ids[0]), "--select", str(ledger_ids[1]),
    )

    assert result.exit_code == 0
    assert "Reconciliation 'STMT-1' completed: 2 transaction(s) reconciled." in result.output
    assert transaction_service.list_unreconciled() == []


def test_run_unbalanced_declined(cli_runner, temp_db, ledger_ids, transaction_service):
    """Declining the confirmation writes nothing."""
    result = _run(
        cli_runner, temp_db, "--total", "-4.50", "--select", str(ledger_ids[0]), input="n\n"
    )

    assert result.exit_code == 0
    assert "differs from the statement total" in result.output
    assert "Reconciliation cancelled; nothing was written." in result.output
    assert len(transaction_service.list_unreconciled()) == 2


def test_run_unbalanced_with_yes(cli_runner, temp_db, ledger_ids):
    result = _run(
        cli_runner, temp_db, "--total", "-4.50", "--select", str(ledger_ids[0]), "--yes"
    )

    assert result.exit_code == 0
    assert "1 transaction(s) reconciled" in result.output


def test_run_rejects_reconciled_transaction(cli_runner, temp_db, ledger_ids):
    _run(cli_runner, temp_db, "--total", "-50", "--select", str(ledger_ids[0]))

    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "reconcile", "run",
            "--account", "Test Account", "--reference", "STMT-2", "--total", "-50",
            "--select", str(ledger_ids[0]),
        ],
    )

    assert result.exit_code == 1
    assert "already reconciled under 'STMT-1'" in result.output


def test_run_invalid_total(cli_runner, temp_db, ledger_ids):
    result = _run(cli_runner, temp_db, "--total", "lots")

    assert result.exit_code == 1
    assert "must be a number" in result.output


def test_references_show_and_undo(cli_runner, temp_db, ledger_ids):
    _run(
        cli_runner, temp_db, "--total", "-54.50",
        "--select", str(ledger_ids[0]), "--select", str(ledger_ids[1]),
    )

    references = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reconcile", "references"])
    assert references.exit_code == 0
    assert "STMT-1" in references.output
    assert "2 transaction(s)" in references.output

    show = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reconcile", "show", "STMT-1"])
    assert show.exit_code == 0
    assert "Coffee Shop" in show.output
    assert "-54.50" in show.output

    undo = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "reconcile", "undo", str(ledger_ids[1])]
    )
    assert undo.exit_code == 0
    assert f"Transaction {ledger_ids[1]} is no longer reconciled" in undo.output


def test_show_unknown_reference(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reconcile", "show", "NOPE"])

    assert result.exit_code == 1
    assert "Reconciliation 'NOPE' not found" in result.output


def test_undo_several_and_by_reference(cli_runner, temp_db, ledger_ids):
    def invoke(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reconcile", "undo", *args])

    select = ["--select", str(ledger_ids[0]), "--select", str(ledger_ids[1])]
    _run(cli_runner, temp_db, "--total", "-54.50", *select)

    undo = invoke(str(ledger_ids[0]), str(ledger_ids[1]))
    assert undo.exit_code == 0
    for txn_id in ledger_ids:
        assert f"Transaction {txn_id} is no longer reconciled" in undo.output

    _run(cli_runner, temp_db, "--total", "-54.50", *select)
    undo = invoke("--reference", "STMT-1")
    assert undo.exit_code == 0
    assert "Reconciliation 'STMT-1' undone (2 transaction(s))" in undo.output


def test_undo_needs_ids_or_reference(cli_runner, temp_db, ledger_ids):
    def invoke(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reconcile", "undo", *args])

    assert invoke().exit_code == 1
    both = invoke(str(ledger_ids[0]), "--reference", "STMT-1")
    assert both.exit_code == 1
    assert "either transaction IDs or --reference" in both.output

    unknown = invoke("--reference", "NOPE")
    assert unknown.exit_code == 1
    assert "Reconciliation 'NOPE' not found" in unknown.output
