"""Reconciliation commands."""

import click
from ledgerkit.cli.helpers import format_amount, handle_domain_error
from ledgerkit.domain.errors import DomainError, ValidationError
from ledgerkit.domain.reconciliation import ReconciliationService, ReconciliationSummary


@click.group()
def reconcile_group():
    """Reconcile ledger transactions against bank statements."""
    pass


def _echo_summary(summary: ReconciliationSummary) -> None:
    click.echo(f"  Reference:        {summary.reference}")
    click.echo(f"  Statement total:  {format_amount(summary.bank_statement_total)}")
    click.echo(f"  Selected total:   {format_amount(summary.running_total)}")
    click.echo(f"  Difference:       {format_amount(summary.difference)}")
    click.echo(f"  Selected:         {summary.selected_count}")


@reconcile_group.command("run")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--reference", required=True, help="Reconciliation reference (e.g. statement number)")
@click.option("--total", required=True, help="Bank statement total")
@click.option("--select", "selected", type=int, multiple=True, help="Transaction ID to reconcile (repeatable)")
@click.option("--all", "show_all", is_flag=True, default=False, help="Also list reconciled transactions")
@click.option("--yes", is_flag=True, default=False, help="Complete even when the totals differ")
@click.pass_context
def run_reconciliation(
    ctx,
    account: str,
    reference: str,
    total: str,
    selected: tuple[int, ...],
    show_all: bool,
    yes: bool,
):
    """Reconcile selected transactions of an account against a statement total.

    Without --select the transactions available for selection are listed.

    Examples:
        ledgerkit reconcile run --account Checking --reference STMT-2024-01 --total -1250.40
        ledgerkit reconcile run --account Checking --reference STMT-2024-01 --total -1250.40 \\
            --select 12 --select 13 --select 17
    """
    service = ReconciliationService(ctx.obj["db"])
    session = service.new_session()

    try:
        session.start(reference, total, account)

        if not selected:
            transactions = session.available_transactions(include_reconciled=show_all)
            if not transactions:
                click.echo("No transactions to reconcile.")
                return
            click.echo(f"\nTransactions available for '{reference}':")
            click.echo("-" * 80)
            for txn in transactions:
                marker = f"[{txn.reconciliation_reference}]" if txn.is_reconciled else ""
                click.echo(
                    f"{txn.id:<6} {str(txn.date):<12} {format_amount(txn.amount)}  "
                    f"{(txn.description or '')[:40]:40s} {marker}"
                )
            click.echo("\nRun again with --select ID for each transaction to reconcile.")
            return

        for transaction_id in dict.fromkeys(selected):
            session.toggle(transaction_id)

        click.echo("\nReconciliation:")
        _echo_summary(session.summary())

        if yes:
            result = session.complete(confirm=lambda message: True)
        else:
            result = session.complete(confirm=lambda message: click.confirm(message))
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not result.committed:
        click.echo("Reconciliation cancelled; nothing was written.")
        return
    click.echo(
        f"Reconciliation '{reference}' completed: "
        f"{len(result.reconciled_ids)} transaction(s) reconciled."
    )


@reconcile_group.command("references")
@click.pass_context
def list_references(ctx):
    """List completed reconciliations."""
    service = ReconciliationService(ctx.obj["db"])
    references = service.list_references()
    if not references:
        click.echo("No reconciliations found.")
        return
    for reference in references:
        summary = service.summarize(reference)
        click.echo(
            f"{reference:<24} {summary.transaction_count:>4} transaction(s) "
            f"{format_amount(summary.total_amount)}"
        )


@reconcile_group.command("show")
@click.argument("reference")
@click.pass_context
def show_reconciliation(ctx, reference: str):
    """Show the transactions reconciled under REFERENCE."""
    service = ReconciliationService(ctx.obj["db"])
    try:
        summary = service.summarize(reference)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nReconciliation {reference}")
    click.echo("-" * 80)
    for txn in service.transactions_for(reference):
        reconciled_at = txn.reconciled_at.strftime("%Y-%m-%d %H:%M") if txn.reconciled_at else ""
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {format_amount(txn.amount)}  "
            f"{(txn.description or '')[:40]:40s} {reconciled_at}"
        )
    click.echo("-" * 80)
    click.echo(
        f"Total {format_amount(summary.total_amount)} over {summary.transaction_count} "
        f"transaction(s), accounts: {', '.join(str(a) for a in summary.account_ids)}"
    )


@reconcile_group.command("undo")
@click.argument("transaction_ids", nargs=-1, type=int)
@click.option("--reference", help="Undo every transaction of this reconciliation")
@click.pass_context
def undo_reconciliation(ctx, transaction_ids: tuple[int, ...], reference: str | None):
    """Remove transactions from their reconciliation.

    Give TRANSACTION_IDS, or --reference to undo a whole reconciliation.
    Nothing changes unless every transaction can be undone.

    Examples:
        ledgerkit reconcile undo 12 13 14
        ledgerkit reconcile undo --reference STMT-2024-01
    """
    if bool(transaction_ids) == bool(reference):
        handle_domain_error(ctx, ValidationError("Give either transaction IDs or --reference"))

    service = ReconciliationService(ctx.obj["db"])
    try:
        if reference:
            undone = service.undo(reference)
        else:
            undone = service.unreconcile_many(transaction_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for txn in undone:
        click.echo(f"Transaction {txn.id} is no longer reconciled")
    if reference:
        click.echo(f"Reconciliation '{reference}' undone ({len(undone)} transaction(s))")


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
