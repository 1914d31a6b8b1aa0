"""Ledger transaction commands."""

import click
from datetime import date

from ledgerkit.cli.helpers import handle_domain_error, resolve_account_or_exit
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_statement_date


@click.group()
def transaction_group():
    """Manage ledger transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", "date_str", required=True, help="Booking date, ISO or anything dateutil reads")
@click.option("--amount", required=True, help="Signed amount, negative for money out")
@click.option("--description")
@click.option("--reference", help="Bank reference, used for duplicate checks")
@click.option("--category", "category_id", help="Category id")
@click.option("--subcategory", "subcategory_id", help="Subcategory id")
@click.option("--type", "transaction_type", help="income, expenses, transfer, ...")
@click.option("--group", "transaction_group", help="Transaction group")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--payee")
@click.option("--notes")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date_str: str,
    amount: str,
    description: str | None,
    reference: str | None,
    category_id: str | None,
    subcategory_id: str | None,
    transaction_type: str | None,
    transaction_group: str | None,
    tags: tuple[str, ...],
    payee: str | None,
    notes: str | None,
):
    """Record a transaction by hand, outside any statement import.

    Examples:
        ledgerkit transaction add --account Checking --date 2024-01-15 --amount -50.00 \\
            --description "Grocery store"
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    iso_date = parse_statement_date(date_str, None)
    if iso_date is None:
        click.echo(f"Error: Invalid date '{date_str}'", err=True)
        ctx.exit(1)
    txn_date = date.fromisoformat(iso_date)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        txn_id = TransactionService(db).add_transaction(
            account_id=account_id,
            date=txn_date,
            amount=txn_amount,
            description=description,
            reference=reference,
            category_id=category_id,
            subcategory_id=subcategory_id,
            transaction_type=transaction_type,
            transaction_group=transaction_group,
            tags=tags,
            payee=payee,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added transaction {txn_id}")


@transaction_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--unreconciled", is_flag=True, help="Show only transactions not yet reconciled")
@click.pass_context
def list_transactions(ctx, account: str | None, unreconciled: bool):
    """List ledger transactions, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    if unreconciled:
        transactions = service.list_unreconciled(account_id=account_id)
    else:
        transactions = service.list_transactions(account_id=account_id)

    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12}  {'Account':<16} {'Reconciled':<14} {'Description':<30}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        account_name = accounts.get(txn.account_id, "Unknown")
        reconciled = txn.reconciliation_reference or ""
        description = (txn.description or "")[:30]
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {txn.amount:>12,.2f}  {account_name[:16]:<16} "
            f"{reconciled[:14]:<14} {description:<30}"
        )

    total = sum(txn.amount for txn in transactions)
    click.echo("-" * 100)
    click.echo(f"{'TOTAL':<6} {'':<12} {total:>12,.2f}  Count: {len(transactions)}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
