"""Account commands: create ledger accounts and show what is waiting on them."""

import click
from ledgerkit.cli.helpers import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.currency import CurrencyService
from ledgerkit.domain.errors import DomainError, NotFoundError, currency_not_found


@click.group()
def account_group():
    """Manage ledger accounts."""
    pass


def _currency_id_for(db, code: str | None) -> int | None:
    if not code:
        return None
    found = CurrencyService(db).get_by_code(code.upper())
    if found is None:
        raise NotFoundError(currency_not_found(code))
    return found.id


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank holding the account (defaults to the account name)")
@click.option("--currency", help="ISO code of the account currency, e.g. EUR")
@click.pass_context
def create_account(ctx, name: str, bank: str | None, currency: str | None):
    """Create a ledger account that imports and reconciliations can target.

    Examples:
        ledgerkit account create "Checking"
        ledgerkit account create "Girokonto" --bank "ING" --currency EUR
    """
    db = ctx.obj["db"]
    bank_name = bank or name

    try:
        account_id = AccountService(db).create_account(
            name=name, bank_name=bank_name, currency_id=_currency_id_for(db, currency)
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{name}' (ID: {account_id})")
    if bank is None:
        click.echo(f"Bank name set to '{bank_name}'")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List accounts with their currency and unreconciled transaction count."""
    db = ctx.obj["db"]
    accounts = AccountService(db).list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    codes = {c.id: c.code for c in CurrencyService(db).list_currencies()}
    open_counts: dict[int, int] = {}
    for txn in db.get_unreconciled_transactions():
        open_counts[txn.account_id] = open_counts.get(txn.account_id, 0) + 1

    click.echo(f"{'ID':>4}  {'Name':<20} {'Bank':<20} {'Cur':<4} {'Open':>5}")
    click.echo("-" * 58)
    for acc in accounts:
        code = codes.get(acc.currency_id, "-")
        click.echo(
            f"{acc.id:>4}  {acc.name:<20} {acc.bank_name:<20} {code:<4} {open_counts.get(acc.id, 0):>5}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
