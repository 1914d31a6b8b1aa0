"""Currency commands."""

import click
from ledgerkit.cli.helpers import handle_domain_error
from ledgerkit.domain.currency import CurrencyService
from ledgerkit.domain.errors import DomainError


@click.group()
def currency_group():
    """Manage currencies."""
    pass


@currency_group.command("add")
@click.argument("code")
@click.argument("name")
@click.option("--base", is_flag=True, default=False, help="Make this the base currency")
@click.pass_context
def add_currency(ctx, code: str, name: str, base: bool):
    """Add a currency by ISO code.

    Examples:
        ledgerkit currency add EUR "Euro"
        ledgerkit currency add CHF "Swiss Franc" --base
    """
    service = CurrencyService(ctx.obj["db"])
    try:
        currency_id = service.add_currency(code=code, name=name, is_base=base)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added currency {code.upper()} (ID: {currency_id})")


@currency_group.command("list")
@click.pass_context
def list_currencies(ctx):
    """List currencies; the base currency is marked with *."""
    service = CurrencyService(ctx.obj["db"])
    service.ensure_base_currency()
    for cur in service.list_currencies():
        marker = "*" if cur.is_base else " "
        click.echo(f"{marker} {cur.code}  {cur.name} (ID: {cur.id})")


def register_commands(cli):
    """Register currency commands with main CLI."""
    cli.add_command(currency_group, name="currency")
