"""Shared helpers for CLI commands: error exits and name lookups."""

from decimal import Decimal

import click

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.entities import BankConfiguration
from ledgerkit.domain.errors import DomainError, NotFoundError, bank_configuration_not_found


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return account_service.resolve(account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def bank_or_exit(ctx: click.Context, service: BankConfigService, name: str) -> BankConfiguration:
    """Look up a bank configuration by name, or exit with a CLI error."""
    config = service.get_configuration_by_name(name)
    if config is None:
        handle_domain_error(ctx, NotFoundError(bank_configuration_not_found(name)))
    return config


def format_amount(amount: Decimal | float) -> str:
    """Right-aligned signed amount for table output."""
    return f"{float(amount):>12,.2f}"
