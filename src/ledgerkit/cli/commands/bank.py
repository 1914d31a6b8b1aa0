"""Bank configuration commands."""

import click
from ledgerkit.cli.helpers import bank_or_exit, handle_domain_error, resolve_account_or_exit
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.entities import AmountHandling, BankSettings, DateFormat, MappingKey
from ledgerkit.domain.errors import DomainError


@click.group()
def bank_group():
    """Manage bank configurations (column mapping and parsing settings)."""
    pass


@bank_group.command("create")
@click.argument("name")
@click.option("--type", "config_type", default="bank", show_default=True, help="Kind of source")
@click.option(
    "--date-format",
    type=click.Choice([f.value for f in DateFormat]),
    default=DateFormat.YYYY_MM_DD.value,
    show_default=True,
    help="Date layout used in the statement",
)
@click.option(
    "--amount-handling",
    type=click.Choice([a.value for a in AmountHandling]),
    default=AmountHandling.SIGNED.value,
    show_default=True,
    help="'signed' for one amount column, 'separate' for debit and credit columns",
)
@click.option("--currency", help="Currency code of the statements (defaults to base currency)")
@click.option("--account", help="Default account name or ID for imported rows")
@click.option("--delimiter", default=",", show_default=True, help="CSV delimiter")
@click.option("--encoding", default="utf-8", show_default=True, help="File encoding")
@click.option("--no-headers", is_flag=True, default=False, help="Files have no header row")
@click.pass_context
def create_bank(
    ctx,
    name: str,
    config_type: str,
    date_format: str,
    amount_handling: str,
    currency: str | None,
    account: str | None,
    delimiter: str,
    encoding: str,
    no_headers: bool,
):
    """Create a bank configuration.

    Examples:
        ledgerkit bank create "Chase" --date-format MM/DD/YYYY --account Checking
        ledgerkit bank create "ING" --amount-handling separate --delimiter ";"
    """
    db = ctx.obj["db"]
    service = BankConfigService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    settings = BankSettings(
        has_headers=not no_headers,
        delimiter=delimiter,
        encoding=encoding,
        date_format=DateFormat.parse(date_format),
        amount_handling=AmountHandling.parse(amount_handling),
        currency=currency.upper() if currency else None,
        account_id=account_id,
    )
    try:
        config_id = service.create_configuration(name=name, type=config_type, settings=settings)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created bank configuration '{name}' (ID: {config_id})")
    click.echo("Use 'bank map' to map statement columns.")


@bank_group.command("map")
@click.argument("name")
@click.argument("field")
@click.argument("column")
@click.pass_context
def map_column(ctx, name: str, field: str, column: str):
    """Map a canonical FIELD to a statement COLUMN.

    Without a header row, COLUMN is the column position ("0", "1", ...).

    Examples:
        ledgerkit bank map "Chase" date "Posting Date"
        ledgerkit bank map "Chase" subcategoryId "Category"
    """
    service = BankConfigService(ctx.obj["db"])
    config = bank_or_exit(ctx, service, name)
    try:
        service.set_mapping(config.id, field, column)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Mapped '{MappingKey.parse(field).value}' to column '{column}'")


@bank_group.command("unmap")
@click.argument("name")
@click.argument("field")
@click.pass_context
def unmap_column(ctx, name: str, field: str):
    """Remove the mapping of a canonical FIELD."""
    service = BankConfigService(ctx.obj["db"])
    config = bank_or_exit(ctx, service, name)
    try:
        service.remove_mapping(config.id, field)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed mapping of '{field}'")


@bank_group.command("show")
@click.argument("name")
@click.pass_context
def show_bank(ctx, name: str):
    """Show the settings and mapping of a bank configuration."""
    service = BankConfigService(ctx.obj["db"])
    config = bank_or_exit(ctx, service, name)
    settings = config.settings
    is_valid, missing = service.validate_configuration(config)

    click.echo(f"\n{config.name} (ID: {config.id}, type: {config.type})")
    click.echo("-" * 60)
    click.echo(f"  Date format:     {settings.date_format.value}")
    click.echo(f"  Amounts:         {settings.amount_handling.value}")
    click.echo(f"  Headers:         {'yes' if settings.has_headers else 'no'}")
    click.echo(f"  Delimiter:       {settings.delimiter!r}")
    click.echo(f"  Encoding:        {settings.encoding}")
    click.echo(f"  Currency:        {settings.currency or '(base currency)'}")
    click.echo(f"  Default account: {settings.account_id if settings.account_id else '(none)'}")
    click.echo("\n  Field mapping:")
    if not config.field_mapping:
        click.echo("    (none)")
    for key, column in config.field_mapping.items():
        click.echo(f"    {key.value:22s} <- {column}")
    if not is_valid:
        click.echo(f"\n  Missing required mappings: {', '.join(missing)}")


@bank_group.command("list")
@click.pass_context
def list_banks(ctx):
    """List bank configurations."""
    service = BankConfigService(ctx.obj["db"])
    configs = service.list_configurations()
    if not configs:
        click.echo("No bank configurations found.")
        return

    click.echo("\nBank configurations:")
    click.echo("-" * 60)
    for config in configs:
        is_valid, _ = service.validate_configuration(config)
        status = "✓" if is_valid else "✗"
        click.echo(
            f"{status} {config.name} (ID: {config.id}, {config.settings.date_format.value}, "
            f"{config.settings.amount_handling.value})"
        )


@bank_group.command("delete")
@click.argument("name")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation")
@click.pass_context
def delete_bank(ctx, name: str, yes: bool):
    """Delete a bank configuration and its processing rules."""
    service = BankConfigService(ctx.obj["db"])
    config = bank_or_exit(ctx, service, name)
    if not yes and not click.confirm(
        f"Delete bank configuration '{config.name}' and its processing rules?"
    ):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_configuration(config.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted bank configuration '{config.name}'")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
