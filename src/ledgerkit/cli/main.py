"""Main CLI entry point."""

import click
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.utils.log_setup import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    currency,
    bank,
    rule,
    import_cmd,
    transaction,
    reconcile,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    show_default=True,
    help="Logging level (ignored with --debug)",
)
@click.pass_context
def cli(ctx, db_path: str | None, debug: bool, log_level: str):
    """Ledgerkit - bank statement import and reconciliation.

    Import statement exports from any bank through a configurable column
    mapping and processing rules, then reconcile ledger transactions
    against statement totals.
    """
    ctx.ensure_object(dict)
    setup_logging(debug=debug, log_level=log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
currency.register_commands(cli)
bank.register_commands(cli)
rule.register_commands(cli)
import_cmd.register_commands(cli)
transaction.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
