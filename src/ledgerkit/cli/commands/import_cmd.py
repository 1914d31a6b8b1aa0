"""Statement import command."""

import click
from ledgerkit.cli.helpers import bank_or_exit, handle_domain_error
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.csv_import import CSVImportService, ImportOutcome
from ledgerkit.domain.entities import ImportStatus
from ledgerkit.domain.errors import DomainError

_STATUS_MARKS = {
    ImportStatus.READY: "✓",
    ImportStatus.WARNING: "!",
    ImportStatus.ERROR: "✗",
}


def _echo_review_queue(transactions, verbose: bool) -> None:
    click.echo("\nReview queue:")
    click.echo("-" * 80)
    for txn in transactions:
        mark = _STATUS_MARKS[txn.status]
        duplicate = " [duplicate?]" if txn.is_duplicate else ""
        click.echo(
            f"{mark} {txn.date or '----------'} {txn.amount:>12,.2f}  "
            f"{txn.description[:40]:40s} {txn.file_name}:{txn.row_index + 1}{duplicate}"
        )
        for error in txn.validation.errors:
            click.echo(f"      error: {error}")
        for warning in txn.validation.warnings:
            click.echo(f"      warning: {warning}")
        if verbose:
            for note in txn.validation.info:
                click.echo(f"      {note}")
            for applied in txn.rules_applied:
                click.echo(f"      rule: {applied.rule_name}")


@click.command("import")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--bank", required=True, help="Bank configuration name")
@click.option("--commit", is_flag=True, default=False, help="Write accepted rows to the ledger")
@click.option(
    "--include-duplicates",
    is_flag=True,
    default=False,
    help="With --commit, also write rows flagged as possible duplicates",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show mapped fields and rules")
@click.pass_context
def import_files(ctx, files: tuple[str, ...], bank: str, commit: bool, include_duplicates: bool, verbose: bool):
    """Import statement FILES (CSV or XLSX) with a bank configuration.

    Without --commit only the review queue is shown.

    Examples:
        ledgerkit import january.csv february.csv --bank Chase
        ledgerkit import statement.xlsx --bank ING --commit
    """
    db = ctx.obj["db"]
    config = bank_or_exit(ctx, BankConfigService(db), bank)
    service = CSVImportService(db)

    try:
        result = service.process_files(list(files), config)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for error in result.file_errors:
        click.echo(f"File error: {error}", err=True)
    for error in result.row_errors:
        click.echo(f"Row error: {error}", err=True)

    if result.outcome is ImportOutcome.NO_VALID_TRANSACTIONS:
        click.echo("No valid transactions found. Likely causes:")
        for hint in result.guidance:
            click.echo(f"  - {hint}")
        ctx.exit(1)

    _echo_review_queue(result.transactions, verbose)

    stats = result.stats
    click.echo("\nImport summary:")
    click.echo(f"  Rows read:          {stats.total_rows}")
    click.echo(f"  Parsed:             {stats.total_transactions}")
    click.echo(f"  Valid for review:   {stats.valid_transactions}")
    click.echo(f"  Ready:              {len(result.with_status(ImportStatus.READY))}")
    click.echo(f"  Warnings:           {len(result.with_status(ImportStatus.WARNING))}")
    click.echo(f"  Errors:             {len(result.with_status(ImportStatus.ERROR))}")
    click.echo(f"  Skipped by rules:   {stats.skipped_transactions}")
    click.echo(f"  Rules applied:      {stats.total_rules_applied} "
               f"(on {stats.transactions_with_rules} transactions)")

    if not commit:
        click.echo("\nNothing written. Run again with --commit to import.")
        return

    commit_result = service.commit_transactions(
        result.transactions, bank_config=config, include_duplicates=include_duplicates
    )
    click.echo(f"\nImported {len(commit_result.imported_ids)} transactions")
    if commit_result.skipped:
        click.echo(f"Skipped {len(commit_result.skipped)}:")
        for canonical_id, reason in commit_result.skipped:
            click.echo(f"  {canonical_id}: {reason}")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_files)
