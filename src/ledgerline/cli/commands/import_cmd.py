"""CSV import command."""

import asyncio

import click

from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.csv_service import DEFAULT_MAX_CONCURRENCY, CSVService
from ledgerline.domain.errors import DomainError


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_CONCURRENCY,
    show_default=True,
    envvar="LEDGERLINE_MAX_CONCURRENCY",
    help="Maximum number of rows processed at once",
)
@click.pass_context
def import_csv(ctx, csv_file: str, max_concurrency: int):
    """Import expenses from a CSV file."""
    db = ctx.obj["db"]
    service = CSVService(db, max_concurrency=max_concurrency)

    try:
        result = asyncio.run(service.import_csv_file(csv_file))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Rows: {result['total_rows']}")
    click.echo(f"  Imported: {result['successful_inserts']} expenses")
    click.echo(f"  Failed: {result['failed_inserts']}")
    for error in result["errors"]:
        click.echo(f"    {error['message']}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
