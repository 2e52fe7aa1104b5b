"""CSV export command."""

import asyncio
import os

import click

from ledgerline.cli.date_filters import period_options, resolve_cli_date_range
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.csv_service import CSVService, export_filename
from ledgerline.domain.entities import ExpenseFilters
from ledgerline.domain.errors import DomainError
from ledgerline.utils.id_list import parse_id_list


@click.command("export")
@click.option("--start-date", help="Start date, inclusive (YYYY-MM-DD)")
@click.option("--end-date", help="End date, inclusive (YYYY-MM-DD)")
@click.option("--group-ids", help="Comma-separated expense group IDs (e.g. 1,3)")
@period_options
@click.option(
    "--output",
    "-o",
    type=click.Path(writable=True),
    help="Write to this file instead of stdout ('-' for stdout, '.' for a suggested name)",
)
@click.pass_context
def export_csv(
    ctx,
    start_date: str,
    end_date: str,
    group_ids: str,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_year: bool,
    output: str,
):
    """Export expenses to CSV."""
    db = ctx.obj["db"]
    service = CSVService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "last-month": last_month,
            "this-year": this_year,
            "last-year": last_year,
        },
    )
    filters = ExpenseFilters(start_date=start, end_date=end, group_ids=parse_id_list(group_ids))

    try:
        csv_text = asyncio.run(service.export_csv(filters))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not output or output == "-":
        click.echo(csv_text, nl=False)
        return

    if output == ".":
        output = export_filename(filters)
    elif os.path.isdir(output):
        raise click.BadParameter(f"'{output}' is a directory", param_hint="'--output'")
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(csv_text)
    click.echo(f"Exported expenses to {output}", err=True)


def register_commands(cli):
    """Register export command with main CLI."""
    cli.add_command(export_csv)
