"""CLI helpers for date range resolution."""

from datetime import date

import click

from ledgerline.utils.date_parser import get_date_range, parse_date


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    selected = [period for period, is_set in period_flags.items() if is_set]

    if len(selected) > 1:
        click.echo(
            "Error: Only one period option (--this-month, --last-month, --this-year, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if selected and (start_date or end_date):
        click.echo(
            "Error: Period options cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if selected:
        return get_date_range(selected[0])

    start = None
    end = None
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    return start, end


def period_options(command):
    """Add --this-month/--last-month/--this-year/--last-year flags to a command."""
    for flag, help_text in reversed(
        (
            ("this-month", "From the first of this month until today"),
            ("last-month", "The whole of last month"),
            ("this-year", "From January 1st until today"),
            ("last-year", "The whole of last year"),
        )
    ):
        command = click.option(f"--{flag}", is_flag=True, help=help_text)(command)
    return command
