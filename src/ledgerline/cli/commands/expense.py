"""Expense management commands."""

import asyncio

import click

from ledgerline.cli.date_filters import period_options, resolve_cli_date_range
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.entities import ExpenseFilters
from ledgerline.domain.errors import DomainError
from ledgerline.domain.expense import ExpenseService
from ledgerline.utils.amount_parser import parse_amount
from ledgerline.utils.date_parser import parse_date
from ledgerline.utils.id_list import parse_id_list


@click.group()
def expense_group():
    """Add, list and delete expenses."""
    pass


@expense_group.command("list")
@click.option("--start-date", help="Start date, inclusive (YYYY-MM-DD)")
@click.option("--end-date", help="End date, inclusive (YYYY-MM-DD)")
@click.option("--group-ids", help="Comma-separated expense group IDs")
@click.option("--category-ids", help="Comma-separated expense category IDs")
@click.option("--payer-ids", help="Comma-separated payer IDs")
@click.option("--mode-ids", help="Comma-separated payment mode IDs")
@period_options
@click.pass_context
def list_expenses(
    ctx,
    start_date: str,
    end_date: str,
    group_ids: str,
    category_ids: str,
    payer_ids: str,
    mode_ids: str,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_year: bool,
):
    """List expenses with optional filters."""
    service = ExpenseService(ctx.obj["db"])
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
    filters = ExpenseFilters(
        start_date=start,
        end_date=end,
        group_ids=parse_id_list(group_ids),
        category_ids=parse_id_list(category_ids),
        payer_ids=parse_id_list(payer_ids),
        payment_mode_ids=parse_id_list(mode_ids),
    )

    expenses = asyncio.run(service.list_expenses(filters))
    if not expenses:
        click.echo("No expenses found.")
        return

    click.echo(f"\nFound {len(expenses)} expense(s):")
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12}  {'Category':<18} {'Group':<14} {'Payer':<12} {'Mode':<10} Description"
    )
    click.echo("-" * 100)
    for exp in expenses:
        click.echo(
            f"{exp.id:<6} {exp.date.isoformat():<12} {exp.amount:>12,.2f}  "
            f"{(exp.category_name or '')[:18]:<18} {(exp.group_name or '')[:14]:<14} "
            f"{(exp.payer_name or '')[:12]:<12} {(exp.payment_mode_name or '')[:10]:<10} "
            f"{exp.description or ''}"
        )


@expense_group.command("add")
@click.option("--date", "date_str", required=True, help="Expense date (e.g. 2024-01-05 or 05-Jan-2024)")
@click.option("--amount", required=True, help="Amount (negative for refunds)")
@click.option("--category", required=True, help="Expense category name")
@click.option("--group", required=True, help="Expense group name")
@click.option("--payer", required=True, help="Payer name")
@click.option("--mode", required=True, help="Payment mode name")
@click.option("--description", default=None, help="Free text description")
@click.pass_context
def add_expense(
    ctx,
    date_str: str,
    amount: str,
    category: str,
    group: str,
    payer: str,
    mode: str,
    description: str | None,
):
    """Add an expense; unknown names are created on the fly."""
    service = ExpenseService(ctx.obj["db"])

    try:
        expense_date = parse_date(date_str)
        expense_amount = parse_amount(amount)
        expense_id = asyncio.run(
            service.add_expense_by_names(
                date=expense_date,
                amount=expense_amount,
                group=group,
                category=category,
                payer=payer,
                payment_mode=mode,
                description=description,
            )
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created expense (ID: {expense_id})")


@expense_group.command("delete")
@click.argument("expense_id", type=int)
@click.pass_context
def delete_expense(ctx, expense_id: int):
    """Delete expense EXPENSE_ID."""
    service = ExpenseService(ctx.obj["db"])

    try:
        asyncio.run(service.delete_expense(expense_id))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted expense {expense_id}")


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
