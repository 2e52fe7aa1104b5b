"""Mapper functions to convert query result rows into domain entities.

Rows arrive from ``Database.query`` as plain dicts keyed by column label.
This layer isolates the conversion, so a column rename only touches the
statements in ``queries`` and the functions below.
"""

from typing import Any

from ledgerline.domain import entities as domain


def lookup_to_domain(row: dict[str, Any]) -> domain.LookupEntity:
    """Convert a lookup table row to a domain LookupEntity."""
    return domain.LookupEntity(id=row["id"], name=row["name"])


def expense_detail_to_domain(row: dict[str, Any]) -> domain.ExpenseDetail:
    """Convert a joined expense row to a domain ExpenseDetail entity."""
    return domain.ExpenseDetail(
        id=row["id"],
        date=row["date"],
        amount=row["amount"],
        description=row["description"],
        group_id=row["group_id"],
        category_id=row["category_id"],
        payer_id=row["payer_id"],
        payment_mode_id=row["payment_mode_id"],
        group_name=row["group_name"],
        category_name=row["category_name"],
        payer_name=row["payer_name"],
        payment_mode_name=row["payment_mode_name"],
    )
