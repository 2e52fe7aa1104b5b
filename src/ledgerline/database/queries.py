"""SQLAlchemy Core statements used by the domain services.

Statements are built here and handed to ``Database.query``/``Database.execute``
so that services never assemble SQL strings by hand.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Select, delete, func, insert, select, update

from ledgerline.database.models import (
    Expense,
    ExpenseCategory,
    ExpenseGroup,
    Payer,
    PaymentMode,
    lookup_table,
)
from ledgerline.domain.entities import ExpenseFilters, LookupTable


def select_lookup_id(table: str | LookupTable, name: str, name_column: str = "name"):
    """SELECT id FROM <table> WHERE <name_column> = :name."""
    tbl = lookup_table(table)
    return select(tbl.c.id).where(tbl.c[name_column] == name)


def insert_lookup(table: str | LookupTable, name: str, name_column: str = "name"):
    """INSERT INTO <table> (<name_column>) VALUES (:name)."""
    return insert(lookup_table(table)).values({name_column: name})


def select_lookups(table: str | LookupTable):
    tbl = lookup_table(table)
    return select(tbl.c.id, tbl.c.name).order_by(tbl.c.name)


def select_lookup_by_id(table: str | LookupTable, entity_id: int):
    tbl = lookup_table(table)
    return select(tbl.c.id, tbl.c.name).where(tbl.c.id == entity_id)


def rename_lookup(table: str | LookupTable, entity_id: int, name: str):
    tbl = lookup_table(table)
    return update(tbl).where(tbl.c.id == entity_id).values(name=name)


def delete_lookup(table: str | LookupTable, entity_id: int):
    tbl = lookup_table(table)
    return delete(tbl).where(tbl.c.id == entity_id)


def count_expenses_referencing(table: str | LookupTable, entity_id: int):
    """Count expenses whose foreign key for ``table`` points at ``entity_id``."""
    column = Expense.__table__.c[LookupTable(table).expense_column]
    return select(func.count().label("count")).select_from(Expense.__table__).where(
        column == entity_id
    )


def insert_expense(
    date: date,
    amount: Decimal,
    group_id: int,
    category_id: int,
    payer_id: int,
    payment_mode_id: int,
    description: Optional[str] = None,
):
    return insert(Expense.__table__).values(
        date=date,
        amount=amount,
        group_id=group_id,
        category_id=category_id,
        payer_id=payer_id,
        payment_mode_id=payment_mode_id,
        description=description,
    )


def update_expense(expense_id: int, values: dict[str, Any]):
    return update(Expense.__table__).where(Expense.__table__.c.id == expense_id).values(**values)


def delete_expense(expense_id: int):
    return delete(Expense.__table__).where(Expense.__table__.c.id == expense_id)


def select_expense_details(filters: Optional[ExpenseFilters] = None) -> Select:
    """Select expenses joined with their lookup names, newest first.

    Args:
        filters: Optional date range (inclusive) and ID filters
    """
    expenses = Expense.__table__
    groups = ExpenseGroup.__table__
    categories = ExpenseCategory.__table__
    payers = Payer.__table__
    modes = PaymentMode.__table__

    query = (
        select(
            expenses.c.id,
            expenses.c.date,
            expenses.c.amount,
            expenses.c.description,
            expenses.c.group_id,
            expenses.c.category_id,
            expenses.c.payer_id,
            expenses.c.payment_mode_id,
            groups.c.name.label("group_name"),
            categories.c.name.label("category_name"),
            payers.c.name.label("payer_name"),
            modes.c.name.label("payment_mode_name"),
        )
        .select_from(
            expenses.outerjoin(groups, expenses.c.group_id == groups.c.id)
            .outerjoin(categories, expenses.c.category_id == categories.c.id)
            .outerjoin(payers, expenses.c.payer_id == payers.c.id)
            .outerjoin(modes, expenses.c.payment_mode_id == modes.c.id)
        )
    )

    if filters is not None:
        if filters.start_date is not None:
            query = query.where(expenses.c.date >= filters.start_date)
        if filters.end_date is not None:
            query = query.where(expenses.c.date <= filters.end_date)
        if filters.group_ids:
            query = query.where(expenses.c.group_id.in_(filters.group_ids))
        if filters.category_ids:
            query = query.where(expenses.c.category_id.in_(filters.category_ids))
        if filters.payer_ids:
            query = query.where(expenses.c.payer_id.in_(filters.payer_ids))
        if filters.payment_mode_ids:
            query = query.where(expenses.c.payment_mode_id.in_(filters.payment_mode_ids))

    return query.order_by(expenses.c.date.desc(), expenses.c.id.desc())


def select_expense_detail(expense_id: int) -> Select:
    return select_expense_details().where(Expense.__table__.c.id == expense_id)
