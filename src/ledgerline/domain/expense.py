"""Expense domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerline.database import queries
from ledgerline.database.base import Database
from ledgerline.database.mappers import expense_detail_to_domain
from ledgerline.domain.entities import ExpenseDetail, ExpenseFilters, LookupTable
from ledgerline.domain.errors import (
    NotFoundError,
    ResolutionError,
    ValidationError,
    expense_not_found,
)
from ledgerline.domain.resolver import EntityResolver

UPDATABLE_FIELDS = (
    "date",
    "amount",
    "description",
    "group_id",
    "category_id",
    "payer_id",
    "payment_mode_id",
)


class ExpenseService:
    """Service for managing individual expenses."""

    def __init__(self, db: Database):
        """Initialize expense service.

        Args:
            db: Database instance
        """
        self.db = db

    async def add_expense(
        self,
        date: date,
        amount: Decimal,
        group_id: int,
        category_id: int,
        payer_id: int,
        payment_mode_id: int,
        description: Optional[str] = None,
    ) -> int:
        """Create an expense from lookup IDs.

        Returns:
            Expense ID

        Raises:
            ReferenceViolationError: If any lookup ID doesn't exist
        """
        result = await self.db.execute(
            queries.insert_expense(
                date=date,
                amount=amount,
                group_id=group_id,
                category_id=category_id,
                payer_id=payer_id,
                payment_mode_id=payment_mode_id,
                description=description or None,
            )
        )
        return result.id

    async def add_expense_by_names(
        self,
        date: date,
        amount: Decimal,
        group: str,
        category: str,
        payer: str,
        payment_mode: str,
        description: Optional[str] = None,
    ) -> int:
        """Create an expense from lookup names, creating missing lookups.

        Raises:
            ValidationError: If any name is empty
            ResolutionError: If a lookup could not be found or created
        """
        resolver = EntityResolver(self.db)
        ids = {}
        for table, name in (
            (LookupTable.GROUP, group),
            (LookupTable.CATEGORY, category),
            (LookupTable.PAYER, payer),
            (LookupTable.PAYMENT_MODE, payment_mode),
        ):
            if name is None or not name.strip():
                raise ValidationError(f"{table.label} name cannot be empty")
            entity_id = await resolver.resolve_or_create(table, name.strip())
            if entity_id is None:
                raise ResolutionError(f"Could not resolve {table.label.lower()} '{name}'")
            ids[table] = entity_id

        return await self.add_expense(
            date=date,
            amount=amount,
            group_id=ids[LookupTable.GROUP],
            category_id=ids[LookupTable.CATEGORY],
            payer_id=ids[LookupTable.PAYER],
            payment_mode_id=ids[LookupTable.PAYMENT_MODE],
            description=description,
        )

    async def get_expense(self, expense_id: int) -> Optional[ExpenseDetail]:
        """Get expense by ID, or None if not found."""
        rows = await self.db.query(queries.select_expense_detail(expense_id))
        if not rows:
            return None
        return expense_detail_to_domain(rows[0])

    async def list_expenses(self, filters: Optional[ExpenseFilters] = None) -> list[ExpenseDetail]:
        """List expenses, newest first.

        Args:
            filters: Optional date range and lookup ID filters
        """
        rows = await self.db.query(queries.select_expense_details(filters))
        return [expense_detail_to_domain(row) for row in rows]

    async def update_expense(self, expense_id: int, **fields) -> ExpenseDetail:
        """Update selected fields of an expense.

        Args:
            expense_id: Expense ID
            **fields: Any of date, amount, description, group_id, category_id,
                payer_id, payment_mode_id

        Returns:
            The updated expense

        Raises:
            ValidationError: If an unknown field is given or no fields are given
            NotFoundError: If the expense doesn't exist
            ReferenceViolationError: If a lookup ID doesn't exist
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update expense fields: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("No expense fields to update")

        result = await self.db.execute(queries.update_expense(expense_id, fields))
        if result.rows_affected == 0:
            raise NotFoundError(expense_not_found(expense_id))
        return await self.get_expense(expense_id)

    async def delete_expense(self, expense_id: int) -> None:
        """Delete an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        result = await self.db.execute(queries.delete_expense(expense_id))
        if result.rows_affected == 0:
            raise NotFoundError(expense_not_found(expense_id))
