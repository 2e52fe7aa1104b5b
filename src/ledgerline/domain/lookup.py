"""Lookup entity domain service (groups, categories, payers, payment modes)."""

from typing import Optional

from ledgerline.database import queries
from ledgerline.database.base import Database
from ledgerline.database.mappers import lookup_to_domain
from ledgerline.domain.entities import LookupEntity, LookupTable
from ledgerline.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    duplicate_entity_name,
    entity_delete_blocked,
    entity_not_found,
)


class LookupService:
    """Service for managing lookup entities outside of CSV import."""

    def __init__(self, db: Database):
        """Initialize lookup service.

        Args:
            db: Database instance
        """
        self.db = db

    async def list_entities(self, table: str | LookupTable) -> list[LookupEntity]:
        """List all entities of a table ordered by name."""
        rows = await self.db.query(queries.select_lookups(table))
        return [lookup_to_domain(row) for row in rows]

    async def get_entity(self, table: str | LookupTable, entity_id: int) -> Optional[LookupEntity]:
        """Get an entity by ID, or None if not found."""
        rows = await self.db.query(queries.select_lookup_by_id(table, entity_id))
        if not rows:
            return None
        return lookup_to_domain(rows[0])

    async def add_entity(self, table: str | LookupTable, name: str) -> LookupEntity:
        """Create a new entity.

        Args:
            table: Lookup table
            name: Entity name (trimmed before storing)

        Returns:
            The created entity

        Raises:
            ValidationError: If the name is empty
            ConflictError: If the name already exists
        """
        lookup = LookupTable(table)
        name = self._clean_name(lookup, name)
        try:
            result = await self.db.execute(queries.insert_lookup(lookup, name))
        except ConflictError as e:
            raise ConflictError(duplicate_entity_name(lookup.label, name)) from e
        return LookupEntity(id=result.id, name=name)

    async def rename_entity(self, table: str | LookupTable, entity_id: int, name: str) -> LookupEntity:
        """Rename an entity.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the entity doesn't exist
            ConflictError: If another entity already has the name
        """
        lookup = LookupTable(table)
        name = self._clean_name(lookup, name)
        try:
            result = await self.db.execute(queries.rename_lookup(lookup, entity_id, name))
        except ConflictError as e:
            raise ConflictError(duplicate_entity_name(lookup.label, name)) from e
        if result.rows_affected == 0:
            raise NotFoundError(entity_not_found(lookup.label, entity_id))
        return LookupEntity(id=entity_id, name=name)

    async def delete_entity(self, table: str | LookupTable, entity_id: int) -> None:
        """Delete an entity that no expense references.

        Raises:
            DependencyError: If any expense still references the entity
            NotFoundError: If the entity doesn't exist
        """
        lookup = LookupTable(table)
        rows = await self.db.query(queries.count_expenses_referencing(lookup, entity_id))
        expense_count = rows[0]["count"]
        if expense_count > 0:
            raise DependencyError(entity_delete_blocked(lookup.label, entity_id, expense_count))

        result = await self.db.execute(queries.delete_lookup(lookup, entity_id))
        if result.rows_affected == 0:
            raise NotFoundError(entity_not_found(lookup.label, entity_id))

    @staticmethod
    def _clean_name(lookup: LookupTable, name: str) -> str:
        if name is None or not name.strip():
            raise ValidationError(f"{lookup.label} name cannot be empty")
        return name.strip()
