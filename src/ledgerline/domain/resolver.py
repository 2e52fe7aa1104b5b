"""Find-or-create resolution of lookup entity names with request coalescing."""

import asyncio
from typing import Optional

import structlog

from ledgerline.database import queries
from ledgerline.database.base import Database
from ledgerline.domain.entities import LookupTable
from ledgerline.domain.errors import ConflictError, ResolutionError, unresolved_entity

logger = structlog.get_logger(__name__)

ResolutionKey = tuple[str, str, str]


class EntityResolver:
    """Resolve lookup names to IDs, creating rows on first use.

    One resolver belongs to one import job. The first caller for a given
    (table, column, name) key registers a task in ``_inflight`` before any
    I/O happens; every later caller for that key awaits the same task, so at
    most one SELECT/INSERT sequence runs per key. Successful tasks stay in the
    map and serve later lookups from memory. A failed task removes its own
    entry so the next caller starts a fresh attempt.
    """

    def __init__(self, db: Database):
        """Initialize entity resolver.

        Args:
            db: Database instance
        """
        self.db = db
        self._inflight: dict[ResolutionKey, asyncio.Task] = {}

    async def resolve_or_create(
        self, table: str | LookupTable, name: str, name_column: str = "name"
    ) -> Optional[int]:
        """Return the ID for ``name`` in ``table``, inserting it if needed.

        Args:
            table: Lookup table name (or LookupTable member)
            name: Entity name, matched exactly (case-sensitive)
            name_column: Column holding the name

        Returns:
            Entity ID, or None if ``name`` is empty or whitespace

        Raises:
            ResolutionError: If the row could neither be created nor found
            ValueError: If ``table`` is not a lookup table
        """
        lookup = LookupTable(table)
        if name is None or not name.strip():
            logger.warning("entity_name_empty", table=lookup.value)
            return None

        key = (lookup.value, name_column, name)
        cached = self._cached_id(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(
                self._find_or_create(key, lookup, name, name_column)
            )
            self._inflight[key] = task

        # A cancelled caller must not cancel the task other callers share
        return await asyncio.shield(task)

    def _cached_id(self, key: ResolutionKey) -> Optional[int]:
        task = self._inflight.get(key)
        if task is None or not task.done() or task.cancelled() or task.exception() is not None:
            return None
        return task.result()

    async def _find_or_create(
        self, key: ResolutionKey, table: LookupTable, name: str, name_column: str
    ) -> int:
        try:
            entity_id = await self._find(table, name, name_column)
            if entity_id is not None:
                return entity_id

            try:
                result = await self.db.execute(queries.insert_lookup(table, name, name_column))
            except ConflictError:
                # Another writer created the row between our SELECT and INSERT
                logger.warning("entity_duplicate_retry", table=table.value, name=name)
                entity_id = await self._find(table, name, name_column)
                if entity_id is None:
                    raise ResolutionError(unresolved_entity(table.label, name))
                return entity_id

            if result.id is None:
                raise ResolutionError(f"Creating {table.label.lower()} '{name}' did not return an ID")
            logger.info("entity_created", table=table.value, name=name, id=result.id)
            return result.id
        except BaseException as e:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]
            logger.error(
                "entity_resolution_failed", table=table.value, name=name, error=repr(e)
            )
            raise

    async def _find(self, table: LookupTable, name: str, name_column: str) -> Optional[int]:
        rows = await self.db.query(queries.select_lookup_id(table, name, name_column))
        if rows:
            return rows[0]["id"]
        return None
