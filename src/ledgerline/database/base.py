"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from sqlalchemy.sql import Executable

# Import entities directly, not through the domain package namespace
from ledgerline.domain.entities import ExecuteResult

Statement = Union[str, Executable]


class Database(ABC):
    """Abstract storage interface for ledgerline.

    The domain consumes two primitives, ``query`` and ``execute``. Both are
    coroutines; each call is atomic and independent of every other call (no
    multi-statement transactions are shared between calls).

    Implementations must raise ``ConflictError`` for unique constraint
    violations, ``ReferenceViolationError`` for foreign key violations and
    ``PersistenceError`` for any other integrity failure.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    async def query(
        self, statement: Statement, params: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]:
        """Run a read statement and return rows as dicts keyed by column label."""
        pass

    @abstractmethod
    async def execute(
        self, statement: Statement, params: Optional[dict[str, Any]] = None
    ) -> ExecuteResult:
        """Run a write statement in its own transaction.

        Returns:
            ExecuteResult with the generated primary key for single-row
            inserts (None otherwise) and the number of affected rows.
        """
        pass
