"""Shared pytest fixtures for ledgerline tests."""

import asyncio
import os
import tempfile
from collections import defaultdict
from pathlib import Path

import pytest
from sqlalchemy import Insert

from ledgerline.database.base import Database
from ledgerline.database.factories import create_sqlite_database
from ledgerline.domain.csv_service import CSVService
from ledgerline.domain.entities import ExecuteResult
from ledgerline.domain.errors import ConflictError
from ledgerline.domain.expense import ExpenseService
from ledgerline.domain.lookup import LookupService

CSV_HEADER = "Date,Amount,Expense Category,Expense Description,Expense Group,Payer,Payment mode\n"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def csv_service(temp_db):
    """Create a CSVService with a temporary database."""
    return CSVService(temp_db)


@pytest.fixture
def lookup_service(temp_db):
    """Create a LookupService with a temporary database."""
    return LookupService(temp_db)


@pytest.fixture
def expense_service(temp_db):
    """Create an ExpenseService with a temporary database."""
    return ExpenseService(temp_db)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def make_csv():
    """Build CSV text from data lines using the standard header."""

    def _make(*lines: str, header: str = CSV_HEADER) -> str:
        return header + "".join(f"{line}\n" for line in lines)

    return _make


class FakeStorage(Database):
    """In-memory storage that understands the statements the import path issues.

    Every call yields to the event loop, so concurrent callers interleave.
    Set ``gate`` to an unset asyncio.Event to hold all calls until released.
    """

    def __init__(self):
        self.lookups: dict[str, dict[str, int]] = defaultdict(dict)
        self.expenses: list[dict] = []
        self.selects: list[tuple[str, str]] = []
        self.inserts: list[tuple[str, str]] = []
        self.next_id = 1
        self.gate = None
        self.fail_next_queries = 0
        self.on_lookup_insert = None
        self.on_expense_insert = None

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def initialize_schema(self) -> None:
        pass

    def add_lookup(self, table: str, name: str) -> int:
        entity_id = self.next_id
        self.next_id += 1
        self.lookups[table][name] = entity_id
        return entity_id

    async def query(self, statement, params=None):
        await self._suspend()
        table = statement.get_final_froms()[0].name
        name = next(iter(statement.compile().params.values()))
        self.selects.append((table, name))
        if self.fail_next_queries:
            self.fail_next_queries -= 1
            raise RuntimeError("connection reset by peer")
        entity_id = self.lookups[table].get(name)
        return [] if entity_id is None else [{"id": entity_id}]

    async def execute(self, statement, params=None):
        assert isinstance(statement, Insert)
        await self._suspend()
        table = statement.table.name
        values = statement.compile().params

        if table == "expenses":
            if self.on_expense_insert is not None:
                self.on_expense_insert(values)
            self.expenses.append(values)
            return ExecuteResult(id=len(self.expenses), rows_affected=1)

        name = values["name"]
        self.inserts.append((table, name))
        if self.on_lookup_insert is not None:
            self.on_lookup_insert(table, name)
        if name in self.lookups[table]:
            raise ConflictError(f"UNIQUE constraint failed: {table}.name")
        return ExecuteResult(id=self.add_lookup(table, name), rows_affected=1)

    async def _suspend(self):
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)


@pytest.fixture
def fake_storage():
    """Create an in-memory FakeStorage."""
    return FakeStorage()
