"""Tests for the SQLAlchemy storage layer."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from ledgerline.database import create_database, create_sqlite_database, queries
from ledgerline.database.mappers import expense_detail_to_domain, lookup_to_domain
from ledgerline.database.models import lookup_table
from ledgerline.database.sqlalchemy_db import translate_integrity_error
from ledgerline.domain.entities import LookupEntity, LookupTable
from ledgerline.domain.errors import (
    ConflictError,
    PersistenceError,
    ReferenceViolationError,
)

def integrity_error(message, **attrs):
    orig = Exception(message)
    for name, value in attrs.items():
        setattr(orig, name, value)
    return IntegrityError("INSERT ...", {}, orig)

class TestTranslateIntegrityError:
    def test_sqlite_unique(self):
        error = translate_integrity_error(integrity_error("UNIQUE constraint failed: payers.name"))
        assert isinstance(error, ConflictError)

    def test_postgres_unique_code(self):
        error = translate_integrity_error(integrity_error("boom", pgcode="23505"))
        assert isinstance(error, ConflictError)

    def test_foreign_key(self):
        error = translate_integrity_error(integrity_error("FOREIGN KEY constraint failed"))
        assert isinstance(error, ReferenceViolationError)

    def test_postgres_foreign_key_code(self):
        error = translate_integrity_error(integrity_error("boom", sqlstate="23503"))
        assert isinstance(error, ReferenceViolationError)

    def test_other_integrity_failure(self):
        error = translate_integrity_error(integrity_error("NOT NULL constraint failed: payers.name"))
        assert type(error) is PersistenceError
        assert "NOT NULL" in str(error)

class TestSQLAlchemyDatabase:
    @pytest.mark.asyncio
    async def test_insert_returns_id_and_rowcount(self, temp_db):
        first = await temp_db.execute(queries.insert_lookup(LookupTable.PAYER, "Alice"))
        second = await temp_db.execute(queries.insert_lookup(LookupTable.PAYER, "Bob"))

        assert first.rows_affected == 1
        assert second.id == first.id + 1

    @pytest.mark.asyncio
    async def test_query_returns_dicts(self, temp_db):
        await temp_db.execute(queries.insert_lookup(LookupTable.GROUP, "Trip"))

        rows = await temp_db.query(queries.select_lookups(LookupTable.GROUP))

        assert rows == [{"id": 1, "name": "Trip"}]

    @pytest.mark.asyncio
    async def test_update_reports_affected_rows(self, temp_db):
        result = await temp_db.execute(queries.rename_lookup(LookupTable.GROUP, 5, "Nope"))

        assert result.id is None
        assert result.rows_affected == 0

    @pytest.mark.asyncio
    async def test_raw_sql_strings(self, temp_db):
        await temp_db.execute("INSERT INTO payers (name) VALUES (:name)", {"name": "Carol"})

        rows = await temp_db.query("SELECT name FROM payers WHERE name = :name", {"name": "Carol"})

        assert rows == [{"name": "Carol"}]

    @pytest.mark.asyncio
    async def test_unique_violation_raises_conflict(self, temp_db):
        await temp_db.execute(queries.insert_lookup(LookupTable.CATEGORY, "Food"))

        with pytest.raises(ConflictError):
            await temp_db.execute(queries.insert_lookup(LookupTable.CATEGORY, "Food"))

    @pytest.mark.asyncio
    async def test_foreign_keys_enforced(self, temp_db):
        statement = queries.insert_expense(
            date=date(2024, 1, 5),
            amount=Decimal("1.00"),
            group_id=10,
            category_id=10,
            payer_id=10,
            payment_mode_id=10,
        )

        with pytest.raises(ReferenceViolationError):
            await temp_db.execute(statement)

    @pytest.mark.asyncio
    async def test_expense_details_use_labels(self, temp_db):
        ids = {}
        for table in LookupTable:
            result = await temp_db.execute(queries.insert_lookup(table, f"{table.label} one"))
            ids[table.expense_column] = result.id
        await temp_db.execute(
            queries.insert_expense(date=date(2024, 1, 5), amount=Decimal("9.99"), **ids)
        )

        rows = await temp_db.query(queries.select_expense_details())
        detail = expense_detail_to_domain(rows[0])

        assert detail.amount == Decimal("9.99")
        assert detail.payment_mode_name == "Payment Mode one"
        assert detail.group_name == "Expense Group one"
        assert detail.description is None

class TestFactories:
    def test_sqlite_path(self, tmp_path):
        db = create_sqlite_database(str(tmp_path / "x.db"))
        try:
            assert db.database_url == f"sqlite:///{tmp_path / 'x.db'}"
        finally:
            db.disconnect()

    def test_sqlite_path_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGERLINE_DB_PATH", str(tmp_path / "env.db"))

        db = create_sqlite_database()
        try:
            assert db.database_url.endswith("env.db")
        finally:
            db.disconnect()

    def test_database_url_takes_precedence(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGERLINE_DATABASE_URL", f"sqlite:///{tmp_path / 'url.db'}")

        db = create_database(database_path=str(tmp_path / "path.db"))
        try:
            assert db.database_url.endswith("url.db")
        finally:
            db.disconnect()

class TestMappersAndModels:
    def test_lookup_to_domain(self):
        assert lookup_to_domain({"id": 3, "name": "Cash"}) == LookupEntity(id=3, name="Cash")

    def test_lookup_table_names(self):
        assert lookup_table("payment_mode").name == "payment_mode"
        assert lookup_table(LookupTable.GROUP).name == "expense_groups"
        with pytest.raises(ValueError):
            lookup_table("accounts")
