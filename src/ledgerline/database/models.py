"""SQLAlchemy models for ledgerline database."""

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Date,
    Numeric,
    Table,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

from ledgerline.domain.entities import LookupTable

Base = declarative_base()


class ExpenseGroup(Base):
    """Expense group model (e.g. "Household", "Trip 2024")."""

    __tablename__ = LookupTable.GROUP.value

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    expenses = relationship("Expense", back_populates="group")


class ExpenseCategory(Base):
    """Expense category model."""

    __tablename__ = LookupTable.CATEGORY.value

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    expenses = relationship("Expense", back_populates="category")


class Payer(Base):
    """Payer model."""

    __tablename__ = LookupTable.PAYER.value

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    expenses = relationship("Expense", back_populates="payer")


class PaymentMode(Base):
    """Payment mode model (cash, card, ...)."""

    __tablename__ = LookupTable.PAYMENT_MODE.value

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    expenses = relationship("Expense", back_populates="payment_mode")


class Expense(Base):
    """Expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    group_id = Column(
        Integer, ForeignKey("expense_groups.id", ondelete="RESTRICT"), nullable=False
    )
    category_id = Column(
        Integer, ForeignKey("expense_categories.id", ondelete="RESTRICT"), nullable=False
    )
    payer_id = Column(Integer, ForeignKey("payers.id", ondelete="RESTRICT"), nullable=False)
    payment_mode_id = Column(
        Integer, ForeignKey("payment_mode.id", ondelete="RESTRICT"), nullable=False
    )

    # Relationships
    group = relationship("ExpenseGroup", back_populates="expenses")
    category = relationship("ExpenseCategory", back_populates="expenses")
    payer = relationship("Payer", back_populates="expenses")
    payment_mode = relationship("PaymentMode", back_populates="expenses")


LOOKUP_MODELS = {
    LookupTable.GROUP: ExpenseGroup,
    LookupTable.CATEGORY: ExpenseCategory,
    LookupTable.PAYER: Payer,
    LookupTable.PAYMENT_MODE: PaymentMode,
}


def lookup_table(table: str | LookupTable) -> Table:
    """Return the Table object for a lookup table name.

    Raises:
        ValueError: If the name is not one of the four lookup tables
    """
    return LOOKUP_MODELS[LookupTable(table)].__table__


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(database_url: str) -> Engine:
    """Create an engine and make sure the schema exists."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return engine
