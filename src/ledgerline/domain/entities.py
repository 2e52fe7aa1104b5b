"""Domain model entities for ledgerline.

These are pure data classes representing business concepts, independent of
database schema. Services and the CSV pipeline exchange these rather than ORM
rows, so storage details stay inside the database package.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class LookupTable(str, Enum):
    """The four lookup tables an expense points to."""

    GROUP = "expense_groups"
    CATEGORY = "expense_categories"
    PAYER = "payers"
    PAYMENT_MODE = "payment_mode"

    @property
    def label(self) -> str:
        """Human readable singular name."""
        return _LOOKUP_LABELS[self]

    @property
    def expense_column(self) -> str:
        """Column on the expenses table referencing this lookup table."""
        return _LOOKUP_EXPENSE_COLUMNS[self]


_LOOKUP_LABELS = {
    LookupTable.GROUP: "Expense Group",
    LookupTable.CATEGORY: "Expense Category",
    LookupTable.PAYER: "Payer",
    LookupTable.PAYMENT_MODE: "Payment Mode",
}

_LOOKUP_EXPENSE_COLUMNS = {
    LookupTable.GROUP: "group_id",
    LookupTable.CATEGORY: "category_id",
    LookupTable.PAYER: "payer_id",
    LookupTable.PAYMENT_MODE: "payment_mode_id",
}


@dataclass(frozen=True)
class LookupEntity:
    """Named reference row (group, category, payer or payment mode)."""

    id: int
    name: str


@dataclass(frozen=True)
class Expense:
    """Persisted expense domain entity."""

    id: int
    date: date
    amount: Decimal
    description: Optional[str]
    group_id: int
    category_id: int
    payer_id: int
    payment_mode_id: int


@dataclass(frozen=True)
class ExpenseDetail(Expense):
    """Expense joined with the names of its four lookup entities."""

    group_name: Optional[str]
    category_name: Optional[str]
    payer_name: Optional[str]
    payment_mode_name: Optional[str]


@dataclass(frozen=True)
class ParsedRow:
    """A CSV record that passed validation, names not yet resolved to IDs."""

    date: date
    amount: Decimal
    category: str
    group: str
    payer: str
    payment_mode: str
    description: str
    original_record: dict[str, str] = field(compare=False, repr=False)


@dataclass(frozen=True)
class ExpenseRow:
    """A parsed row whose lookup names have been resolved, ready to insert."""

    date: date
    amount: Decimal
    category_id: int
    group_id: int
    payer_id: int
    payment_mode_id: int
    description: str
    original_record: dict[str, str] = field(compare=False, repr=False)


@dataclass(frozen=True)
class ExpenseFilters:
    """Filters shared by expense listing and CSV export.

    Date bounds are inclusive; an empty or missing ID collection means no
    restriction on that column.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    group_ids: Optional[tuple[int, ...]] = None
    category_ids: Optional[tuple[int, ...]] = None
    payer_ids: Optional[tuple[int, ...]] = None
    payment_mode_ids: Optional[tuple[int, ...]] = None


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a write command against storage."""

    id: Optional[int]
    rows_affected: int
