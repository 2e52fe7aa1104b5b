"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class StructuralDecodeError(ValidationError):
    """CSV text could not be tokenized into records at all."""

    def __init__(self, message: str, total_rows: int = 0):
        super().__init__(message)
        self.total_rows = total_rows


class RowValidationError(ValidationError):
    """A single CSV record failed validation and is skipped."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        record: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.field = field
        self.value = value
        self.record = record


class MissingHeaderError(RowValidationError):
    """A required column key is absent from the record (malformed CSV)."""


class ResolutionError(DomainError):
    """A lookup entity could not be found or created."""


class PersistenceError(DomainError):
    """A write was rejected by storage."""


class ReferenceViolationError(PersistenceError):
    """A write referenced a row that does not exist (foreign key)."""


def entity_not_found(label: str, entity_id: int) -> str:
    """Return message for missing lookup entity."""
    return f"{label} {entity_id} not found"


def duplicate_entity_name(label: str, name: str) -> str:
    """Return message for a lookup name that is already taken."""
    return f"{label} with name '{name}' already exists"


def entity_delete_blocked(label: str, entity_id: int, expense_count: int) -> str:
    """Return message when a lookup entity is still referenced by expenses."""
    return (
        f"Cannot delete {label.lower()} {entity_id}: it is used by "
        f"{expense_count} expense{'s' if expense_count != 1 else ''}. "
        "Please reassign or delete them first."
    )


def expense_not_found(expense_id: int) -> str:
    """Return message for missing expense."""
    return f"Expense {expense_id} not found"


def unresolved_entity(label: str, name: str) -> str:
    """Return message when find-or-create could not produce an ID."""
    return f"Could not resolve {label.lower()} '{name}' after duplicate key retry"
