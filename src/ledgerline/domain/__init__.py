"""Domain layer for ledgerline application."""

# Services are resolved lazily: the database package imports domain entities,
# and the services import the database package.
_SERVICES = {
    "CSVRowParser": "ledgerline.domain.row_parser",
    "EntityResolver": "ledgerline.domain.resolver",
    "CSVService": "ledgerline.domain.csv_service",
    "LookupService": "ledgerline.domain.lookup",
    "ExpenseService": "ledgerline.domain.expense",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
