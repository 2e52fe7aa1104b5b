"""Main CLI entry point."""

import click

from ledgerline.database.factories import create_database
from ledgerline.utils.logging import setup_logging

# Import and register all commands at module level
from ledgerline.cli.commands import export_cmd, expense, import_cmd, lookup


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides LEDGERLINE_DB_PATH environment variable)",
    envvar="LEDGERLINE_DB_PATH",
)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="LEDGERLINE_DATABASE_URL",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="LEDGERLINE_LOG_LEVEL",
    help="Log level for diagnostics written to stderr",
)
@click.option(
    "--json-logs/--console-logs",
    default=False,
    envvar="LEDGERLINE_JSON_LOGS",
    help="Render logs as JSON lines instead of console output",
)
@click.pass_context
def cli(ctx, db_path: str | None, database_url: str | None, log_level: str, json_logs: bool):
    """Ledgerline - personal and shared expense tracking.

    Import expenses from CSV files, export them back to CSV, and manage the
    groups, categories, payers and payment modes they refer to.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        setup_logging(log_level, json_output=json_logs)
        db = create_database(database_url=database_url, database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
export_cmd.register_commands(cli)
lookup.register_commands(cli)
expense.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
