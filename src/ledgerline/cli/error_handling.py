"""CLI error handling helpers."""

import click
import structlog

from ledgerline.domain.errors import DomainError

logger = structlog.get_logger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Report a failed command on stderr and exit with status 1.

    The error is also logged with the command name and error type, so JSON
    logs record why a run failed.
    """
    logger.warning(
        "cli_command_failed",
        command=ctx.command_path or ctx.info_name,
        error_type=type(error).__name__,
        error=str(error),
    )
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
