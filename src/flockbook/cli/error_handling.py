"""CLI error handling helpers."""

import logging

import click

from flockbook.domain.errors import DomainError, InconsistencyError, PersistenceError

logger = logging.getLogger(__name__)


def describe_error(error: ValueError) -> str:
    """One-line message for a failed command."""
    if isinstance(error, PersistenceError):
        return f"Could not save changes: {error}"
    if isinstance(error, InconsistencyError):
        return f"Lot history is inconsistent: {error}"
    return str(error)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Store and consistency failures keep their traceback in the debug log.
    """
    if isinstance(error, (PersistenceError, InconsistencyError)):
        logger.debug("Command failed", exc_info=error)
    click.echo(f"Error: {describe_error(error)}", err=True)
    ctx.exit(1)
