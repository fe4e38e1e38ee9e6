"""CLI error handling helpers."""

import click

from wealthledger.domain.errors import ConcurrencyConflict, DomainError, StorageError

# Errors rendered as "Error: <message>" with exit code 1
LEDGER_ERRORS = (ValueError, ConcurrencyConflict, StorageError)


def handle_domain_error(
    ctx: click.Context, error: DomainError | ValueError | ConcurrencyConflict | StorageError
) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
