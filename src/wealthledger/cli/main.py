"""Main CLI entry point."""

import click

from wealthledger.config import load_settings
from wealthledger.database.factories import create_database
from wealthledger.logging_config import configure_logging

# Import and register all commands at module level
from wealthledger.cli.commands import (
    entity,
    account,
    holding,
    item,
    rate,
    posting,
    transaction,
    networth,
    audit,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides WEALTHLEDGER_DB_PATH and WEALTHLEDGER_DATABASE_URL)",
)
@click.option("--actor", help="Name recorded on audit records (overrides WEALTHLEDGER_ACTOR)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides WEALTHLEDGER_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx, db_path: str | None, actor: str | None, log_level: str | None):
    """Wealthledger - position and valuation ledger.

    Track cash accounts, investment holdings, other assets and loans per
    entity, post transactions and corporate actions, and snapshot net worth
    with a full audit trail.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = load_settings(database_path=db_path)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        settings = settings.with_overrides(
            actor=actor, log_level=log_level.upper() if log_level else None
        )
        configure_logging(settings.log_level, use_json=settings.log_json)

        db = create_database(settings)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
entity.register_commands(cli)
account.register_commands(cli)
holding.register_commands(cli)
item.register_commands(cli)
rate.register_commands(cli)
posting.register_commands(cli)
transaction.register_commands(cli)
networth.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
