"""Build services from the click context."""

import click

from wealthledger.config import LedgerSettings
from wealthledger.database.base import Database
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.currency import ExchangeRateService
from wealthledger.domain.entity import EntityService
from wealthledger.domain.networth import NetWorthService
from wealthledger.domain.posting import TransactionPoster
from wealthledger.utils.entity_resolver import resolve_entity


def get_db(ctx: click.Context) -> Database:
    return ctx.obj["db"]


def get_settings(ctx: click.Context) -> LedgerSettings:
    return ctx.obj["settings"]


def get_actor(ctx: click.Context) -> str:
    return get_settings(ctx).actor


def build_rates(ctx: click.Context) -> ExchangeRateService:
    return ExchangeRateService(get_db(ctx), base_currency=get_settings(ctx).base_currency)


def build_poster(ctx: click.Context) -> TransactionPoster:
    settings = get_settings(ctx)
    db = get_db(ctx)
    return TransactionPoster(
        db,
        recorder=AuditRecorder(db),
        rates=build_rates(ctx),
        max_retries=settings.max_retries,
    )


def build_networth(ctx: click.Context) -> NetWorthService:
    db = get_db(ctx)
    return NetWorthService(db, recorder=AuditRecorder(db), rates=build_rates(ctx))


def resolve_entity_or_exit(ctx: click.Context, entity: str | int) -> int:
    """Resolve entity ID, code or name, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_entity(EntityService(get_db(ctx)), entity)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
