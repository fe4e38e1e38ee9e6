"""Investment holding commands."""

import click
from wealthledger.cli.context import get_actor, get_db, resolve_entity_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.entities import SecurityType
from wealthledger.domain.holding import HoldingService
from wealthledger.utils.amount_parser import parse_amount


@click.group()
def holding_group():
    """Manage investment holdings."""
    pass


@holding_group.command("create")
@click.argument("entity", metavar="ENTITY")
@click.argument("symbol")
@click.option("--name", "security_name", help="Security name (defaults to the symbol)")
@click.option(
    "--type",
    "security_type",
    type=click.Choice([t.value for t in SecurityType]),
    default=SecurityType.STOCK.value,
    show_default=True,
    help="Security type",
)
@click.option("--exchange", help="Listing exchange")
@click.option("--currency", default="USD", show_default=True, help="Trading currency")
@click.option("--price", default="0", help="Current market price")
@click.pass_context
def create_holding(
    ctx,
    entity: str,
    symbol: str,
    security_name: str | None,
    security_type: str,
    exchange: str | None,
    currency: str,
    price: str,
):
    """Register a holding with zero quantity.

    Quantity and cost are built up by posting Buy transactions.

    Examples:
        wealthledger holding create JANE AAPL --name "Apple Inc." --exchange NASDAQ
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    service = HoldingService(get_db(ctx))
    try:
        market_price = parse_amount(price)
    except ValueError as e:
        click.echo(f"Error: Invalid price format: {e}", err=True)
        ctx.exit(1)

    try:
        holding_id = service.create_holding(
            entity_id=entity_id,
            symbol=symbol,
            security_name=security_name or symbol,
            security_type=SecurityType(security_type),
            actor=get_actor(ctx),
            exchange=exchange,
            currency_code=currency,
            current_market_price=market_price,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created holding {symbol.upper()} (ID: {holding_id})")


@holding_group.command("list")
@click.option("--entity", help="Entity ID, code or name")
@click.option("--active-only", is_flag=True, help="Hide deactivated holdings")
@click.pass_context
def list_holdings(ctx, entity: str | None, active_only: bool):
    """List holdings with derived market value and unrealized gain."""
    entity_id = resolve_entity_or_exit(ctx, entity) if entity else None
    service = HoldingService(get_db(ctx))

    holdings = service.list_holdings(entity_id=entity_id, active_only=active_only)
    if not holdings:
        click.echo("No holdings found.")
        return

    click.echo(
        f"\n{'ID':>4} | {'Symbol':8s} | {'Quantity':>16} | {'Avg cost':>12} | "
        f"{'Price':>12} | {'Value':>14} | {'Unrealized':>14}"
    )
    click.echo("-" * 100)
    for h in holdings:
        status = "" if h.is_active else " (inactive)"
        click.echo(
            f"{h.id:4d} | {h.symbol:8s} | {h.quantity:>16,.8f} | {h.average_cost_price:>12,.4f} | "
            f"{h.current_market_price:>12,.4f} | {h.market_value:>14,.2f} | "
            f"{h.unrealized_gain_loss:>14,.2f}{status}"
        )


@holding_group.command("price")
@click.argument("holding_id", type=int)
@click.argument("price")
@click.pass_context
def set_price(ctx, holding_id: int, price: str):
    """Record the current market price of a holding."""
    service = HoldingService(get_db(ctx))
    try:
        market_price = parse_amount(price)
    except ValueError as e:
        click.echo(f"Error: Invalid price format: {e}", err=True)
        ctx.exit(1)

    try:
        holding = service.update_market_price(holding_id, market_price, actor=get_actor(ctx))
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated {holding.symbol} price to {holding.current_market_price:,.4f}")
    click.echo(f"  Market value: {holding.market_value:,.2f}")


def register_commands(cli):
    """Register holding commands with main CLI."""
    cli.add_command(holding_group, name="holding")
