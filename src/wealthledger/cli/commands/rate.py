"""Exchange rate commands."""

import click
from wealthledger.cli.context import build_rates
from wealthledger.cli.date_filters import parse_date_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.utils.amount_parser import parse_rate


@click.group()
def rate_group():
    """Record and look up exchange rates."""
    pass


@rate_group.command("set")
@click.argument("from_currency")
@click.argument("to_currency")
@click.argument("rate")
@click.option("--date", "rate_date", help="Rate date (defaults to today)")
@click.option("--source", help="Where the rate came from")
@click.pass_context
def set_rate(ctx, from_currency: str, to_currency: str, rate: str, rate_date: str | None, source: str | None):
    """Record how many TO_CURRENCY one FROM_CURRENCY buys.

    Examples:
        wealthledger rate set EUR USD 1.0850 --date 2024-01-31
    """
    service = build_rates(ctx)
    try:
        value = parse_rate(rate)
    except ValueError as e:
        click.echo(f"Error: Invalid rate format: {e}", err=True)
        ctx.exit(1)
    on_date = parse_date_or_exit(ctx, rate_date, "rate date")

    try:
        service.set_rate(from_currency, to_currency, on_date, value, source=source)
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Set {from_currency.upper()}/{to_currency.upper()} = {value} on {on_date}")


@rate_group.command("show")
@click.argument("from_currency")
@click.argument("to_currency")
@click.option("--date", "rate_date", help="Lookup date (defaults to today)")
@click.pass_context
def show_rate(ctx, from_currency: str, to_currency: str, rate_date: str | None):
    """Show the rate in effect on a date."""
    service = build_rates(ctx)
    on_date = parse_date_or_exit(ctx, rate_date, "rate date")
    try:
        value = service.find_rate(from_currency, to_currency, on_date)
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    if value is None:
        click.echo(f"Error: No rate for {from_currency.upper()}/{to_currency.upper()} on or before {on_date}", err=True)
        ctx.exit(1)
    click.echo(f"{from_currency.upper()}/{to_currency.upper()} = {value}")


def register_commands(cli):
    """Register rate commands with main CLI."""
    cli.add_command(rate_group, name="rate")
