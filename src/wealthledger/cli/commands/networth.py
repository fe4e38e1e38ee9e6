"""Net worth commands."""

import click
from wealthledger.cli.context import build_networth, get_actor, resolve_entity_or_exit
from wealthledger.cli.date_filters import PERIODS, parse_date_or_exit, resolve_cli_date_range
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.entities import CalculationMethod


@click.group()
def networth_group():
    """Compute and review net worth snapshots."""
    pass


@networth_group.command("compute")
@click.argument("entity", metavar="ENTITY")
@click.option("--date", "as_of", help="Snapshot date (defaults to today)")
@click.option("--cost-basis", is_flag=True, help="Value holdings at average cost instead of market price")
@click.option(
    "--method",
    type=click.Choice([m.value for m in CalculationMethod]),
    default=CalculationMethod.AUTOMATIC.value,
    show_default=True,
)
@click.option("--notes", help="Notes stored on the snapshot")
@click.pass_context
def compute_networth(ctx, entity: str, as_of: str | None, cost_basis: bool, method: str, notes: str | None):
    """Compute net worth and store the snapshot for the date.

    Running it again for the same date refreshes the same snapshot.

    Examples:
        wealthledger networth compute JANE
        wealthledger networth compute JANE --date "end of last month" --cost-basis
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    as_of_date = parse_date_or_exit(ctx, as_of, "date")
    service = build_networth(ctx)

    try:
        breakdown = service.calculate(entity_id, as_of_date, include_unrealized=not cost_basis)
        snapshot = service.compute_and_snapshot(
            entity_id,
            as_of_date,
            include_unrealized=not cost_basis,
            actor=get_actor(ctx),
            calculation_method=CalculationMethod(method),
            notes=notes,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)

    click.echo(f"Net worth of entity {entity_id} on {as_of_date} ({snapshot.currency_code}):")
    click.echo(f"  Cash:              {breakdown.cash:>16,.2f}")
    click.echo(f"  Investments:       {breakdown.investments:>16,.2f}")
    click.echo(f"  Other assets:      {breakdown.other_assets:>16,.2f}")
    click.echo(f"  Other liabilities: {breakdown.other_liabilities:>16,.2f}")
    click.echo(f"  Loans:             {breakdown.loans:>16,.2f}")
    click.echo("-" * 37)
    click.echo(f"  Total assets:      {snapshot.total_assets:>16,.2f}")
    click.echo(f"  Total liabilities: {snapshot.total_liabilities:>16,.2f}")
    click.echo(f"  Net worth:         {snapshot.net_worth:>16,.2f}")


@networth_group.command("list")
@click.argument("entity", metavar="ENTITY")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@click.option("--period", type=click.Choice(PERIODS), help="Named period instead of explicit dates")
@click.pass_context
def list_networth(ctx, entity: str, start_date: str | None, end_date: str | None, period: str | None):
    """List stored net worth snapshots, oldest first."""
    entity_id = resolve_entity_or_exit(ctx, entity)
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)

    snapshots = build_networth(ctx).list_snapshots(entity_id, start_date=start, end_date=end)
    if not snapshots:
        click.echo("No snapshots found.")
        return

    click.echo(f"\n{'Date':10s} | {'Assets':>16} | {'Liabilities':>16} | {'Net worth':>16} | Method")
    click.echo("-" * 80)
    for snap in snapshots:
        click.echo(
            f"{snap.calculation_date.isoformat():10s} | {snap.total_assets:>16,.2f} | "
            f"{snap.total_liabilities:>16,.2f} | {snap.net_worth:>16,.2f} | {snap.calculation_method.value}"
        )


def register_commands(cli):
    """Register net worth commands with main CLI."""
    cli.add_command(networth_group, name="networth")
