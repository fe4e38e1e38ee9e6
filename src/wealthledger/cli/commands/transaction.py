"""Transaction inspection and annotation commands."""

import click
from wealthledger.cli.context import get_actor, get_db, resolve_entity_or_exit
from wealthledger.cli.date_filters import PERIODS, parse_date_or_exit, resolve_cli_date_range
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.entities import ReconciliationStatus, TransactionCategory
from wealthledger.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Inspect and annotate posted transactions."""
    pass


@transaction_group.command("list")
@click.option("--entity", help="Entity ID, code or name")
@click.option("--account", "account_id", type=int, help="Bank account ID")
@click.option("--category", type=click.Choice([c.value for c in TransactionCategory]), help="Category")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'end of last month')")
@click.option("--period", type=click.Choice(PERIODS), help="Named period instead of explicit dates")
@click.pass_context
def list_transactions(
    ctx,
    entity: str | None,
    account_id: int | None,
    category: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
):
    """List transactions, newest first."""
    entity_id = resolve_entity_or_exit(ctx, entity) if entity else None
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    service = TransactionService(get_db(ctx))

    transactions = service.list_transactions(
        entity_id=entity_id,
        account_id=account_id,
        start_date=start,
        end_date=end,
        category=TransactionCategory(category) if category else None,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(f"{'ID':>5} | {'Date':10s} | {'Category':10s} | {'Amount':>16} | {'Account':>7} | Description")
    click.echo("-" * 100)
    for txn in transactions:
        account = str(txn.account_id) if txn.account_id is not None else "-"
        description = txn.description or ""
        if txn.is_reversal:
            description = f"[reverses {txn.reverses_transaction_id}] {description}".strip()
        click.echo(
            f"{txn.id:5d} | {txn.transaction_date.isoformat():10s} | {txn.category.value:10s} | "
            f"{txn.amount:>12,.2f} {txn.currency_code} | {account:>7} | {description}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show one transaction with its investment detail."""
    service = TransactionService(get_db(ctx))
    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"Transaction ID: {txn.id}")
    click.echo(f"  Date: {txn.transaction_date}")
    click.echo(f"  Entity: {txn.entity_id}")
    click.echo(f"  Category: {txn.category.value} ({txn.transaction_type.value})")
    click.echo(f"  Amount: {txn.amount:,.4f} {txn.currency_code}")
    click.echo(f"  Base amount: {txn.amount_base_currency:,.4f} (rate {txn.exchange_rate})")
    click.echo(f"  Tax: {txn.tax_amount:,.4f}  Net: {txn.net_amount:,.4f}")
    if txn.account_id is not None:
        click.echo(f"  Account: {txn.account_id}")
    if txn.transaction_reference:
        click.echo(f"  Reference: {txn.transaction_reference}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")
    if txn.notes:
        click.echo(f"  Notes: {txn.notes}")
    click.echo(f"  Reconciliation: {txn.reconciliation_status.value}")
    if txn.is_reversal:
        click.echo(f"  Reverses: {txn.reverses_transaction_id}")

    detail = service.get_asset_detail(transaction_id)
    if detail is not None:
        target = f"holding {detail.holding_id}" if detail.holding_id else f"item {detail.asset_liability_id}"
        click.echo(f"  {detail.action.value} on {target}: {detail.quantity:,.8f} @ {detail.price_per_unit:,.4f}")
        click.echo(f"  Fees: {detail.fees_and_charges:,.4f}  Realized: {detail.realized_gain_loss:,.4f}")


@transaction_group.command("annotate")
@click.argument("transaction_id", type=int)
@click.option("--description", help="New description")
@click.option("--notes", help="New notes")
@click.pass_context
def annotate_transaction(ctx, transaction_id: int, description: str | None, notes: str | None):
    """Edit the description or notes of a transaction.

    Financial fields cannot be edited once posted; reverse the transaction instead.
    """
    changes = {}
    if description is not None:
        changes["description"] = description
    if notes is not None:
        changes["notes"] = notes
    if not changes:
        click.echo("Error: Nothing to update; pass --description or --notes", err=True)
        ctx.exit(1)

    service = TransactionService(get_db(ctx))
    try:
        service.update_transaction(transaction_id, actor=get_actor(ctx), **changes)
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("reconcile")
@click.argument("transaction_id", type=int)
@click.option(
    "--status",
    type=click.Choice([s.value for s in ReconciliationStatus]),
    default=ReconciliationStatus.RECONCILED.value,
    show_default=True,
)
@click.option("--date", "reconciled_date", help="Reconciliation date (defaults to today)")
@click.pass_context
def reconcile_transaction(ctx, transaction_id: int, status: str, reconciled_date: str | None):
    """Set the reconciliation status of a transaction."""
    service = TransactionService(get_db(ctx))
    try:
        txn = service.reconcile(
            transaction_id,
            actor=get_actor(ctx),
            status=ReconciliationStatus(status),
            reconciled_date=parse_date_or_exit(ctx, reconciled_date, "reconciliation date"),
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Transaction {transaction_id} is {txn.reconciliation_status.value}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
