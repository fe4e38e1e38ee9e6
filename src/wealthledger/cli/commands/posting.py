"""Posting commands: post, reverse and action."""

import click
from wealthledger.cli.context import build_poster, get_actor, resolve_entity_or_exit
from wealthledger.cli.date_filters import parse_date_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.entities import (
    AssetAction,
    AssetDetail,
    NewTransaction,
    TransactionCategory,
    TransactionType,
)
from wealthledger.utils.amount_parser import parse_amount, parse_quantity, parse_rate


def _parse_or_exit(ctx, parser, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parser(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


@click.command("post")
@click.argument("entity", metavar="ENTITY")
@click.option(
    "--category",
    type=click.Choice([c.value for c in TransactionCategory]),
    required=True,
    help="Transaction category",
)
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([t.value for t in TransactionType]),
    default=TransactionType.OTHER.value,
    show_default=True,
    help="Transaction type",
)
@click.option("--amount", required=True, help="Amount (non-negative)")
@click.option("--date", "txn_date", help="Transaction date (defaults to today)")
@click.option("--value-date", help="Value date")
@click.option("--account", "account_id", type=int, help="Bank account ID whose balance is adjusted")
@click.option("--currency", help="Currency (defaults to the account's, else the base currency)")
@click.option("--rate", "exchange_rate", help="Exchange rate to the base currency")
@click.option("--tax", default="0", help="Tax amount")
@click.option("--reference", help="Unique transaction reference")
@click.option("--counterparty", help="Counterparty entity ID, code or name")
@click.option("--subcategory", help="Subcategory")
@click.option("--description", help="Description")
@click.option("--notes", help="Notes")
@click.option("--holding", "holding_id", type=int, help="Holding ID for an investment transaction")
@click.option("--item", "item_id", type=int, help="Asset/liability item ID for an asset transaction")
@click.option("--action", type=click.Choice([a.value for a in AssetAction]), help="Asset action")
@click.option("--quantity", default="0", help="Units (or split ratio such as 2:1)")
@click.option("--price", default="0", help="Price per unit")
@click.option("--fees", default="0", help="Fees and charges")
@click.pass_context
def post_transaction(
    ctx,
    entity: str,
    category: str,
    transaction_type: str,
    amount: str,
    txn_date: str | None,
    value_date: str | None,
    account_id: int | None,
    currency: str | None,
    exchange_rate: str | None,
    tax: str,
    reference: str | None,
    counterparty: str | None,
    subcategory: str | None,
    description: str | None,
    notes: str | None,
    holding_id: int | None,
    item_id: int | None,
    action: str | None,
    quantity: str,
    price: str,
    fees: str,
):
    """Post a transaction.

    Examples:
        wealthledger post JANE --category Deposit --amount 1000 --account 1
        wealthledger post JANE --category Purchase --type Investment --amount 1500 \\
            --holding 1 --action Buy --quantity 10 --price 150
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    counterparty_id = resolve_entity_or_exit(ctx, counterparty) if counterparty else None

    detail = None
    if holding_id is not None or item_id is not None:
        if action is None:
            click.echo("Error: --action is required with --holding or --item", err=True)
            ctx.exit(1)
        detail = AssetDetail(
            action=AssetAction(action),
            quantity=_parse_or_exit(ctx, parse_quantity, quantity, "quantity"),
            price_per_unit=_parse_or_exit(ctx, parse_amount, price, "price"),
            fees_and_charges=_parse_or_exit(ctx, parse_amount, fees, "fees"),
            holding_id=holding_id,
            asset_liability_id=item_id,
        )
    elif action is not None:
        click.echo("Error: --action requires --holding or --item", err=True)
        ctx.exit(1)

    new_transaction = NewTransaction(
        entity_id=entity_id,
        transaction_date=parse_date_or_exit(ctx, txn_date, "date"),
        category=TransactionCategory(category),
        transaction_type=TransactionType(transaction_type),
        amount=_parse_or_exit(ctx, parse_amount, amount, "amount"),
        currency_code=currency,
        exchange_rate=_parse_or_exit(ctx, parse_rate, exchange_rate, "rate"),
        tax_amount=_parse_or_exit(ctx, parse_amount, tax, "tax"),
        account_id=account_id,
        counterparty_entity_id=counterparty_id,
        transaction_reference=reference,
        value_date=parse_date_or_exit(ctx, value_date, "value date") if value_date else None,
        subcategory=subcategory,
        description=description,
        notes=notes,
        asset_detail=detail,
    )

    try:
        posted = build_poster(ctx).post(new_transaction, actor=get_actor(ctx))
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)

    txn = posted.transaction
    click.echo(f"Posted transaction {txn.id}")
    click.echo(f"  Date: {txn.transaction_date}")
    click.echo(f"  Category: {txn.category.value}")
    click.echo(f"  Amount: {txn.amount:,.2f} {txn.currency_code}")
    if posted.account is not None:
        click.echo(f"  Account balance: {posted.account.current_balance:,.2f}")
    if posted.holding is not None:
        click.echo(
            f"  Holding {posted.holding.symbol}: {posted.holding.quantity:,.8f} @ "
            f"{posted.holding.average_cost_price:,.4f}"
        )
    if posted.asset_transaction is not None and posted.asset_transaction.realized_gain_loss:
        click.echo(f"  Realized gain/loss: {posted.asset_transaction.realized_gain_loss:,.4f}")


@click.command("reverse")
@click.argument("transaction_id", type=int)
@click.option("--date", "reversal_date", help="Reversal date (defaults to today)")
@click.pass_context
def reverse_transaction(ctx, transaction_id: int, reversal_date: str | None):
    """Post an offsetting transaction for a cash transaction."""
    on_date = parse_date_or_exit(ctx, reversal_date, "reversal date")
    try:
        posted = build_poster(ctx).reverse(transaction_id, actor=get_actor(ctx), reversal_date=on_date)
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed transaction {transaction_id} with transaction {posted.transaction.id}")
    if posted.account is not None:
        click.echo(f"  Account balance: {posted.account.current_balance:,.2f}")


@click.command("action")
@click.argument("holding_id", type=int)
@click.argument("action", type=click.Choice([a.value for a in AssetAction]))
@click.option("--quantity", default="0", help="Units (or split ratio such as 2:1)")
@click.option("--price", default="0", help="Price per unit")
@click.pass_context
def apply_action(ctx, holding_id: int, action: str, quantity: str, price: str):
    """Apply a corporate action to a holding without posting a transaction.

    Examples:
        wealthledger action 1 Split --quantity 2:1
        wealthledger action 1 Bonus --quantity 5
    """
    try:
        result = build_poster(ctx).apply_corporate_action(
            holding_id,
            AssetAction(action),
            _parse_or_exit(ctx, parse_quantity, quantity, "quantity"),
            _parse_or_exit(ctx, parse_amount, price, "price"),
            actor=get_actor(ctx),
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Applied {action} to holding {holding_id}")
    click.echo(f"  Quantity: {result.quantity:,.8f}")
    click.echo(f"  Average cost: {result.average_cost:,.4f}")
    if result.realized_gain_loss:
        click.echo(f"  Realized gain/loss: {result.realized_gain_loss:,.4f}")


def register_commands(cli):
    """Register posting commands with main CLI."""
    cli.add_command(post_transaction)
    cli.add_command(reverse_transaction)
    cli.add_command(apply_action)
