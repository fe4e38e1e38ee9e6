"""Commands for other assets, liabilities and loans."""

import click
from wealthledger.cli.context import get_actor, get_db, resolve_entity_or_exit
from wealthledger.cli.date_filters import parse_date_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.balance_sheet import BalanceSheetService
from wealthledger.domain.entities import (
    ItemCategory,
    LiabilityType,
    PaymentFrequency,
    ValuationMethod,
)
from wealthledger.utils.amount_parser import parse_amount


@click.group()
def item_group():
    """Manage other assets, liabilities and loans."""
    pass


def _amount_or_exit(ctx, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _add_item(ctx, category: ItemCategory, entity, name, subcategory, value, original_value, method, valuation_date):
    entity_id = resolve_entity_or_exit(ctx, entity)
    service = BalanceSheetService(get_db(ctx))
    current = _amount_or_exit(ctx, value, "value")
    original = _amount_or_exit(ctx, original_value, "original value")
    valued_on = parse_date_or_exit(ctx, valuation_date, "valuation date")

    try:
        item_id = service.add_item(
            entity_id=entity_id,
            category=category,
            subcategory=subcategory,
            item_name=name,
            current_value=current,
            actor=get_actor(ctx),
            original_value=original,
            valuation_method=ValuationMethod(method),
            last_valuation_date=valued_on,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added {category.value.lower()} '{name}' (ID: {item_id})")


_item_options = [
    click.argument("entity", metavar="ENTITY"),
    click.argument("name", metavar="ITEM_NAME"),
    click.option("--subcategory", default="Other", show_default=True, help="Grouping, e.g. 'Real Estate'"),
    click.option("--value", required=True, help="Current value"),
    click.option("--original-value", help="Acquisition value (defaults to current value)"),
    click.option(
        "--method",
        type=click.Choice([m.value for m in ValuationMethod]),
        default=ValuationMethod.COST.value,
        show_default=True,
        help="Valuation method",
    ),
    click.option("--date", "valuation_date", help="Valuation date (defaults to today)"),
]


def _with_item_options(func):
    for option in reversed(_item_options):
        func = option(func)
    return func


@item_group.command("add-asset")
@_with_item_options
@click.pass_context
def add_asset(ctx, entity, name, subcategory, value, original_value, method, valuation_date):
    """Register a non-tradable asset (property, vehicle...).

    Examples:
        wealthledger item add-asset JANE "Home" --subcategory "Real Estate" --value 350000
    """
    _add_item(ctx, ItemCategory.ASSET, entity, name, subcategory, value, original_value, method, valuation_date)


@item_group.command("add-liability")
@_with_item_options
@click.pass_context
def add_liability(ctx, entity, name, subcategory, value, original_value, method, valuation_date):
    """Register a generic liability (tax due, private debt...)."""
    _add_item(ctx, ItemCategory.LIABILITY, entity, name, subcategory, value, original_value, method, valuation_date)


@item_group.command("add-loan")
@click.argument("entity", metavar="ENTITY")
@click.argument("name", metavar="LOAN_NAME")
@click.option(
    "--type",
    "liability_type",
    type=click.Choice([t.value for t in LiabilityType]),
    default=LiabilityType.PERSONAL_LOAN.value,
    show_default=True,
    help="Loan type",
)
@click.option("--principal", required=True, help="Principal amount")
@click.option("--outstanding", help="Outstanding balance (defaults to the principal)")
@click.option("--interest-rate", help="Annual interest rate in percent")
@click.option("--emi", help="Installment amount")
@click.option("--start-date", help="Start date (defaults to today)")
@click.option("--maturity-date", help="Maturity date")
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in PaymentFrequency]),
    default=PaymentFrequency.MONTHLY.value,
    show_default=True,
    help="Payment frequency",
)
@click.option("--lender", help="Lender entity ID, code or name")
@click.option("--currency", default="USD", show_default=True, help="Loan currency")
@click.pass_context
def add_loan(
    ctx,
    entity: str,
    name: str,
    liability_type: str,
    principal: str,
    outstanding: str | None,
    interest_rate: str | None,
    emi: str | None,
    start_date: str | None,
    maturity_date: str | None,
    frequency: str,
    lender: str | None,
    currency: str,
):
    """Register a loan, mortgage or credit line.

    Examples:
        wealthledger item add-loan JANE "Mortgage" --type Mortgage --principal 250000 --outstanding 180000
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    lender_id = resolve_entity_or_exit(ctx, lender) if lender else None
    service = BalanceSheetService(get_db(ctx))

    try:
        loan_id = service.add_loan(
            entity_id=entity_id,
            liability_type=LiabilityType(liability_type),
            liability_name=name,
            principal_amount=_amount_or_exit(ctx, principal, "principal"),
            start_date=parse_date_or_exit(ctx, start_date, "start date"),
            actor=get_actor(ctx),
            outstanding_balance=_amount_or_exit(ctx, outstanding, "outstanding balance"),
            interest_rate=_amount_or_exit(ctx, interest_rate, "interest rate"),
            emi_amount=_amount_or_exit(ctx, emi, "installment"),
            maturity_date=parse_date_or_exit(ctx, maturity_date, "maturity date") if maturity_date else None,
            payment_frequency=PaymentFrequency(frequency),
            lender_entity_id=lender_id,
            currency_code=currency,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added loan '{name}' (ID: {loan_id})")


@item_group.command("list")
@click.option("--entity", help="Entity ID, code or name")
@click.option("--active-only", is_flag=True, help="Hide deactivated items")
@click.pass_context
def list_items(ctx, entity: str | None, active_only: bool):
    """List assets, liabilities and loans."""
    entity_id = resolve_entity_or_exit(ctx, entity) if entity else None
    service = BalanceSheetService(get_db(ctx))

    items = service.list_items(entity_id=entity_id, active_only=active_only)
    loans = service.list_loans(entity_id=entity_id, active_only=active_only)
    if not items and not loans:
        click.echo("No items found.")
        return

    if items:
        click.echo("\nAssets and liabilities:")
        click.echo("-" * 80)
        for it in items:
            status = "" if it.is_active else " (inactive)"
            click.echo(
                f"ID: {it.id:3d} | {it.category.value:9s} | {it.item_name:25s} | "
                f"{it.current_value:>14,.2f} {it.currency_code}{status}"
            )
    if loans:
        click.echo("\nLoans:")
        click.echo("-" * 80)
        for loan in loans:
            status = "" if loan.is_active else " (inactive)"
            click.echo(
                f"ID: {loan.id:3d} | {loan.liability_type.value:12s} | {loan.liability_name:25s} | "
                f"{loan.outstanding_balance:>14,.2f} {loan.currency_code}{status}"
            )


@item_group.command("revalue")
@click.argument("item_id", type=int)
@click.argument("value")
@click.option(
    "--method",
    type=click.Choice([m.value for m in ValuationMethod]),
    help="Valuation method",
)
@click.option("--date", "valuation_date", help="Valuation date (defaults to today)")
@click.pass_context
def revalue_item(ctx, item_id: int, value: str, method: str | None, valuation_date: str | None):
    """Record a new value for an asset or liability item."""
    service = BalanceSheetService(get_db(ctx))
    try:
        item = service.revalue_item(
            item_id,
            _amount_or_exit(ctx, value, "value"),
            actor=get_actor(ctx),
            valuation_method=ValuationMethod(method) if method else None,
            valuation_date=parse_date_or_exit(ctx, valuation_date, "valuation date"),
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Revalued '{item.item_name}' to {item.current_value:,.2f}")


@item_group.command("loan-balance")
@click.argument("loan_id", type=int)
@click.argument("balance")
@click.pass_context
def update_loan_balance(ctx, loan_id: int, balance: str):
    """Record the outstanding balance of a loan."""
    service = BalanceSheetService(get_db(ctx))
    try:
        loan = service.update_loan_balance(loan_id, _amount_or_exit(ctx, balance, "balance"), actor=get_actor(ctx))
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Outstanding balance of '{loan.liability_name}' is now {loan.outstanding_balance:,.2f}")


def register_commands(cli):
    """Register item commands with main CLI."""
    cli.add_command(item_group, name="item")
