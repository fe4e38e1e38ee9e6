"""Bank account management commands."""

import click
from wealthledger.cli.context import get_actor, get_db, resolve_entity_or_exit
from wealthledger.cli.date_filters import parse_date_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.account import AccountService
from wealthledger.domain.entities import AccountType
from wealthledger.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("entity", metavar="ENTITY")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--number", "account_number", required=True, help="Account number (unique per entity)")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.CHECKING.value,
    show_default=True,
    help="Account type",
)
@click.option("--currency", default="USD", show_default=True, help="Account currency")
@click.option("--opening-balance", default="0", help="Opening balance")
@click.option("--opening-date", help="Opening date (YYYY-MM-DD or relative)")
@click.pass_context
def create_account(
    ctx,
    entity: str,
    name: str,
    account_number: str,
    bank: str | None,
    account_type: str,
    currency: str,
    opening_balance: str,
    opening_date: str | None,
):
    """Create a bank account for an entity.

    Examples:
        wealthledger account create JANE "Everyday" --number 1234 --bank "Chase"
        wealthledger account create 1 "Savings" --number 9876 --type Savings --opening-balance 1000
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    service = AccountService(get_db(ctx))

    try:
        balance = parse_amount(opening_balance)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)
    opened = parse_date_or_exit(ctx, opening_date, "opening date") if opening_date else None

    try:
        account_id = service.create_account(
            entity_id=entity_id,
            account_number=account_number,
            account_name=name,
            bank_name=bank if bank is not None else name,
            account_type=AccountType(account_type),
            actor=get_actor(ctx),
            currency_code=currency,
            opening_balance=balance,
            opening_date=opened,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--entity", help="Entity ID, code or name")
@click.option("--active-only", is_flag=True, help="Hide deactivated accounts")
@click.pass_context
def list_accounts(ctx, entity: str | None, active_only: bool):
    """List bank accounts."""
    entity_id = resolve_entity_or_exit(ctx, entity) if entity else None
    service = AccountService(get_db(ctx))

    accounts = service.list_accounts(entity_id=entity_id, active_only=active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.account_name:20s} | Bank: {acc.bank_name:15s} | "
            f"{acc.current_balance:>14,.2f} {acc.currency_code}{status}"
        )


@account_group.command("verify")
@click.argument("account_id", type=int)
@click.pass_context
def verify_account(ctx, account_id: int):
    """Check an account's balance against its posted transactions.

    Exits with status 1 if the stored balance differs from the ledger.
    """
    service = AccountService(get_db(ctx))
    try:
        result = service.verify_balance(account_id)
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)

    click.echo(f"Account {account_id}: {result.transaction_count} transaction(s)")
    click.echo(f"  Recorded balance: {result.recorded_balance:,.4f}")
    click.echo(f"  Ledger balance:   {result.expected_balance:,.4f}")
    if result.is_consistent:
        click.echo("Balance is consistent.")
    else:
        click.echo(f"Error: Balance differs by {result.difference:,.4f}", err=True)
        ctx.exit(1)


@account_group.command("deactivate")
@click.argument("account_id", type=int)
@click.pass_context
def deactivate_account(ctx, account_id: int):
    """Deactivate a bank account. Its history is kept."""
    service = AccountService(get_db(ctx))
    try:
        service.deactivate_account(account_id, actor=get_actor(ctx))
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account {account_id}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
