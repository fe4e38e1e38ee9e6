"""Audit trail commands."""

import json

import click
from wealthledger.cli.context import get_db
from wealthledger.domain.audit import AuditRecorder

TABLES = [
    "entities",
    "bank_accounts",
    "holdings",
    "assets_and_liabilities",
    "liabilities",
    "transactions",
    "networth",
]


@click.group()
def audit_group():
    """Review the audit trail."""
    pass


@audit_group.command("show")
@click.argument("table", type=click.Choice(TABLES))
@click.argument("record_id", type=int)
@click.option("--verbose", "-v", is_flag=True, help="Show full before/after values")
@click.pass_context
def show_history(ctx, table: str, record_id: int, verbose: bool):
    """Show the change history of one record.

    Examples:
        wealthledger audit show transactions 12
        wealthledger audit show holdings 3 -v
    """
    records = AuditRecorder(get_db(ctx)).history(table, record_id)
    if not records:
        click.echo("No audit records found.")
        return

    click.echo(f"\nHistory of {table} {record_id}:")
    click.echo("-" * 80)
    for rec in records:
        click.echo(f"{rec.change_timestamp:%Y-%m-%d %H:%M:%S} | {rec.action.value:6s} | by {rec.changed_by}")
        if rec.action.value == "UPDATE" and rec.old_values and rec.new_values:
            changed = sorted(k for k in rec.new_values if rec.old_values.get(k) != rec.new_values.get(k))
            for key in changed:
                click.echo(f"    {key}: {rec.old_values.get(key)} -> {rec.new_values.get(key)}")
        if verbose:
            if rec.old_values is not None:
                click.echo(f"    old: {json.dumps(rec.old_values, sort_keys=True)}")
            if rec.new_values is not None:
                click.echo(f"    new: {json.dumps(rec.new_values, sort_keys=True)}")


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
