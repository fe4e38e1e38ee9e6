"""Entity management commands."""

import click
from wealthledger.cli.context import get_actor, get_db, resolve_entity_or_exit
from wealthledger.cli.error_handling import LEDGER_ERRORS, handle_domain_error
from wealthledger.domain.entities import EntityType
from wealthledger.domain.entity import EntityService


@click.group()
def entity_group():
    """Manage entities (people, companies, funds...)."""
    pass


@entity_group.command("create")
@click.argument("name", metavar="ENTITY_NAME")
@click.option(
    "--type",
    "entity_type",
    type=click.Choice([t.value for t in EntityType]),
    default=EntityType.PERSON.value,
    show_default=True,
    help="Entity type",
)
@click.option("--code", help="Unique short code used to refer to the entity")
@click.option("--tax-id", help="Tax identification number")
@click.option("--country", help="Country")
@click.option("--email", help="Contact email")
@click.pass_context
def create_entity(
    ctx,
    name: str,
    entity_type: str,
    code: str | None,
    tax_id: str | None,
    country: str | None,
    email: str | None,
):
    """Create a new entity.

    Examples:
        wealthledger entity create "Jane Doe" --code JANE
        wealthledger entity create "Doe Holdings" --type Company --country US
    """
    service = EntityService(get_db(ctx))
    try:
        entity_id = service.create_entity(
            entity_type=EntityType(entity_type),
            entity_name=name,
            actor=get_actor(ctx),
            entity_code=code,
            tax_identification_number=tax_id,
            country=country,
            email=email,
        )
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created entity '{name}' (ID: {entity_id})")


@entity_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide deactivated entities")
@click.pass_context
def list_entities(ctx, active_only: bool):
    """List entities."""
    service = EntityService(get_db(ctx))

    entities = service.list_entities(active_only=active_only)
    if not entities:
        click.echo("No entities found.")
        return

    click.echo("\nEntities:")
    click.echo("-" * 70)
    for ent in entities:
        status = "" if ent.is_active else " (inactive)"
        code = ent.entity_code or "-"
        click.echo(
            f"ID: {ent.id:3d} | {ent.entity_name:25s} | {ent.entity_type.value:15s} | Code: {code}{status}"
        )


@entity_group.command("deactivate")
@click.argument("entity", metavar="ENTITY")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def deactivate_entity(ctx, entity: str, yes: bool):
    """Deactivate an entity and everything it owns.

    ENTITY can be an entity ID, code or name. Accounts, holdings, items and
    loans of the entity are deactivated too. Nothing is deleted.
    """
    entity_id = resolve_entity_or_exit(ctx, entity)
    service = EntityService(get_db(ctx))

    if not yes and not click.confirm(f"Deactivate entity {entity_id} and all its positions?"):
        click.echo("Deactivation cancelled.")
        return

    try:
        changed = service.deactivate_entity(entity_id, actor=get_actor(ctx))
    except LEDGER_ERRORS as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated entity {entity_id} ({changed} record(s) updated)")


def register_commands(cli):
    """Register entity commands with main CLI."""
    cli.add_command(entity_group, name="entity")
