"""Lookup entity management commands."""

import asyncio

import click

from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.entities import LookupTable
from ledgerline.domain.errors import DomainError
from ledgerline.domain.lookup import LookupService

LOOKUP_KINDS = {
    "group": LookupTable.GROUP,
    "category": LookupTable.CATEGORY,
    "payer": LookupTable.PAYER,
    "mode": LookupTable.PAYMENT_MODE,
}

kind_argument = click.argument("kind", type=click.Choice(list(LOOKUP_KINDS), case_sensitive=False))


@click.group()
def lookup_group():
    """Manage expense groups, categories, payers and payment modes."""
    pass


@lookup_group.command("list")
@kind_argument
@click.pass_context
def list_entities(ctx, kind: str):
    """List all entities of KIND."""
    service = LookupService(ctx.obj["db"])
    table = LOOKUP_KINDS[kind.lower()]

    entities = asyncio.run(service.list_entities(table))
    if not entities:
        click.echo(f"No {table.label.lower()} entries found.")
        return

    click.echo(f"\n{table.label} entries:")
    for entity in entities:
        click.echo(f"  {entity.name} (ID: {entity.id})")


@lookup_group.command("add")
@kind_argument
@click.argument("name")
@click.pass_context
def add_entity(ctx, kind: str, name: str):
    """Add an entity NAME of KIND."""
    service = LookupService(ctx.obj["db"])
    table = LOOKUP_KINDS[kind.lower()]

    try:
        entity = asyncio.run(service.add_entity(table, name))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created {table.label.lower()} '{entity.name}' (ID: {entity.id})")


@lookup_group.command("rename")
@kind_argument
@click.argument("entity_id", type=int)
@click.argument("name")
@click.pass_context
def rename_entity(ctx, kind: str, entity_id: int, name: str):
    """Rename entity ENTITY_ID of KIND to NAME."""
    service = LookupService(ctx.obj["db"])
    table = LOOKUP_KINDS[kind.lower()]

    try:
        entity = asyncio.run(service.rename_entity(table, entity_id, name))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Renamed {table.label.lower()} {entity.id} to '{entity.name}'")


@lookup_group.command("delete")
@kind_argument
@click.argument("entity_id", type=int)
@click.pass_context
def delete_entity(ctx, kind: str, entity_id: int):
    """Delete entity ENTITY_ID of KIND (only if no expense uses it)."""
    service = LookupService(ctx.obj["db"])
    table = LOOKUP_KINDS[kind.lower()]

    try:
        asyncio.run(service.delete_entity(table, entity_id))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted {table.label.lower()} {entity_id}")


def register_commands(cli):
    """Register lookup commands with main CLI."""
    cli.add_command(lookup_group, name="lookup")
