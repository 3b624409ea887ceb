# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/wms/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Identity sync:
# - python -m flask identity sync events.json
#   Replay exported identity-provider events (a JSON list of webhook payloads).
#
# Permission inspection:
# - python -m flask perms list --role manager
#   List permissions (optionally filtered by role or category).
#
# Search:
# - python -m flask search backfill
#   Generate search vectors for every product that lacks one.
#
# Maintenance:
# - python -m flask maintenance purge-orphans
#   Delete memberships, invitations, stores and products whose parent is gone.

import json

import click
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .permissions import (
    PERMISSION_DEFINITIONS,
    ROLES,
    get_role_permissions,
    get_permission_definition,
)
from .services import identity_service, search_service, warehouse_service
from .services.embedding_client import EmbeddingException


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete")


@click.group('identity')
def identity_group():
    """Identity-provider sync commands."""


@identity_group.command('sync')
@click.argument('events_file', type=click.File('r'))
@with_appcontext
def sync_identities(events_file):
    """
    Apply exported identity events (user.created / user.updated / user.deleted).

    EVENTS_FILE holds a JSON list of webhook payloads, applied in order.
    """
    try:
        events = json.load(events_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}")
    if not isinstance(events, list):
        raise click.ClickException("Expected a JSON list of events")

    counts = {}
    for index, event in enumerate(events):
        try:
            action = identity_service.apply_identity_event(event)
        except ServiceError as e:
            action = "failed"
            click.echo(f"FAIL Event #{index}: {e}")
        counts[action] = counts.get(action, 0) + 1

    summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "nothing to do"
    click.echo(f"PASS Applied {len(events)} events ({summary})")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List all permissions, optionally filtered by role or category."""
    if role:
        if role not in ROLES:
            click.echo(f"FAIL Role '{role}' not found (expected one of: {', '.join(ROLES)})")
            return
        codes = get_role_permissions(role)
        click.echo(f"\nPermissions for role '{role}':")
        click.echo("="*80)
        shown = 0
        for code in codes:
            definition = get_permission_definition(code)
            if category and definition["category"] != category:
                continue
            click.echo(f"  {code:<22} {definition['name']}")
            shown += 1
        click.echo(f"\nTotal: {shown} permissions")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'Code':<22} {'Category':<12} {'Roles':<24} {'Description'}")
    click.echo("="*80)
    shown = 0
    for code, _name, description, perm_category in PERMISSION_DEFINITIONS:
        if category and perm_category != category:
            continue
        holders = ",".join(r for r in ROLES if code in get_role_permissions(r))
        click.echo(f"{code:<22} {perm_category:<12} {holders:<24} {description}")
        shown += 1
    click.echo(f"\nTotal: {shown} permissions")


@click.group('search')
def search_group():
    """Search vector maintenance commands."""


@search_group.command('backfill')
@with_appcontext
def backfill_vectors():
    """Generate search vectors for products that have none."""
    try:
        result = search_service.backfill_missing_vectors()
    except EmbeddingException as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Processed {result['processed']} products ({result['errors']} errors)")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('purge-orphans')
@with_appcontext
def purge_orphans_cli():
    """
    Delete rows whose parent warehouse or store no longer exists.

    Safe to run repeatedly.
    """
    counts = warehouse_service.purge_orphans()
    click.echo(
        "Purged {memberships} memberships, {invitations} invitations, "
        "{stores} stores, {products} products.".format(**counts)
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(identity_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(search_group)
    app.cli.add_command(maintenance_group)
