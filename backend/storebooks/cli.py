# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/storebooks/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--client "Acme"] [--admin-email admin@acme.local]
#   Create tables, seed pages/roles/access; optionally a first client and super admin.
# - python -m flask system seed-access
#   Idempotently seed pages, default roles and the default role/page matrix.
#
# Client management:
# - python -m flask clients list
# - python -m flask clients create --name "Acme Corp" [--contact-email ops@acme.com]
#
# Store management:
# - python -m flask stores create --client-id 1 --name "Main Street" [--location "Downtown"]
#
# User inspection/bootstrap:
# - python -m flask users list [--client-id 1]
# - python -m flask users create --client-id 1 --username admin --email admin@acme.com --role admin
#
# Security audit:
# - python -m flask security events [--client-id 1] [--limit 50]

import click
from flask.cli import with_appcontext

from .errors import StorebooksError
from .extensions import db
from .models import Client, Store, User, USER_ROLES, ROLE_SUPER_ADMIN
from .services import access_service, auth_service, security_service


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--client', 'client_name', default=None, help='Create a first client with this name')
@click.option('--admin-username', default='superadmin', help='Username for the first super admin')
@click.option('--admin-email', default=None, help='Create a super admin with this email in the first client')
@click.option('--admin-password', default=None, help='Password for the super admin (prompted if omitted)')
@with_appcontext
def init_system(client_name, admin_username, admin_email, admin_password):
    """
    Initialize storebooks: tables, pages, default roles, default access matrix.

    With --client, also creates that client (if no client of that name
    exists). With --admin-email, also creates a super_admin user in it.
    """
    click.echo("START Initializing storebooks...")

    db.create_all()
    click.echo("PASS Tables created")

    counts = access_service.seed_access()
    click.echo(
        f"PASS Seeded {counts['pages']} pages, {counts['roles']} roles, "
        f"{counts['access']} access entries"
    )

    if not client_name:
        if admin_email:
            click.echo("FAIL --admin-email requires --client")
        click.echo("DONE")
        return

    client = db.session.query(Client).filter_by(name=client_name).first()
    if client is None:
        client = Client(name=client_name)
        db.session.add(client)
        db.session.commit()
        click.echo(f"PASS Created client: {client.name} (ID: {client.id})")
    else:
        click.echo(f"PASS Using existing client: {client.name} (ID: {client.id})")

    if admin_email:
        password = admin_password or click.prompt(
            'Super admin password', hide_input=True, confirmation_prompt=True
        )
        try:
            user = auth_service.create_user(
                client_id=client.id,
                username=admin_username,
                email=admin_email,
                password=password,
                role=ROLE_SUPER_ADMIN,
            )
            click.echo(f"PASS Created super admin: {user.username} ({user.email})")
        except StorebooksError as e:
            click.echo(f"FAIL Could not create super admin: {e.message}")

    click.echo("DONE")


@system_group.command('seed-access')
@with_appcontext
def seed_access():
    """Seed pages, default roles, and the default role/page matrix."""
    counts = access_service.seed_access()
    click.echo(
        f"PASS Seeded {counts['pages']} pages, {counts['roles']} roles, "
        f"{counts['access']} access entries"
    )


# =============================================================================
# CLIENT MANAGEMENT COMMANDS (MULTI-TENANT)
# =============================================================================

@click.group('clients')
def clients_group():
    """Client (tenant) management commands."""


@clients_group.command('list')
@with_appcontext
def list_clients():
    """List all clients."""
    clients = db.session.query(Client).order_by(Client.id).all()

    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Name':<30} {'Active':<8} {'Stores':<8} {'Users'}")
    click.echo("="*72)

    for client in clients:
        store_count = db.session.query(Store).filter_by(client_id=client.id).count()
        user_count = db.session.query(User).filter_by(client_id=client.id).count()
        active_str = "Yes" if client.is_active else "No"
        click.echo(f"{client.id:<5} {client.name:<30} {active_str:<8} {store_count:<8} {user_count}")

    click.echo("="*72 + "\n")


@clients_group.command('create')
@click.option('--name', required=True, help='Client name')
@click.option('--contact-email', default=None, help='Contact email')
@click.option('--contact-phone', default=None, help='Contact phone')
@with_appcontext
def create_client_cli(name, contact_email, contact_phone):
    """Create a new client (tenant)."""
    client = Client(name=name, contact_email=contact_email, contact_phone=contact_phone)
    db.session.add(client)
    db.session.commit()
    click.echo(f"PASS Created client: {client.name} (ID: {client.id})")


# =============================================================================
# STORE MANAGEMENT COMMANDS
# =============================================================================

@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('create')
@click.option('--client-id', type=int, required=True, help='Client ID')
@click.option('--name', required=True, help='Store name')
@click.option('--location', default='', help='Store location')
@with_appcontext
def create_store_cli(client_id, name, location):
    """Add a store to a client."""
    client = db.session.get(Client, client_id)
    if not client:
        click.echo(f"FAIL Client ID {client_id} not found")
        return

    existing = db.session.query(Store).filter_by(client_id=client_id, name=name).first()
    if existing:
        click.echo(f"FAIL Store '{name}' already exists for this client")
        return

    store = Store(client_id=client_id, name=name, location=location)
    db.session.add(store)
    db.session.commit()
    click.echo(f"PASS Created store: {store.name} (ID: {store.id}) for client '{client.name}'")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--client-id', type=int, default=None, help='Only users of this client')
@with_appcontext
def list_users(client_id):
    """List users with their client and role."""
    query = db.session.query(User)
    if client_id is not None:
        query = query.filter_by(client_id=client_id)
    users = query.order_by(User.client_id, User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Client':<7} {'Username':<20} {'Email':<30} {'Role'}")
    click.echo("="*80)
    for user in users:
        click.echo(f"{user.id:<5} {user.client_id:<7} {user.username:<20} {user.email:<30} {user.role}")
    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--client-id', type=int, required=True, help='Client ID')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), default='client_user', help='Role')
@click.option('--store-id', type=int, default=None, help='Assigned store (same client)')
@with_appcontext
def create_user_cli(client_id, username, email, password, role, store_id):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = auth_service.create_user(
            client_id=client_id,
            username=username,
            email=email,
            password=password,
            role=role,
            store_id=store_id,
        )
    except StorebooksError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")


# =============================================================================
# SECURITY AUDIT COMMANDS
# =============================================================================

@click.group('security')
def security_group():
    """Security audit commands."""


@security_group.command('events')
@click.option('--client-id', type=int, default=None, help='Only events of this client')
@click.option('--type', 'event_type', default=None, help='Only events of this type')
@click.option('--limit', type=int, default=50, help='Maximum number of events')
@with_appcontext
def list_security_events(client_id, event_type, limit):
    """Show recent security events, newest first."""
    events = security_service.list_security_events(client_id=client_id, event_type=event_type, limit=limit)
    if not events:
        click.echo("No security events found.")
        return
    for event in events:
        data = event.to_dict()
        click.echo(
            f"{data['occurred_at']} {data['event_type']:<28} client={data['client_id']} "
            f"user={data['user_id']} {data['resource'] or '-'} {data['reason'] or ''}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(clients_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
    app.cli.add_command(security_group)
