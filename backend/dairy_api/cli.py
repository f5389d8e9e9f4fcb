# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/dairy_api/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@dairy.local] [--mobile 9999999999] [--password "Password123!"]
#   Idempotent bootstrap: creates missing tables and the first ADMIN user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role AGENCY]
#   List users with role and active status.
# - python -m flask users create --name "Depot Admin" --email depot@dairy.local --password "Password123!" --role DepotAdmin --depot-id 1
#   Create a login account (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list [--role AGENCY] [--category WALLET]
#   List permission codes by category, optionally only those one role grants.
# - python -m flask perms show MANAGE_WALLETS
#   Show the name, description and category of one permission.
# - python -m flask perms check MEMBER CREATE_SUBSCRIPTION
#   Check whether a role grants a permission.
#
# Stock maintenance:
# - python -m flask stock recompute
#   Rebuild every variant's closing_qty from the stock ledger.

import click
from flask.cli import with_appcontext

from .errors import ConflictError
from .extensions import db
from .models import User
from .permissions import (
    ALL_CATEGORIES,
    ALL_ROLES,
    ROLE_ADMIN,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
    role_has_permission,
    validate_permission_code,
)
from .services import auth_service, stock_service
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--name', default='Administrator', show_default=True, help='Admin display name')
@click.option('--email', default='admin@dairy.local', show_default=True, help='Admin email')
@click.option('--mobile', default=None, help='Admin 10-digit mobile (optional)')
@click.option('--password', default='Password123!', show_default=True, help='Admin password')
@with_appcontext
def init_system(name, email, mobile, password):
    """
    Initialize the delivery system.

    Creates:
    - Any missing tables (no-op on a migrated database)
    - One ADMIN user, unless an ADMIN already exists

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing dairy delivery system...")
    db.create_all()
    click.echo("PASS Tables present")

    existing = db.session.query(User).filter_by(role=ROLE_ADMIN).first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email or existing.mobile} (ID: {existing.id})")
        return

    try:
        user = auth_service.create_user(
            name=name,
            password=password,
            role=ROLE_ADMIN,
            email=email,
            mobile=mobile,
        )
        db.session.commit()
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created admin user {user.email or user.mobile} (ID: {user.id})")
    click.echo("WARN Default password in use; change it before going live.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', default=None, help='Email address')
@click.option('--mobile', default=None, help='10-digit mobile number')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ALL_ROLES)), prompt=True, help='Role')
@click.option('--depot-id', type=int, default=None, help='Depot for DepotAdmin users')
@with_appcontext
def create_user_cli(name, email, mobile, password, role, depot_id):
    """
    Create a login account.

    At least one of --email / --mobile is required. MEMBER accounts also get
    a member profile with an empty wallet.
    """
    try:
        user = auth_service.create_user(
            name=name,
            password=password,
            role=role,
            email=email,
            mobile=mobile,
            depot_id=depot_id,
        )
        db.session.commit()
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created {role} user {user.email or user.mobile} (ID: {user.id})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(ALL_ROLES)), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    users = auth_service.list_users(role=role).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 96)
    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<30} {'Mobile':<12} {'Role':<12} {'Active'}")
    click.echo("=" * 96)

    for user in users:
        click.echo(
            f"{user.id:<5} {user.name[:23]:<24} {(user.email or '-')[:29]:<30} "
            f"{(user.mobile or '-'):<12} {user.role:<12} {'yes' if user.is_active else 'no'}"
        )

    click.echo("=" * 96 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(list(ALL_ROLES)), default=None, help='Only codes granted to this role')
@click.option('--category', type=click.Choice(list(ALL_CATEGORIES)), default=None, help='Only this category')
@with_appcontext
def list_perms(role, category):
    """List permission codes grouped by category."""
    granted = set(get_role_permissions(role)) if role else set(get_all_permission_codes())
    total = 0
    for name in ([category] if category else ALL_CATEGORIES):
        codes = [perm[0] for perm in get_permissions_by_category(name) if perm[0] in granted]
        if not codes:
            continue
        click.echo(f"[{name}]")
        for code in codes:
            click.echo(f"  {code}")
        total += len(codes)
    click.echo(f"\n{total} permission(s)")


@perms_group.command('show')
@click.argument('code')
@with_appcontext
def show_perm(code):
    """Show one permission's definition and the roles granting it."""
    definition = get_permission_definition(code)
    if definition is None:
        raise click.ClickException(f"Unknown permission code: {code}")
    click.echo(f"{definition['code']} ({definition['category']})")
    click.echo(f"  {definition['name']}: {definition['description']}")
    roles = [r for r in ALL_ROLES if role_has_permission(r, code)]
    click.echo(f"  Granted to: {', '.join(roles) if roles else 'no role'}")


@perms_group.command('check')
@click.argument('role', type=click.Choice(list(ALL_ROLES)))
@click.argument('code')
@with_appcontext
def check_perm(role, code):
    """Check whether ROLE grants permission CODE."""
    if not validate_permission_code(code):
        raise click.ClickException(f"Unknown permission code: {code}")
    if role_has_permission(role, code):
        click.echo(f"PASS {role} has {code}")
    else:
        click.echo(f"FAIL {role} does not have {code}")


@click.group('stock')
def stock_group():
    """Stock maintenance commands."""


@stock_group.command('recompute')
@with_appcontext
def recompute_stock():
    """Rebuild every variant's closing_qty from the stock ledger."""
    count = stock_service.recompute_all()
    db.session.commit()
    click.echo(f"PASS Recomputed closing stock for {count} variant(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(stock_group)
