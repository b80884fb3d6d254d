# Overview: Flask CLI command groups for bootstrap, demo data, and maintenance.

# backend/invoicedesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the default admin account and the default models.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables and delete every upload.
# - python -m flask system seed-demo
#   Add the demo employee (test@example.com) for trying the email autofill.
#
# Admin account:
# - python -m flask admin reset-password
#   Set a new admin password without knowing the current one (prompts).
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired admin sessions now instead of waiting for the hourly sweep.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import ValidationError
from .services import auth_service
from .services import catalog_service
from .services import employee_service
from .services import session_service
from .services import upload_storage


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the database.

    Creates:
    - all tables (no-op for existing ones)
    - the admin account (DEFAULT_ADMIN_USERNAME / DEFAULT_ADMIN_PASSWORD)
    - the default catalog models that are missing

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing invoice desk...")

    db.create_all()
    click.echo("PASS Tables ready")

    existed = auth_service.get_admin_settings() is not None
    settings = auth_service.ensure_admin_settings()
    if existed:
        click.echo(f"PASS Using existing admin account: {settings.username}")
    else:
        click.echo(f"PASS Created admin account: {settings.username}")

    created = catalog_service.seed_default_models()
    click.echo(f"PASS Seeded {created} default model(s)")

    click.echo("\n" + "="*60)
    click.echo("DONE Invoice desk initialized")
    click.echo("="*60)
    if not existed:
        click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
        click.echo(f"   {settings.username} / {current_app.config['DEFAULT_ADMIN_PASSWORD']}")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables, recreate the schema and delete all uploads.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    removed = upload_storage.clear_uploads()
    click.echo(f"DELETE  Removed {removed} uploaded file(s)")

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Add the demo employee so the email autofill can be tried out."""
    employee = employee_service.seed_demo_employee()
    click.echo(f"PASS Demo employee ready: {employee.email} ({employee.store_name})")


@click.group('admin')
def admin_group():
    """Admin account commands."""


@admin_group.command('reset-password')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def reset_password_cli(password):
    """Set the admin password without the current one (account recovery)."""
    try:
        auth_service.reset_password(password)
    except ValidationError as e:
        click.echo(f"FAIL {str(e)}")
        raise SystemExit(1)
    click.echo("PASS Admin password updated")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete admin sessions whose expiry has passed."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired admin session(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admin_group)
    app.cli.add_command(maintenance_group)
