# Overview: Flask CLI command groups for bootstrap, outbox processing and settings maintenance.

# backend/ironpress/cli.py
# Commands Legend (run from the backend directory):
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system create-super-admin --email root@ironpress.local --name "Platform Admin"
#   Create the platform-wide SUPER_ADMIN user (prompts for the password).
# - python -m flask system seed-demo
#   Approved demo store with admin/employee users, default catalog and settings.
#
# Notifications:
# - python -m flask notifications process --limit 100
#   Drain PENDING outbox jobs (use with NOTIFICATION_DISPATCH_MODE=outbox).
#
# Settings:
# - python -m flask settings migrate-legacy [--store-id <id>]
#   Rename legacy setting keys (emailNotificationsEnabled, ...) to canonical keys.

import click
from flask.cli import with_appcontext

from .errors import IronPressError
from .extensions import db
from .models import Store, User
from .models.auth import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_SUPER_ADMIN
from .services import (
    auth_service,
    category_service,
    notification_service,
    settings_service,
)
from .services.auth_service import PasswordValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for demo data.")


@system_group.command('create-super-admin')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_super_admin(name, email, password):
    """
    Create a SUPER_ADMIN user (no store).

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = auth_service.create_user(name=name, email=email, password=password, role=ROLE_SUPER_ADMIN)
        click.echo(f"PASS Created super admin: {user.email}")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except IronPressError as e:
        click.echo(f"FAIL {e.message}")


@system_group.command('seed-demo')
@click.option('--store-name', default='IronPress Demo Laundry', show_default=True)
@click.option('--store-email', default='demo@ironpress.local', show_default=True)
@click.option('--password', default='Password123!', show_default=True, help='Password for demo users')
@with_appcontext
def seed_demo(store_name, store_email, password):
    """Idempotent demo tenant: approved store, admin + employee, catalog, settings."""
    store = db.session.query(Store).filter_by(email=store_email).first()
    if not store:
        store = Store(name=store_name, email=store_email, city="Pune", state="Maharashtra", is_approved=True, is_active=True)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created store {store.name} ({store.id})")
    else:
        click.echo(f"SKIP Store {store.name} already exists ({store.id})")

    def ensure_user(name: str, email: str, role: str) -> None:
        if db.session.query(User.id).filter_by(email=email).first():
            click.echo(f"SKIP User {email} already exists")
            return
        auth_service.create_user(name=name, email=email, password=password, role=role, store_id=store.id)
        click.echo(f"PASS Created {role} {email}")

    try:
        ensure_user("Demo Admin", "admin@ironpress.local", ROLE_ADMIN)
        ensure_user("Demo Counter", "counter@ironpress.local", ROLE_EMPLOYEE)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        return

    seeded = category_service.seed_default_categories(store.id)
    click.echo(f"PASS Seeded {seeded} categories")
    added = settings_service.seed_default_settings(store.id)
    click.echo(f"PASS Seeded {added} default settings")


@click.group('notifications')
def notifications_group():
    """Notification outbox commands."""


@notifications_group.command('process')
@click.option('--limit', type=int, default=100, show_default=True, help='Maximum jobs to process')
@with_appcontext
def process_notifications(limit):
    """Drain PENDING notification jobs, oldest first."""
    summary = notification_service.process_pending_jobs(limit=limit)
    click.echo(
        f"Processed {summary['claimed']} job(s): "
        f"{summary['done']} done, {summary['retrying']} retrying, {summary['failed']} failed."
    )


@click.group('settings')
def settings_group():
    """Store settings maintenance commands."""


@settings_group.command('migrate-legacy')
@click.option('--store-id', default=None, help='Only migrate this store')
@with_appcontext
def migrate_legacy(store_id):
    """Rename legacy setting keys to their canonical names."""
    try:
        migrated = settings_service.migrate_legacy_settings(store_id)
    except IronPressError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Migrated {migrated} legacy setting row(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(notifications_group)
    app.cli.add_command(settings_group)
