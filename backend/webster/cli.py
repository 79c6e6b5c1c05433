# Overview: Flask CLI command groups for bootstrap, inspection, pack checks and maintenance.

# backend/webster/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email pharmacist@example.com --name "Jane Doe" --password "Password123!"
#   Create an account (prompts if options are omitted).
# - python -m flask users list
#
# Pack checks:
# - python -m flask packs check --email pharmacist@example.com
#   Walk through the three-step pack check interactively.
#
# Maintenance:
# - python -m flask maintenance cleanup --session-retention-days 30 --event-retention-days 90
#   Delete old expired/revoked sessions and old security events.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user, PasswordValidationError, UserValidationError
from .services import customer_service, team_service, security_service, session_service
from .services.ownership_service import AccessDeniedError
from .services.pack_check_wizard import PackCheckWizard
from .validation import NotFoundError, TIME_SLOTS, ValidationError
from .models import PACK_TYPES


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask users create' to add an account.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--name', prompt=True, default='', help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, name, password):
    """
    Create a new user account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email=email, password=password, name=name)
        click.echo(f"PASS Created user: {user.email} (ID: {user.id})")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except UserValidationError as e:
        click.echo(f"FAIL {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all user accounts."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {(user.name or ''):<25} {active_str}")

    click.echo("="*80 + "\n")


@click.group('packs')
def packs_group():
    """Pack check commands."""


def _print_entry(index: int, entry) -> None:
    click.echo(f"  [{index}] {entry.name} {entry.strength} ({entry.form}) x{entry.quantity}")


@packs_group.command('check')
@click.option('--email', prompt=True, help='Account the customer belongs to')
@with_appcontext
def pack_check_cli(email):
    """Interactive pack check: select, verify each time slot, confirm."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL No user with email {email}")
        return

    customers = customer_service.list_customers(user.id)
    members = team_service.list_team_members(user.id, active_only=True)
    if not customers:
        click.echo("FAIL No customers found. Add a customer first.")
        return
    if not members:
        click.echo("FAIL No active team members found. Add a team member first.")
        return

    initials_choice = click.Choice([m.initials for m in members], case_sensitive=False)
    wizard = PackCheckWizard(user.id)

    # Step 1: selection
    click.echo("\nStep 1: Select customer and pack")
    for customer in customers:
        click.echo(f"  {customer.id:<5} {customer.customer_code:<28} {customer.full_name()} ({customer.status})")

    wizard.select(
        customer_id=click.prompt("Customer ID", type=int),
        pharmacist_initials=click.prompt("Pharmacist initials", type=initials_choice),
        webster_pack_id=click.prompt("Webster pack ID"),
        pack_type=click.prompt("Pack type", type=click.Choice(PACK_TYPES), default="blister_packs"),
        notes=click.prompt("Notes", default="", show_default=False),
    )
    try:
        wizard.next()
    except (ValidationError, NotFoundError, AccessDeniedError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    # Step 2: verification, one time slot at a time
    click.echo("\nStep 2: Verify medications")
    for slot in TIME_SLOTS:
        slot_entries = [(i, e) for i, e in enumerate(wizard.entries) if e.time_slot == slot]
        if not slot_entries:
            continue
        click.echo(f"\n{slot.upper()}")
        for index, entry in slot_entries:
            _print_entry(index, entry)
            if not click.confirm("    Correct?", default=True):
                comment = click.prompt("    Comment", default="", show_default=False)
                wizard.mark(index, correct=False, comment=comment)
    wizard.next()

    # Step 3: confirmation
    incorrect = [e for e in wizard.entries if not e.correct]
    click.echo("\nStep 3: Confirm")
    click.echo(f"  Pack {wizard.webster_pack_id} ({wizard.pack_type}), {len(wizard.entries)} entries, "
               f"{len(incorrect)} marked incorrect")

    wizard.confirm(
        final_initials=click.prompt("Confirming pharmacist initials", type=initials_choice),
        final_notes=click.prompt("Final notes", default="", show_default=False),
    )
    if not click.confirm("Save pack check?", default=True):
        click.echo("Pack check discarded.")
        return

    try:
        pack_check = wizard.commit()
    except (ValidationError, NotFoundError, AccessDeniedError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Pack check {pack_check.id} saved for pack {pack_check.webster_pack_id}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup')
@click.option('--session-retention-days', type=int, default=30, show_default=True)
@click.option('--event-retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_cli(session_retention_days, event_retention_days):
    """Delete old expired/revoked sessions and old security events."""
    sessions = session_service.cleanup_expired_sessions(retention_days=session_retention_days)
    events = security_service.cleanup_security_events(retention_days=event_retention_days)
    click.echo(f"Deleted {sessions} sessions older than {session_retention_days} days.")
    click.echo(f"Deleted {events} security events older than {event_retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(packs_group)
    app.cli.add_command(maintenance_group)
