# Overview: Flask CLI command groups for bootstrap, data files and user administration.

# backend/stockbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Store documents:
# - python -m flask store init
#   Create the documents table and seed default users and demo products (idempotent).
# - python -m flask store status
#   List stored documents with size and last write time.
# - python -m flask store export --kind products --format csv --output products.csv
#   Write products, sales or a full backup to a file (stdout without --output).
# - python -m flask store import --kind backup inventory-backup.json
#   Import a file; the format comes from the extension.
# - python -m flask store reset --yes
#   Delete products, sales and settings. Users are kept.
#
# Users:
# - python -m flask users list
# - python -m flask users create --username clerk --password "secret" --role sales

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import StoredDocument
from .records import ROLES, ROLE_SALES
from .services import export_service
from .services.auth_service import AuthService
from .services.catalog_service import Catalog
from .services.document_store import DocumentStore
from .services.import_service import DataImportError, ImportKind, import_file
from .services.maintenance_service import reset_system, seed_defaults
from .services.sales_service import Ledger
from .services.settings_service import get_settings
from .validation import ConflictError, ValidationError

KINDS = [k.value for k in ImportKind]


@click.group('store')
def store_group():
    """Stored document bootstrap, export, import and reset."""


@store_group.command('init')
@with_appcontext
def init_store():
    """Create tables and seed whatever default data is missing."""
    db.create_all()
    seeded = seed_defaults(DocumentStore())
    click.echo(f"PASS Store ready: {seeded['users']} user(s) and {seeded['products']} product(s) seeded")


@store_group.command('status')
@with_appcontext
def store_status():
    """List the stored documents with their size and last write time."""
    rows = db.session.query(StoredDocument).order_by(StoredDocument.key).all()
    if not rows:
        click.echo("No documents stored. Run 'python -m flask store init' first.")
        return

    for row in rows:
        info = row.to_dict()
        click.echo(f"{info['key']:<15} {info['size']:>10} bytes  {info['updated_at']}")


@store_group.command('export')
@click.option('--kind', type=click.Choice(KINDS), default='backup', show_default=True)
@click.option('--format', 'fmt', type=click.Choice(['json', 'csv']), default='json', show_default=True)
@click.option('--price-format', type=click.Choice(list(export_service.PRICE_FORMATS)), default='raw', show_default=True)
@click.option('--items', 'include_items', is_flag=True, help='Add the item count column to sales CSV')
@click.option('--output', type=click.File('w', encoding='utf-8'), default='-', help='Output file (default stdout)')
@with_appcontext
def export_store(kind, fmt, price_format, include_items, output):
    """Export products, sales or a full backup."""
    store = DocumentStore()
    products = Catalog(store).all()
    sales = Ledger(store).all()

    if kind == 'backup':
        if fmt != 'json':
            click.echo("FAIL A backup can only be exported as JSON")
            return
        body = export_service.backup_to_json(products, sales, get_settings(store))
    elif kind == 'products':
        body = (export_service.products_to_csv(products, price_format) if fmt == 'csv'
                else export_service.products_to_json(products))
    else:
        body = (export_service.sales_to_csv(sales, include_items=include_items) if fmt == 'csv'
                else export_service.sales_to_json(sales))

    output.write(body)


@store_group.command('import')
@click.option('--kind', type=click.Choice(KINDS), required=True, help='What the file holds')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_store(kind, path):
    """Import a JSON or CSV file (products CSV rows are appended)."""
    fmt = path.rsplit('.', 1)[-1].lower()
    with open(path, encoding='utf-8') as handle:
        content = handle.read()

    try:
        result = import_file(DocumentStore(), kind, content, fmt)
    except DataImportError as e:
        click.echo(f"FAIL {e}")
        for error in e.errors:
            click.echo(f"     {error}")
        return

    click.echo(f"PASS Imported {result['imported']} record(s) as {result['kind']} ({result['mode']})")


@store_group.command('reset')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_store(yes):
    """
    DANGER: Delete all products, sales and settings.

    Users are kept.
    """
    if not yes:
        click.confirm("WARN This will DELETE all products, sales and settings. Are you sure?", abort=True)

    reset_system(DocumentStore())
    click.echo("PASS Products, sales and settings deleted.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = AuthService(DocumentStore()).list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 50)
    click.echo(f"{'ID':<15} {'Username':<20} {'Role'}")
    click.echo("=" * 50)
    for user in users:
        click.echo(f"{user.id:<15} {user.username:<20} {user.role}")
    click.echo("=" * 50 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default=ROLE_SALES, show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, password, role):
    """Create a user. The password is stored as a bcrypt hash."""
    try:
        user = AuthService(DocumentStore()).create_user(username, password, role)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} with role '{user.role}' (ID: {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(users_group)
