# Overview: Flask CLI command groups for seeding, backup/restore, reports and inspection.

# backend/sgpro/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Data bootstrap/backup:
# - python -m flask data seed
#   Create default users and sample products in empty collections.
# - python -m flask data export [--output backup.json]
#   Write a full backup (passwords redacted) to a file or stdout.
# - python -m flask data import backup.json [--merge]
#   Restore a backup. Without --merge products/sales/expenses are replaced.
# - python -m flask data clear --yes
#   Remove products, sales, expenses and logs; users and settings are kept.
#
# Reports:
# - python -m flask reports stock
# - python -m flask reports financial [--start 2025-01-01] [--end 2025-12-31]
# - python -m flask reports sales [--start ...] [--end ...]
# - python -m flask reports profit [--start ...] [--end ...]
#   Print the report as JSON.
#
# Inspection:
# - python -m flask users list
#   List users with profile and active status.
# - python -m flask logs list [--action login] [--module system] [--limit 20]
#   Show recent audit log entries.

import json

import click
from flask.cli import with_appcontext

from .decorators import get_store
from .services import import_service, reporting_service
from .utils import format_date, format_datetime


@click.group('data')
def data_group():
    """Seed, export, import and clear the persisted data."""


@data_group.command('seed')
@with_appcontext
def seed_data():
    """Create default users and sample products where collections are empty."""
    store = get_store()
    created_users = not store.users
    created_products = not store.products

    if created_users:
        store.create_default_users()
    if created_products:
        store.create_sample_products()
    store.save_to_storage()

    click.echo(f"PASS Users: {'created defaults' if created_users else 'already present, skipped'}")
    click.echo(f"PASS Products: {'created samples' if created_products else 'already present, skipped'}")


@data_group.command('export')
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), help='Destination file (default: stdout)')
@with_appcontext
def export_data(output):
    """Export every collection as JSON."""
    body = json.dumps(import_service.export_all_data(get_store()), ensure_ascii=False, indent=2)

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(body)
        click.echo(f"PASS Backup written to {output}")
    else:
        click.echo(body)


@data_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--merge', is_flag=True, help='Keep existing products/sales/expenses; merge users by id')
@with_appcontext
def import_data(path, merge):
    """Restore a JSON backup."""
    with open(path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in {path}: {e}")

    try:
        summary = import_service.import_data(get_store(), payload, merge=merge)
    except import_service.DataImportError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Imported ({'merge' if merge else 'replace'}): "
               f"{summary['products']} products, {summary['sales']} sales, "
               f"{summary['expenses']} expenses, {summary['users']} users, "
               f"settings {'updated' if summary['settings'] else 'unchanged'}")


@data_group.command('clear')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_data(yes):
    """Remove products, sales, expenses and logs."""
    if not yes:
        click.confirm("WARN This will DELETE products, sales, expenses and logs. Are you sure?", abort=True)

    import_service.clear_all_data(get_store())
    click.echo("PASS Data cleared. Users and settings were kept.")


@click.group('reports')
def reports_group():
    """Print reports as JSON."""


def _echo_report(report: dict) -> None:
    click.echo(json.dumps(report, ensure_ascii=False, indent=2))


@reports_group.command('stock')
@with_appcontext
def stock_report():
    _echo_report(reporting_service.stock_report(get_store()))


@reports_group.command('financial')
@click.option('--start', default=None, help='YYYY-MM-DD (inclusive)')
@click.option('--end', default=None, help='YYYY-MM-DD (inclusive)')
@with_appcontext
def financial_report(start, end):
    try:
        _echo_report(reporting_service.financial_report(get_store(), start, end))
    except reporting_service.ReportError as e:
        raise click.ClickException(str(e))


@reports_group.command('sales')
@click.option('--start', default=None, help='YYYY-MM-DD (inclusive)')
@click.option('--end', default=None, help='YYYY-MM-DD (inclusive)')
@with_appcontext
def sales_report(start, end):
    try:
        _echo_report(reporting_service.sales_report(get_store(), start, end))
    except reporting_service.ReportError as e:
        raise click.ClickException(str(e))


@reports_group.command('profit')
@click.option('--start', default=None, help='YYYY-MM-DD (inclusive)')
@click.option('--end', default=None, help='YYYY-MM-DD (inclusive)')
@with_appcontext
def profit_report(start, end):
    try:
        _echo_report(reporting_service.profit_report(get_store(), start, end))
    except reporting_service.ReportError as e:
        raise click.ClickException(str(e))


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with profile and active status."""
    users = get_store().users

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<16} {'Username':<16} {'Name':<26} {'Profile':<10} {'Active':<7} {'Created':<11} {'Last login'}")
    click.echo("="*110)

    for user in users:
        active_str = "Yes" if user.active else "No"
        last_login = format_datetime(user.last_login) if user.last_login else "Never"
        click.echo(f"{user.id:<16} {user.username or '-':<16} {user.full_name or '-':<26} {user.profile or '-':<10} "
                   f"{active_str:<7} {format_date(user.created_at):<11} {last_login}")

    click.echo("="*110)
    click.echo(f"Total: {len(users)} users\n")


@click.group('logs')
def logs_group():
    """Audit log inspection commands."""


@logs_group.command('list')
@click.option('--action', default=None, help='Filter by action (create, update, delete, login, logout, system)')
@click.option('--module', default=None, help='Filter by module (products, sales, expenses, users, system)')
@click.option('--limit', default=20, show_default=True, help='Maximum entries to show')
@with_appcontext
def list_logs(action, module, limit):
    """Show the most recent audit log entries."""
    entries = get_store().filter_logs({"action": action, "module": module})[:limit]

    if not entries:
        click.echo("No log entries found.")
        return

    for entry in entries:
        click.echo(f"{format_datetime(entry.timestamp)}  {entry.action:<7} {entry.module:<9} {entry.user_name or '-':<20} {entry.details}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(data_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(users_group)
    app.cli.add_command(logs_group)
