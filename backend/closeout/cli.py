# Overview: Flask CLI command groups for bootstrap, accounting jobs, and maintenance.

# backend/closeout/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Bootstrap:
# - python -m flask db upgrade
#   Apply migrations (preferred for persistent databases).
# - python -m flask closeout init-db
#   Create all tables without migrations (idempotent; dev/test).
# - python -m flask closeout reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask closeout seed-demo
#   Create a demo store open 17:00-26:00 with tables and a small menu.
#
# Accounting:
# - python -m flask accounting date --store-id 1 [--at 2025-06-12T15:20:00Z]
#   Print the accounting date of an instant (default now).
# - python -m flask accounting recompute --store-id 1 --date 2025-06-12
#   Rebuild the daily aggregate for one date.
# - python -m flask accounting finalize --store-id 1 --date 2025-06-12
#   Freeze the daily aggregate for one date (one-way).
# - python -m flask accounting refresh [--store-id 1 ...]
#   Periodic job: recompute yesterday and today for every store, skipping finalized days.
# - python -m flask accounting checkout --store-id 1 --table-id 5
#   Check out a table from the command line.
# - python -m flask accounting purge-archive --before 2024-01-01 --yes
#   Delete completed cycles and archived orders older than the cutoff.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import DiningTable, MenuItem, MenuOption, MenuTopping, Store
from .services import business_hours_service, checkout_service, daily_sales_service, maintenance_service
from .services.business_calendar import format_business_hours
from .services.checkout_service import CheckoutFailed
from .services.daily_sales_service import AlreadyFinalized, DailySalesNotFound
from .time_utils import parse_iso_datetime

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


@click.group('closeout')
def closeout_group():
    """Database bootstrap commands."""


@closeout_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema created.")


@closeout_group.command('reset-db')
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

    click.echo("PASS Database reset complete. Run 'python -m flask closeout seed-demo' for demo data.")


@closeout_group.command('seed-demo')
@click.option('--name', default='Demo Izakaya', show_default=True)
@click.option('--code', default='DEMO', show_default=True)
@click.option('--timezone', default=None, help='IANA zone (default: CLOSEOUT_DEFAULT_TIMEZONE)')
@click.option('--tables', 'table_count', type=int, default=10, show_default=True)
@with_appcontext
def seed_demo(name, code, timezone, table_count):
    """Create a demo store open 17:00-26:00 with tables and a small menu."""
    store = db.session.query(Store).filter_by(code=code).first()
    if store:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")
    else:
        store = business_hours_service.create_store(name, code=code, timezone=timezone)
        click.echo(f"PASS Created store: {store.name} (ID: {store.id}, TZ: {store.timezone})")

    business_hours_service.set_business_hours(store.id, "17:00", "26:00")

    created = 0
    for number in range(1, table_count + 1):
        if not db.session.query(DiningTable).filter_by(store_id=store.id, number=number).first():
            db.session.add(DiningTable(store_id=store.id, number=number, capacity=4))
            created += 1

    if not db.session.query(MenuItem).filter_by(store_id=store.id).first():
        db.session.add_all([
            MenuItem(store_id=store.id, name="Draft Beer", price=600),
            MenuItem(store_id=store.id, name="Yakitori Set", price=1200),
            MenuItem(store_id=store.id, name="Edamame", price=400),
            MenuItem(store_id=store.id, name="Karaage", price=800),
            MenuOption(store_id=store.id, name="Large", price=200),
            MenuTopping(store_id=store.id, name="Extra Sauce", price=50),
        ])

    db.session.commit()
    hours = business_hours_service.get_business_hours(store.id)
    click.echo(f"PASS Business hours: {format_business_hours(hours)}")
    click.echo(f"PASS Created {created} tables.")


@click.group('accounting')
def accounting_group():
    """Accounting date, daily sales and checkout commands."""


@accounting_group.command('date')
@click.option('--store-id', type=int, required=True)
@click.option('--at', 'at_value', default=None, help='ISO-8601 instant (default: now)')
@with_appcontext
def accounting_date_cli(store_id, at_value):
    """Print the accounting date of an instant."""
    try:
        day = business_hours_service.get_accounting_date(store_id, parse_iso_datetime(at_value))
    except business_hours_service.StoreNotFound as e:
        raise click.ClickException(str(e))
    click.echo(day.isoformat())


@accounting_group.command('recompute')
@click.option('--store-id', type=int, required=True)
@click.option('--date', 'day', type=DATE_TYPE, required=True)
@with_appcontext
def recompute_cli(store_id, day):
    """Rebuild the daily aggregate for one date."""
    try:
        row = daily_sales_service.recompute(store_id, day.date())
    except (AlreadyFinalized, business_hours_service.StoreNotFound) as e:
        raise click.ClickException(str(e))
    click.echo(
        f"PASS {row.accounting_date}: orders={row.total_orders} items={row.total_items} "
        f"amount={row.total_amount} tax={row.tax_amount}"
    )


@accounting_group.command('finalize')
@click.option('--store-id', type=int, required=True)
@click.option('--date', 'day', type=DATE_TYPE, required=True)
@with_appcontext
def finalize_cli(store_id, day):
    """Freeze the daily aggregate for one date."""
    try:
        row = daily_sales_service.finalize(store_id, day.date())
    except DailySalesNotFound as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Finalized {row.accounting_date} for store {store_id}.")


@accounting_group.command('refresh')
@click.option('--store-id', 'store_ids', type=int, multiple=True, help='Limit to these stores')
@with_appcontext
def refresh_cli(store_ids):
    """
    Recompute yesterday and today for each store.

    Meant to be run periodically (cron, systemd timer); finalized days are skipped.
    """
    rows = daily_sales_service.refresh_open_days(store_ids=list(store_ids) or None)
    for row in rows:
        click.echo(f"  store={row.store_id} {row.accounting_date}: amount={row.total_amount}")
    click.echo(f"PASS Refreshed {len(rows)} daily aggregates.")


@accounting_group.command('checkout')
@click.option('--store-id', type=int, required=True)
@click.option('--table-id', type=int, required=True)
@with_appcontext
def checkout_cli(store_id, table_id):
    """Check out a table."""
    try:
        result = checkout_service.checkout(store_id, table_id)
    except checkout_service.TableNotFound as e:
        raise click.ClickException(str(e))
    except CheckoutFailed as e:
        raise click.ClickException(f"Checkout rolled back: {e.cause}")

    if not result.archived_orders:
        click.echo("PASS Nothing to check out.")
        return
    cycle = result.sales_cycle
    click.echo(
        f"PASS Cycle #{cycle.cycle_number} ({cycle.accounting_date}): "
        f"{result.archived_orders} orders, {result.total_items} items, amount {result.total_amount}"
    )


@accounting_group.command('purge-archive')
@click.option('--before', type=DATE_TYPE, required=True, help='Delete cycles with accounting date before this')
@click.option('--store-id', type=int, default=None)
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def purge_archive_cli(before, store_id, yes):
    """Delete completed cycles and their archived orders older than the cutoff."""
    if not yes:
        click.confirm(f"WARN This permanently deletes archived sales before {before.date().isoformat()}. Continue?", abort=True)

    deleted = maintenance_service.purge_archive(before=before.date(), store_id=store_id)
    click.echo(
        f"Deleted {deleted['cycles']} cycles, {deleted['orders']} orders, {deleted['items']} items."
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(closeout_group)
    app.cli.add_command(accounting_group)
