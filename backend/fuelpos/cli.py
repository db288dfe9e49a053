# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/fuelpos/cli.py
# Commands (run from the backend directory with FLASK_APP=fuelpos):
#
# System bootstrap:
# - flask system init [--station "Main Station"]
#   Idempotent: creates tables, a default station and admin/manager/cashier users.
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask system seed-demo
#   Sample station, fuel products, tanks, customers, supplier and an opening entry.
#
# Stations:
# - flask stations list
# - flask stations create --name "Harbour Road" --timezone "Africa/Lagos"
#
# Users:
# - flask users list [--station-id 1]
# - flask users create --username jane --password "Password123!" --role manager --station-id 1
#
# Stock:
# - flask stock reconcile [--station-id 1]
#   Compare each tank's stored stock with the sum of its movements.

import click
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import Station, Tank, User
from .services import auth_service, journal_service, party_service, product_service, stock_service, station_service
from .services.access_service import SYSTEM_ACTOR
from .services.auth_service import PasswordValidationError

DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--station', 'station_name', default='Main Station', help='Default station name')
@with_appcontext
def init_system(station_name):
    """
    Create the schema, a default station and the default users.

    Users: admin, manager, cashier, all with password "Password123!".
    Change them immediately outside development.
    """
    click.echo("START Initializing FuelPOS...")
    db.create_all()

    station = db.session.query(Station).order_by(Station.id.asc()).first()
    if station is None:
        station = station_service.create_station({"name": station_name})
        click.echo(f"PASS Created default station: {station.name} (ID: {station.id})")
    else:
        click.echo(f"PASS Using existing station: {station.name} (ID: {station.id})")

    default_users = [
        ("admin", "admin", None),
        ("manager", "manager", station.id),
        ("cashier", "cashier", station.id),
    ]
    for username, role, station_id in default_users:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"SKIP User {username} already exists")
            continue
        auth_service.create_user(
            username,
            DEFAULT_PASSWORD,
            role=role,
            station_id=station_id,
            email=f"{username}@fuelpos.local",
        )
        click.echo(f"PASS Created user: {username} ({role})")

    click.echo(f"\nDONE Default password for all users: {DEFAULT_PASSWORD}")


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

    click.echo("PASS Database reset complete. Run 'flask system init' to initialize.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load a small demo station with fuel, tanks and parties."""
    db.create_all()
    if db.session.query(Station).filter_by(name="Main Street Fuel").first():
        click.echo("SKIP Demo station already exists")
        return

    try:
        station = station_service.create_station({
            "name": "Main Street Fuel",
            "location": "123 Main St, Cityville",
            "contact_number": "555-0199",
        })
        petrol = product_service.create_product(
            {"name": "95 Octane Petrol", "category": "fuel", "unit": "L", "current_price_cents": 25000},
            SYSTEM_ACTOR,
        )
        diesel = product_service.create_product(
            {"name": "High Speed Diesel", "category": "fuel", "unit": "L", "current_price_cents": 27000},
            SYSTEM_ACTOR,
        )
        stock_service.create_tank(station.id, petrol.id, "Tank 1 - Petrol", 10000, SYSTEM_ACTOR,
                                  current_stock=7500, minimum_level=1000)
        stock_service.create_tank(station.id, diesel.id, "Tank 2 - Diesel", 15000, SYSTEM_ACTOR,
                                  current_stock=12000, minimum_level=2000)

        party_service.create_customer(station.id, {
            "name": "John Doe",
            "customer_type": "regular",
            "contact_phone": "555-1111",
            "email": "john@example.com",
        }, SYSTEM_ACTOR)
        fleet = party_service.create_customer(station.id, {
            "name": "City Transport Co",
            "customer_type": "credit",
            "contact_phone": "555-2222",
            "email": "fleet@citytransport.com",
            "credit_limit_cents": 10_000_000,
        }, SYSTEM_ACTOR)
        party_service.set_customer_balance(fleet.id, 5_000_000, SYSTEM_ACTOR)
        party_service.create_supplier(station.id, {
            "name": "National Oil Corp",
            "contact_name": "Sales Dept",
            "contact_phone": "555-9999",
            "email": "orders@nationaloil.com",
        }, SYSTEM_ACTOR)

        journal_service.create_journal_entry(
            station.id,
            [
                {"account_code": "1001", "debit_cents": 100000},
                {"account_code": "4001", "credit_cents": 100000},
            ],
            SYSTEM_ACTOR,
            description="Initial Cash Sales Record",
        )
    except ServiceError as e:
        click.echo(f"FAIL Seeding failed: {e.message}")
        return

    click.echo(f"PASS Seeded demo station {station.name} (ID: {station.id})")


@click.group('stations')
def stations_group():
    """Station management commands."""


@stations_group.command('list')
@with_appcontext
def list_stations_cli():
    """List all stations."""
    stations = station_service.list_stations()
    if not stations:
        click.echo("No stations found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<12} {'Timezone':<22} {'Active'}")
    click.echo("=" * 80)
    for station in stations:
        active_str = "Yes" if station.is_active else "No"
        click.echo(f"{station.id:<5} {station.name:<30} {station.code or '-':<12} {station.timezone:<22} {active_str}")
    click.echo("=" * 80 + "\n")


@stations_group.command('create')
@click.option('--name', required=True, help='Station name')
@click.option('--code', help='Short code (unique)')
@click.option('--location', help='Address or description')
@click.option('--timezone', 'tz_name', help='IANA time zone, e.g. Africa/Lagos')
@with_appcontext
def create_station_cli(name, code, location, tz_name):
    """Create a station with default settings and chart of accounts."""
    payload = {"name": name, "code": code, "location": location}
    if tz_name:
        payload["timezone"] = tz_name
    try:
        station = station_service.create_station(payload)
    except ServiceError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created station: {station.name} (ID: {station.id}, TZ: {station.timezone})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'manager', 'cashier']), prompt=True, help='Role')
@click.option('--station-id', type=int, help='Station (required for manager and cashier)')
@click.option('--email', help='Email address')
@click.option('--full-name', help='Display name')
@with_appcontext
def create_user_cli(username, password, role, station_id, email, full_name):
    """
    Create a user.

    Password must be 8+ characters with uppercase, lowercase, digit and
    special character.
    """
    try:
        user = auth_service.create_user(
            username,
            password,
            role=role,
            station_id=station_id,
            full_name=full_name,
            email=email,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        return
    except ServiceError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        return
    click.echo(f"PASS Created user: {user.username} with role '{user.role}'")


@users_group.command('list')
@click.option('--station-id', type=int, help='Filter by station ID')
@with_appcontext
def list_users_cli(station_id):
    """List users with role and station."""
    users = auth_service.list_users(station_id)
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<10} {'Station':<9} {'Active'}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        station_str = str(user.station_id) if user.station_id else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<10} {station_str:<9} {active_str}")
    click.echo("=" * 80 + "\n")


@click.group('stock')
def stock_group():
    """Tank stock maintenance commands."""


@stock_group.command('reconcile')
@click.option('--station-id', type=int, help='Only tanks of this station')
@with_appcontext
def reconcile_cli(station_id):
    """Report tanks whose stored stock differs from their movement ledger."""
    query = db.session.query(Tank)
    if station_id:
        query = query.filter(Tank.station_id == station_id)
    tanks = query.order_by(Tank.station_id.asc(), Tank.id.asc()).all()
    if not tanks:
        click.echo("No tanks found.")
        return

    drifted = 0
    for tank in tanks:
        result = stock_service.reconcile_tank(tank.id)
        if result["in_sync"]:
            click.echo(f"PASS Tank {tank.id} ({tank.name}): {result['current_stock']}")
        else:
            drifted += 1
            click.echo(
                f"WARN Tank {tank.id} ({tank.name}): stored {result['current_stock']}, "
                f"movements {result['movement_total']}, drift {result['drift']}"
            )
    click.echo(f"\nDONE {len(tanks)} tanks checked, {drifted} out of sync")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stations_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
