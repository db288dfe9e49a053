"""
Pytest fixtures for FuelPOS backend tests.

Provides an in-memory application per test, two stations, users for each
role, fuel products with tanks, and login helpers.
"""

import pytest

from fuelpos import create_app
from fuelpos.extensions import db
from fuelpos.services import auth_service, party_service, product_service, station_service, stock_service
from fuelpos.services.access_service import SYSTEM_ACTOR, Actor

PASSWORD = "Passw0rd!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
        'DEFAULT_STATION_TIMEZONE': 'UTC',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def station(app):
    return station_service.create_station({"name": "Main Street Fuel", "code": "MSF"})


@pytest.fixture(scope='function')
def station_b(app):
    return station_service.create_station({"name": "Harbour Road", "code": "HRB"})


@pytest.fixture(scope='function')
def petrol(app):
    return product_service.create_product(
        {"name": "95 Octane Petrol", "category": "fuel", "unit": "L", "current_price_cents": 250},
        SYSTEM_ACTOR,
    )


@pytest.fixture(scope='function')
def diesel(app):
    return product_service.create_product(
        {"name": "High Speed Diesel", "category": "fuel", "unit": "L", "current_price_cents": 270},
        SYSTEM_ACTOR,
    )


@pytest.fixture(scope='function')
def petrol_tank(station, petrol):
    """10,000 L tank holding 5,000 L, low below 1,000 L."""
    return stock_service.create_tank(
        station.id, petrol.id, "Tank 1 - Petrol", 10000, SYSTEM_ACTOR,
        current_stock=5000, minimum_level=1000,
    )


@pytest.fixture(scope='function')
def diesel_tank(station, diesel):
    return stock_service.create_tank(
        station.id, diesel.id, "Tank 2 - Diesel", 15000, SYSTEM_ACTOR,
        current_stock=100, minimum_level=500,
    )


@pytest.fixture(scope='function')
def customer(station):
    return party_service.create_customer(
        station.id,
        {"name": "City Transport Co", "customer_type": "credit", "credit_limit_cents": 100000},
        SYSTEM_ACTOR,
    )


@pytest.fixture(scope='function')
def supplier(station):
    return party_service.create_supplier(station.id, {"name": "National Oil Corp"}, SYSTEM_ACTOR)


@pytest.fixture(scope='function')
def admin_user(app):
    return auth_service.create_user("admin", PASSWORD, role="admin")


@pytest.fixture(scope='function')
def manager_user(station):
    return auth_service.create_user("manager", PASSWORD, role="manager", station_id=station.id)


@pytest.fixture(scope='function')
def cashier_user(station):
    return auth_service.create_user("cashier", PASSWORD, role="cashier", station_id=station.id)


@pytest.fixture(scope='function')
def other_manager_user(station_b):
    return auth_service.create_user("manager_b", PASSWORD, role="manager", station_id=station_b.id)


@pytest.fixture(scope='function')
def manager_actor(manager_user):
    return Actor(user_id=manager_user.id, role="manager", station_id=manager_user.station_id)


@pytest.fixture(scope='function')
def cashier_actor(cashier_user):
    return Actor(user_id=cashier_user.id, role="cashier", station_id=cashier_user.station_id)


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin"))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, "manager"))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, "cashier"))


@pytest.fixture(scope='function')
def other_manager_headers(client, other_manager_user):
    return auth_headers(get_auth_token(client, "manager_b"))
