"""
Concurrent sales against one nearly empty tank and one credit customer.

Runs on a file-backed SQLite database so each worker thread has its own
connection. Whatever the interleaving, the tank never goes negative, every
successful sale is reflected in the stock and the customer balance, and the
movement log still sums to the stored stock.
"""

import threading
from decimal import Decimal

import pytest

from fuelpos import create_app
from fuelpos.errors import InsufficientStockError
from fuelpos.extensions import db
from fuelpos.models import SalesTransaction
from fuelpos.services import party_service, product_service, sales_service, station_service, stock_service
from fuelpos.services.access_service import SYSTEM_ACTOR

WORKERS = 10
OPENING_STOCK = 6


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.sqlite3'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {"connect_args": {"timeout": 30, "check_same_thread": False}},
        'BCRYPT_ROUNDS': 4,
        'DEFAULT_STATION_TIMEZONE': 'UTC',
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def stocked(file_app):
    """A station with a tank holding OPENING_STOCK litres after one warm-up sale."""
    with file_app.app_context():
        station = station_service.create_station({"name": "Main Street Fuel", "code": "MSF"})
        product = product_service.create_product(
            {"name": "95 Octane Petrol", "category": "fuel", "unit": "L", "current_price_cents": 250},
            SYSTEM_ACTOR,
        )
        tank = stock_service.create_tank(
            station.id, product.id, "Tank 1", 1000, SYSTEM_ACTOR, current_stock=OPENING_STOCK + 1,
        )
        # Creates the invoice and journal number rows so workers only ever update them
        sales_service.create_sales_transaction(
            {"station_id": station.id}, [{"product_id": product.id, "quantity": 1}], SYSTEM_ACTOR
        )
        return station.id, product.id, tank.id


def test_parallel_sales_never_oversell(file_app, stocked):
    station_id, product_id, tank_id = stocked
    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(WORKERS)

    def worker():
        with file_app.app_context():
            start.wait()
            try:
                sales_service.create_sales_transaction(
                    {"station_id": station_id}, [{"product_id": product_id, "quantity": 1}], SYSTEM_ACTOR
                )
                result = "sold"
            except InsufficientStockError:
                result = "refused"
            except Exception as exc:  # surfaced through the assertion below
                result = f"error: {exc!r}"
            finally:
                db.session.remove()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=120)

    assert len(outcomes) == WORKERS
    assert [o for o in outcomes if o.startswith("error")] == []
    sold = outcomes.count("sold")
    assert sold == OPENING_STOCK

    with file_app.app_context():
        tank = stock_service.get_tank(tank_id)
        assert tank.current_stock == Decimal("0")
        assert tank.status == "empty"
        assert stock_service.reconcile_tank(tank_id)["in_sync"] is True

        invoices = [t.invoice_number for t in db.session.query(SalesTransaction).all()]
        assert len(invoices) == len(set(invoices)) == sold + 1


def _run_together(file_app, jobs):
    """Start every job at the same instant; return each job's outcome."""
    outcomes = [None] * len(jobs)
    start = threading.Barrier(len(jobs))

    def worker(index, job):
        with file_app.app_context():
            start.wait()
            try:
                job()
                outcomes[index] = "ok"
            except Exception as exc:  # surfaced through the caller's assertion
                outcomes[index] = f"error: {exc!r}"
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=120)
    return outcomes


def test_parallel_credit_sales_add_up(file_app, stocked):
    station_id, product_id, _ = stocked
    with file_app.app_context():
        customer_id = party_service.create_customer(
            station_id, {"name": "City Transport Co", "customer_type": "credit"}, SYSTEM_ACTOR
        ).id

    def credit_sale(price_cents):
        return lambda: sales_service.create_sales_transaction(
            {"station_id": station_id, "payment_method": "credit", "customer_id": customer_id},
            [{"product_id": product_id, "quantity": 1, "unit_price_cents": price_cents}],
            SYSTEM_ACTOR,
        )

    outcomes = _run_together(file_app, [credit_sale(10000), credit_sale(20000)])

    assert outcomes == ["ok", "ok"]
    with file_app.app_context():
        assert party_service.get_customer(customer_id).outstanding_cents == 30000
        assert db.session.query(SalesTransaction).filter_by(customer_id=customer_id).count() == 2
