"""
Station isolation tests.

Managers and cashiers are pinned to the station captured at login. Naming
another station, or touching a record that belongs to one, is a 403 and
is written to the security audit trail.
"""

from decimal import Decimal

from fuelpos.extensions import db
from fuelpos.models import JournalEntry, SalesTransaction, SecurityEvent
from fuelpos.services import party_service, sales_service, stock_service
from fuelpos.services.access_service import SYSTEM_ACTOR


def _sale(station, petrol, quantity=10):
    return sales_service.create_sales_transaction(
        {"station_id": station.id}, [{"product_id": petrol.id, "quantity": quantity}], SYSTEM_ACTOR
    )


class TestStationPinning:

    def test_defaults_to_own_station(self, client, station, station_b, petrol, petrol_tank, manager_headers):
        _sale(station, petrol)
        resp = client.get("/api/sales", headers=manager_headers)
        assert resp.status_code == 200
        assert [s["station_id"] for s in resp.json["sales"]] == [station.id]

    def test_naming_other_station_is_denied(self, client, station, station_b, manager_user, manager_headers):
        resp = client.get(f"/api/sales?stationId={station_b.id}", headers=manager_headers)
        assert resp.status_code == 403

        event = db.session.query(SecurityEvent).filter_by(event_type="CROSS_STATION_DENIED").one()
        assert event.user_id == manager_user.id
        assert event.station_id == station.id

    def test_selling_into_other_station_is_denied(self, client, station_b, petrol, cashier_headers):
        resp = client.post("/api/sales", json={
            "stationId": station_b.id,
            "items": [{"product_id": petrol.id, "quantity": 1}],
        }, headers=cashier_headers)
        assert resp.status_code == 403
        assert db.session.query(SalesTransaction).count() == 0

    def test_station_list_shows_only_own(self, client, station, station_b, manager_headers, admin_headers):
        own = client.get("/api/stations", headers=manager_headers).json["stations"]
        assert [s["id"] for s in own] == [station.id]

        every = client.get("/api/stations", headers=admin_headers).json["stations"]
        assert {s["id"] for s in every} == {station.id, station_b.id}


class TestCrossStationRecords:

    def test_reading_foreign_sale(self, client, station, petrol, other_manager_headers):
        txn = _sale(station, petrol)
        resp = client.get(f"/api/sales/{txn.id}", headers=other_manager_headers)
        assert resp.status_code == 403

    def test_deleting_foreign_sale_changes_nothing(self, client, station, petrol, petrol_tank,
                                                   other_manager_headers):
        txn = _sale(station, petrol)

        resp = client.delete(f"/api/sales/{txn.id}", headers=other_manager_headers)

        assert resp.status_code == 403
        assert resp.json["error"] == "Unauthorized to delete this transaction"
        assert db.session.get(SalesTransaction, txn.id) is not None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("4990")

    def test_foreign_tank(self, client, petrol_tank, other_manager_headers):
        assert client.get(f"/api/tanks/{petrol_tank.id}", headers=other_manager_headers).status_code == 403
        resp = client.put(f"/api/tanks/{petrol_tank.id}/stock", json={"current_stock": 0},
                          headers=other_manager_headers)
        assert resp.status_code == 403
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")

    def test_foreign_customer(self, client, customer, other_manager_headers):
        assert client.get(f"/api/customers/{customer.id}", headers=other_manager_headers).status_code == 403

    def test_shared_customer_is_visible_everywhere(self, client, other_manager_headers):
        shared = party_service.create_customer(None, {"name": "Fleet Cards Ltd"}, SYSTEM_ACTOR)
        resp = client.get(f"/api/customers/{shared.id}", headers=other_manager_headers)
        assert resp.status_code == 200
        assert resp.json["customer"]["station_id"] is None

    def test_foreign_journal_entry_cannot_be_reversed(self, client, station, petrol, other_manager_headers):
        _sale(station, petrol)
        entries = client.get(f"/api/journal-entries?stationId={station.id}", headers=other_manager_headers)
        assert entries.status_code == 403

        entry = db.session.query(JournalEntry).first()
        resp = client.post(f"/api/journal-entries/{entry.id}/reverse", json={}, headers=other_manager_headers)
        assert resp.status_code == 403
