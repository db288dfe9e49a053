"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied back-office operations (403)
- Manager role denied admin-only operations (403)
- Denials name the missing permission and are audited
"""

from datetime import timedelta

import pytest

from fuelpos.extensions import db
from fuelpos.models import SecurityEvent, SessionToken
from fuelpos.time_utils import utcnow


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/stations"),
            ("GET", "/api/products"),
            ("GET", "/api/tanks"),
            ("GET", "/api/pumps"),
            ("GET", "/api/customers"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/purchase-orders"),
            ("GET", "/api/payments"),
            ("GET", "/api/expenses"),
            ("GET", "/api/accounts"),
            ("GET", "/api/journal-entries"),
            ("GET", "/api/trial-balance"),
            ("GET", "/api/dashboard"),
            ("GET", "/api/bulk-import/template/sales"),
            ("POST", "/api/bulk-import"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_logged_out_token_rejected(self, client, manager_headers):
        assert client.post("/api/auth/logout", headers=manager_headers).status_code == 200
        assert client.get("/api/auth/me", headers=manager_headers).status_code == 401

    def test_idle_session_is_closed(self, client, manager_headers, manager_user):
        session = db.session.query(SessionToken).filter_by(user_id=manager_user.id).one()
        session.last_used_at = utcnow() - timedelta(hours=3)
        db.session.commit()

        assert client.get("/api/auth/me", headers=manager_headers).status_code == 401
        db.session.refresh(session)
        assert session.is_revoked
        assert session.revoked_reason == "Idle timeout"

    def test_deactivated_user_session_is_closed(self, client, manager_headers, manager_user):
        manager_user.is_active = False
        db.session.commit()

        assert client.get("/api/auth/me", headers=manager_headers).status_code == 401
        session = db.session.query(SessionToken).filter_by(user_id=manager_user.id).one()
        assert session.revoked_reason == "User account deactivated"


# =============================================================================
# CASHIER DENIED BACK-OFFICE OPERATIONS (403)
# =============================================================================


class TestCashierDenied:
    """Cashier role sells, reads and records pump readings; nothing else."""

    @pytest.mark.parametrize(
        "method,path,permission",
        [
            ("PUT", "/api/sales/1", "EDIT_SALE"),
            ("DELETE", "/api/sales/1", "DELETE_SALE"),
            ("POST", "/api/customers", "MANAGE_CUSTOMERS"),
            ("GET", "/api/suppliers", "VIEW_SUPPLIERS"),
            ("GET", "/api/purchase-orders", "VIEW_PURCHASE_ORDERS"),
            ("POST", "/api/purchase-orders", "MANAGE_PURCHASE_ORDERS"),
            ("PUT", "/api/tanks/1/stock", "ADJUST_STOCK"),
            ("POST", "/api/payments", "RECORD_PAYMENTS"),
            ("POST", "/api/expenses", "RECORD_EXPENSES"),
            ("GET", "/api/trial-balance", "VIEW_LEDGER"),
            ("POST", "/api/journal-entries", "POST_JOURNAL"),
        ],
    )
    def test_denied(self, client, cashier_headers, method, path, permission):
        resp = getattr(client, method.lower())(path, json={}, headers=cashier_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.json == {"error": "Permission denied", "required_permission": permission}

    def test_denial_is_audited(self, client, cashier_user, cashier_headers):
        client.get("/api/trial-balance", headers=cashier_headers)

        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == cashier_user.id
        assert event.action == "VIEW_LEDGER"
        assert event.success is False

    def test_cashier_can_sell(self, client, station, petrol, petrol_tank, cashier_headers):
        resp = client.post("/api/sales", json={
            "items": [{"product_id": petrol.id, "quantity": "10"}],
        }, headers=cashier_headers)
        assert resp.status_code == 201


# =============================================================================
# MANAGER DENIED ADMIN-ONLY OPERATIONS (403)
# =============================================================================


class TestManagerDenied:

    @pytest.mark.parametrize(
        "method,path,permission",
        [
            ("POST", "/api/stations", "MANAGE_STATIONS"),
            ("POST", "/api/products", "MANAGE_PRODUCTS"),
            ("PUT", "/api/customers/1/balance", "CORRECT_BALANCES"),
            ("PUT", "/api/suppliers/1/balance", "CORRECT_BALANCES"),
            ("POST", "/api/bulk-import", "BULK_IMPORT"),
        ],
    )
    def test_denied(self, client, manager_headers, method, path, permission):
        resp = getattr(client, method.lower())(path, json={}, headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == permission

    def test_status_change_permission_depends_on_target(self, client, station, supplier, petrol,
                                                        cashier_headers, manager_headers):
        created = client.post("/api/purchase-orders", json={
            "supplier_id": supplier.id,
            "items": [{"product_id": petrol.id, "quantity": 10, "unit_price_cents": 200}],
        }, headers=manager_headers)
        assert created.status_code == 201
        order_id = created.json["purchase_order"]["id"]

        resp = client.post(f"/api/purchase-orders/{order_id}/status", json={"status": "approved"},
                           headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["purchase_order"]["status"] == "approved"

        resp = client.post(f"/api/purchase-orders/{order_id}/status", json={"status": "delivered"},
                           headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "RECEIVE_DELIVERIES"


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminAccess:

    def test_admin_creates_station(self, client, admin_headers):
        resp = client.post("/api/stations", json={"name": "Airport Road", "code": "APR",
                                                   "timezone": "Europe/London"}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["station"]["timezone"] == "Europe/London"

    def test_unknown_timezone_rejected(self, client, admin_headers):
        resp = client.post("/api/stations", json={"name": "Nowhere", "timezone": "Mars/Olympus"},
                           headers=admin_headers)
        assert resp.status_code == 400

    def test_admin_without_station_must_name_one(self, client, admin_headers):
        resp = client.get("/api/tanks", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "stationId"

    def test_admin_reads_any_station(self, client, station, petrol_tank, admin_headers):
        resp = client.get(f"/api/tanks?stationId={station.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json["tanks"]] == [petrol_tank.id]
