"""
Purchase order lifecycle tests.

Verifies:
- Only the legal status transitions are accepted
- Delivery receives stock, raises the supplier balance and posts the
  inventory/payables entry in one transaction
- Pending-only edits and compensated deletes
"""

from decimal import Decimal

import pytest

from fuelpos.errors import AuthorizationError, CapacityExceededError, ConflictError, InsufficientStockError
from fuelpos.extensions import db
from fuelpos.models import JournalEntry, PurchaseOrder, PurchaseOrderItem
from fuelpos.services import journal_service, party_service, purchase_service, stock_service
from fuelpos.services.access_service import SYSTEM_ACTOR, Actor


def _order(station, supplier, actor, quantity=1000, unit_price_cents=200, product=None, **header):
    items = [{"product_id": product.id, "quantity": quantity, "unit_price_cents": unit_price_cents}]
    return purchase_service.create_purchase_order(
        {"station_id": station.id, "supplier_id": supplier.id, **header}, items, actor
    )


def _deliver(order, actor):
    purchase_service.set_purchase_order_status(order.id, "approved", actor)
    return purchase_service.set_purchase_order_status(order.id, "delivered", actor)


class TestLifecycle:

    def test_new_order_is_pending_and_numbered(self, station, supplier, petrol, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol)
        assert order.status == "pending"
        assert order.order_number == f"PO-{station.id:03d}-0001"
        assert order.total_cents == 200000

    def test_allocation_skips_hand_entered_order_number(self, station, supplier, petrol, manager_actor):
        _order(station, supplier, manager_actor, product=petrol, order_number=f"PO-{station.id:03d}-0001")
        order = _order(station, supplier, manager_actor, product=petrol)
        assert order.order_number == f"PO-{station.id:03d}-0002"

    def test_pending_cannot_jump_to_delivered(self, station, supplier, petrol, petrol_tank, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol)

        with pytest.raises(ConflictError) as exc_info:
            purchase_service.set_purchase_order_status(order.id, "delivered", manager_actor)

        assert exc_info.value.details == {"from": "pending", "to": "delivered"}
        assert purchase_service.get_purchase_order(order.id).status == "pending"
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")

    def test_terminal_states_do_not_move(self, station, supplier, petrol, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol)
        purchase_service.set_purchase_order_status(order.id, "cancelled", manager_actor)

        with pytest.raises(ConflictError):
            purchase_service.set_purchase_order_status(order.id, "approved", manager_actor)

    def test_other_station_cannot_change_status(self, station, supplier, petrol, other_manager_user):
        order = _order(station, supplier, SYSTEM_ACTOR, product=petrol)
        outsider = Actor(other_manager_user.id, "manager", other_manager_user.station_id)
        with pytest.raises(AuthorizationError):
            purchase_service.set_purchase_order_status(order.id, "approved", outsider)


class TestDelivery:

    def test_delivery_receives_stock_and_posts(self, station, supplier, petrol, petrol_tank, manager_actor):
        order = _deliver(_order(station, supplier, manager_actor, product=petrol), manager_actor)

        assert order.status == "delivered"
        assert order.delivered_at is not None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("6000")
        assert party_service.get_supplier(supplier.id).outstanding_cents == 200000

        item = db.session.query(PurchaseOrderItem).filter_by(order_id=order.id).one()
        assert item.tank_id == petrol_tank.id

        entry = db.session.query(JournalEntry).filter_by(source_type="purchase_order", source_id=order.id).one()
        codes = {line.account.code: (line.debit_cents, line.credit_cents) for line in entry.lines}
        assert codes == {"1200": (200000, 0), "2001": (0, 200000)}

    def test_overfilling_tank_rolls_back_delivery(self, station, supplier, petrol, petrol_tank, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol, quantity=6000)
        purchase_service.set_purchase_order_status(order.id, "approved", manager_actor)

        with pytest.raises(CapacityExceededError):
            purchase_service.set_purchase_order_status(order.id, "delivered", manager_actor)

        assert purchase_service.get_purchase_order(order.id).status == "approved"
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")
        assert party_service.get_supplier(supplier.id).outstanding_cents == 0
        assert db.session.query(JournalEntry).count() == 0


class TestEditAndDelete:

    def test_only_pending_orders_are_editable(self, station, supplier, petrol, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol)
        edited = purchase_service.update_purchase_order(
            order.id, {"items": [{"product_id": petrol.id, "quantity": 500, "unit_price_cents": 210}]},
            manager_actor,
        )
        assert edited.total_cents == 105000

        purchase_service.set_purchase_order_status(order.id, "approved", manager_actor)
        with pytest.raises(ConflictError, match="Cannot edit a purchase order that is approved"):
            purchase_service.update_purchase_order(order.id, {"notes": "late"}, manager_actor)

    def test_deleting_delivered_order_compensates(self, station, supplier, petrol, petrol_tank, manager_actor):
        order = _deliver(_order(station, supplier, manager_actor, product=petrol), manager_actor)

        summary = purchase_service.delete_purchase_order_secure(
            order.id, station.id, "manager", user_id=manager_actor.user_id
        )

        assert summary["status"] == "delivered"
        assert db.session.get(PurchaseOrder, order.id) is None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")
        assert party_service.get_supplier(supplier.id).outstanding_cents == 0

        types = [m.movement_type for m in stock_service.get_stock_movements(petrol_tank.id)]
        assert types[:2] == ["receipt_reversal", "purchase_receipt"]

        tb = journal_service.trial_balance(station.id)
        balances = {a["code"]: a["balance_cents"] for a in tb["accounts"]}
        assert balances["1200"] == 0
        assert balances["2001"] == 0
        assert tb["balanced"] is True

    def test_delete_from_other_station_is_refused(self, station, station_b, supplier, petrol, manager_actor):
        order = _order(station, supplier, manager_actor, product=petrol)
        with pytest.raises(AuthorizationError):
            purchase_service.delete_purchase_order_secure(order.id, station_b.id, "manager")
        assert db.session.get(PurchaseOrder, order.id) is not None

    def test_delete_refused_when_delivered_fuel_was_sold(self, station, supplier, petrol, petrol_tank,
                                                         manager_actor):
        order = _deliver(_order(station, supplier, manager_actor, product=petrol), manager_actor)
        stock_service.update_tank_stock(petrol_tank.id, "500", manager_actor, note="Dip")

        with pytest.raises(InsufficientStockError, match=f"Purchase order {order.order_number} cannot be reversed"):
            purchase_service.delete_purchase_order_secure(order.id, None, "admin")

        assert db.session.get(PurchaseOrder, order.id) is not None
        assert party_service.get_supplier(supplier.id).outstanding_cents == 200000
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("500")
