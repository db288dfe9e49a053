"""
Sales transaction tests.

Verifies:
- A sale and its items, stock movements, credit balance and journal entry
  are written together
- Any failing item leaves nothing behind
- Edits and deletes compensate every effect
- Cross-station deletes are refused before anything is written
"""

from decimal import Decimal

import pytest

from fuelpos.errors import AuthorizationError, CapacityExceededError, ConflictError, InsufficientStockError, ValidationError
from fuelpos.extensions import db
from fuelpos.models import JournalEntry, SalesTransaction, SalesTransactionItem, StockMovement
from fuelpos.services import journal_service, party_service, sales_service, stock_service


def _sale(station, items, actor, **header):
    header.setdefault("payment_method", "cash")
    return sales_service.create_sales_transaction({"station_id": station.id, **header}, items, actor)


# =============================================================================
# CREATE
# =============================================================================


class TestCreateSale:

    def test_cash_sale_moves_stock_and_posts_journal(self, station, petrol, petrol_tank, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": "40", "unit_price_cents": 250}], cashier_actor)

        assert txn.total_cents == 10000
        assert txn.invoice_number == f"INV-{station.id:03d}-0001"
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("4960")

        movement = db.session.query(StockMovement).filter_by(reference_type="sale", reference_id=txn.id).one()
        assert movement.movement_type == "sale"
        assert movement.quantity_delta == Decimal("-40")
        assert movement.balance_after == Decimal("4960")

        entry = db.session.query(JournalEntry).filter_by(source_type="sale", source_id=txn.id).one()
        assert entry.total_debit_cents == entry.total_credit_cents == 10000
        codes = {line.account.code: (line.debit_cents, line.credit_cents) for line in entry.lines}
        assert codes == {"1001": (10000, 0), "4001": (0, 10000)}

    def test_total_is_sum_of_rounded_lines(self, station, petrol, diesel, petrol_tank, diesel_tank, cashier_actor):
        txn = _sale(station, [
            {"product_id": petrol.id, "quantity": "1.333", "unit_price_cents": 250},
            {"product_id": diesel.id, "quantity": "2", "unit_price": "2.70"},
        ], cashier_actor)

        items = db.session.query(SalesTransactionItem).filter_by(transaction_id=txn.id).order_by(
            SalesTransactionItem.line_number).all()
        assert [i.total_cents for i in items] == [333, 540]
        assert txn.total_cents == 873

    def test_price_defaults_to_product_price(self, station, diesel, diesel_tank, cashier_actor):
        txn = _sale(station, [{"product_id": diesel.id, "quantity": 10}], cashier_actor)
        assert txn.total_cents == 2700

    def test_product_without_tank_sells_without_stock_effect(self, station, petrol, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 5}], cashier_actor)
        assert txn.items[0].tank_id is None
        assert db.session.query(StockMovement).count() == 0

    def test_credit_sale_raises_customer_balance(self, station, petrol, petrol_tank, customer, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 100}], cashier_actor,
                    payment_method="credit", customer_id=customer.id)

        assert party_service.get_customer(customer.id).outstanding_cents == 25000
        entry = db.session.query(JournalEntry).filter_by(source_type="sale", source_id=txn.id).one()
        debit = next(line for line in entry.lines if line.debit_cents)
        assert debit.account.code == "1100"

    def test_credit_sale_requires_customer(self, station, petrol, petrol_tank, cashier_actor):
        with pytest.raises(ValidationError):
            _sale(station, [{"product_id": petrol.id, "quantity": 1}], cashier_actor, payment_method="credit")

    def test_credit_limit_exceeded_rolls_back(self, station, petrol, petrol_tank, customer, cashier_actor):
        with pytest.raises(ValidationError, match="Credit limit exceeded"):
            _sale(station, [{"product_id": petrol.id, "quantity": 1000}], cashier_actor,
                  payment_method="credit", customer_id=customer.id)

        assert party_service.get_customer(customer.id).outstanding_cents == 0
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")
        assert db.session.query(SalesTransaction).count() == 0

    def test_duplicate_invoice_number_conflicts(self, station, petrol, petrol_tank, cashier_actor):
        _sale(station, [{"product_id": petrol.id, "quantity": 1}], cashier_actor, invoice_number="INV-42")
        with pytest.raises(ConflictError):
            _sale(station, [{"product_id": petrol.id, "quantity": 1}], cashier_actor, invoice_number="INV-42")

    def test_allocation_skips_hand_entered_invoice_number(self, station, petrol, petrol_tank, cashier_actor):
        item = [{"product_id": petrol.id, "quantity": 1}]
        first = _sale(station, item, cashier_actor)
        manual = _sale(station, item, cashier_actor, invoice_number=f"INV-{station.id:03d}-0002")

        following = _sale(station, item, cashier_actor)

        assert first.invoice_number == f"INV-{station.id:03d}-0001"
        assert manual.invoice_number == f"INV-{station.id:03d}-0002"
        assert following.invoice_number == f"INV-{station.id:03d}-0003"

    def test_empty_items_rejected(self, station, cashier_actor):
        with pytest.raises(ValidationError):
            _sale(station, [], cashier_actor)

    def test_other_station_rejected(self, station_b, petrol, cashier_actor):
        with pytest.raises(AuthorizationError):
            _sale(station_b, [{"product_id": petrol.id, "quantity": 1}], cashier_actor)


# =============================================================================
# ATOMICITY
# =============================================================================


class TestSaleAtomicity:

    def test_failing_item_leaves_no_trace(self, station, petrol, diesel, petrol_tank, diesel_tank, cashier_actor):
        """Second item exceeds the diesel tank: the petrol decrement must not survive."""
        with pytest.raises(InsufficientStockError) as exc_info:
            _sale(station, [
                {"product_id": petrol.id, "quantity": 10},
                {"product_id": diesel.id, "quantity": 500},
            ], cashier_actor)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["available"] == "100.000"
        assert db.session.query(SalesTransaction).count() == 0
        assert db.session.query(SalesTransactionItem).count() == 0
        assert db.session.query(JournalEntry).filter_by(source_type="sale").count() == 0
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")
        assert stock_service.get_tank(diesel_tank.id).current_stock == Decimal("100")
        assert stock_service.reconcile_tank(petrol_tank.id)["in_sync"] is True

    def test_unknown_product_leaves_no_header(self, station, petrol, petrol_tank, cashier_actor):
        with pytest.raises(Exception):
            _sale(station, [
                {"product_id": petrol.id, "quantity": 1},
                {"product_id": 9999, "quantity": 1},
            ], cashier_actor)
        assert db.session.query(SalesTransaction).count() == 0


# =============================================================================
# UPDATE / DELETE
# =============================================================================


class TestEditAndDelete:

    def test_update_replaces_items_and_effects(self, station, petrol, petrol_tank, customer, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 100}], cashier_actor,
                    payment_method="credit", customer_id=customer.id)

        updated = sales_service.update_sales_transaction(
            txn.id, {"items": [{"product_id": petrol.id, "quantity": 20}]}, cashier_actor
        )

        assert updated.total_cents == 5000
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("4980")
        assert party_service.get_customer(customer.id).outstanding_cents == 5000
        assert journal_service.trial_balance(station.id)["balanced"] is True
        assert stock_service.reconcile_tank(petrol_tank.id)["in_sync"] is True

    def test_delete_compensates_stock_balance_and_journal(self, station, petrol, petrol_tank, customer,
                                                          manager_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 100}], manager_actor,
                    payment_method="credit", customer_id=customer.id)

        summary = sales_service.delete_transaction_secure(txn.id, station.id, "manager", user_id=manager_actor.user_id)

        assert summary["total_cents"] == 25000
        assert db.session.get(SalesTransaction, txn.id) is None
        assert db.session.query(SalesTransactionItem).count() == 0
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")
        assert party_service.get_customer(customer.id).outstanding_cents == 0

        types = [m.movement_type for m in stock_service.get_stock_movements(petrol_tank.id)]
        assert types[:2] == ["sale_reversal", "sale"]

        balances = {a["code"]: a["balance_cents"] for a in journal_service.trial_balance(station.id)["accounts"]}
        assert balances["1100"] == 0
        assert balances["4001"] == 0

    def test_delete_from_other_station_is_refused(self, station, station_b, petrol, petrol_tank, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 10}], cashier_actor)

        with pytest.raises(AuthorizationError, match="Unauthorized to delete this transaction"):
            sales_service.delete_transaction_secure(txn.id, station_b.id, "manager")

        assert db.session.get(SalesTransaction, txn.id) is not None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("4990")

    def test_admin_may_delete_any_station(self, station, petrol, petrol_tank, cashier_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 10}], cashier_actor)
        sales_service.delete_transaction_secure(txn.id, None, "admin")
        assert db.session.get(SalesTransaction, txn.id) is None

    def test_delete_refused_when_tank_refilled_to_capacity(self, station, petrol, petrol_tank, manager_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 100}], manager_actor)
        stock_service.update_tank_stock(petrol_tank.id, "10000", manager_actor, note="Dip after delivery")

        with pytest.raises(CapacityExceededError) as exc_info:
            sales_service.delete_transaction_secure(txn.id, None, "admin")

        err = exc_info.value
        assert err.status_code == 409
        assert err.field == "tank_id"
        assert err.message.startswith(f"Sale {txn.invoice_number} cannot be reversed")
        assert err.details["invoice_number"] == txn.invoice_number
        assert err.details["capacity"] == "10000.000"

        assert db.session.get(SalesTransaction, txn.id) is not None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("10000")
        assert stock_service.reconcile_tank(petrol_tank.id)["in_sync"] is True

    def test_delete_succeeds_once_tank_has_room(self, station, petrol, petrol_tank, manager_actor):
        txn = _sale(station, [{"product_id": petrol.id, "quantity": 100}], manager_actor)
        stock_service.update_tank_stock(petrol_tank.id, "10000", manager_actor)
        stock_service.update_tank_stock(petrol_tank.id, "9900", manager_actor)

        sales_service.delete_transaction_secure(txn.id, None, "admin")

        assert db.session.get(SalesTransaction, txn.id) is None
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("10000")
