"""Tank stock, movement ledger and pump tests."""

from decimal import Decimal

import pytest
from sqlalchemy import text

from fuelpos.errors import (
    AuthorizationError,
    CapacityExceededError,
    ConflictError,
    InsufficientStockError,
    ValidationError,
)
from fuelpos.extensions import db
from fuelpos.services import stock_service
from fuelpos.services.access_service import SYSTEM_ACTOR
from fuelpos.services.concurrency import atomic


def _delta(tank_id, delta, movement_type="adjustment"):
    return atomic(lambda: stock_service.apply_stock_delta(tank_id, delta, movement_type))


class TestTanks:

    def test_opening_stock_is_logged(self, petrol_tank):
        movements = stock_service.get_stock_movements(petrol_tank.id)
        assert [m.movement_type for m in movements] == ["opening"]
        assert movements[0].balance_after == Decimal("5000")
        assert petrol_tank.status == "normal"

    def test_opening_stock_above_capacity_rejected(self, station, petrol):
        with pytest.raises(ValidationError):
            stock_service.create_tank(station.id, petrol.id, "Small", 100, SYSTEM_ACTOR, current_stock=150)

    def test_manager_cannot_create_tank_elsewhere(self, station_b, petrol, manager_actor):
        with pytest.raises(AuthorizationError):
            stock_service.create_tank(station_b.id, petrol.id, "Foreign", 100, manager_actor)

    def test_capacity_cannot_drop_below_stock(self, petrol_tank, manager_actor):
        with pytest.raises(ConflictError):
            stock_service.update_tank(petrol_tank.id, {"capacity": 4000}, manager_actor)


class TestStockBounds:

    def test_stock_cannot_go_negative(self, petrol_tank):
        with pytest.raises(InsufficientStockError):
            _delta(petrol_tank.id, Decimal("-5000.001"))
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("5000")

    def test_stock_cannot_exceed_capacity(self, petrol_tank):
        with pytest.raises(CapacityExceededError) as exc_info:
            _delta(petrol_tank.id, Decimal("5000.5"), "purchase_receipt")
        assert exc_info.value.details["capacity"] == "10000.000"

    def test_exact_bounds_are_allowed(self, petrol_tank):
        _delta(petrol_tank.id, Decimal("5000"))
        assert stock_service.get_tank(petrol_tank.id).current_stock == Decimal("10000")
        _delta(petrol_tank.id, Decimal("-10000"))
        tank = stock_service.get_tank(petrol_tank.id)
        assert tank.current_stock == Decimal("0")
        assert tank.status == "empty"

    def test_status_follows_minimum_level(self, petrol_tank):
        _delta(petrol_tank.id, Decimal("-4000"))
        assert stock_service.get_tank(petrol_tank.id).status == "low"
        assert [t.id for t in stock_service.low_stock_tanks(petrol_tank.station_id)] == [petrol_tank.id]


class TestAbsoluteStock:

    def test_dip_correction_logs_adjustment(self, petrol_tank, manager_actor):
        stock_service.update_tank_stock(petrol_tank.id, "4875.5", manager_actor, note="Dip reading")

        latest = stock_service.get_stock_movements(petrol_tank.id, limit=1)[0]
        assert latest.movement_type == "adjustment"
        assert latest.quantity_delta == Decimal("-124.5")
        assert latest.note == "Dip reading"
        assert stock_service.reconcile_tank(petrol_tank.id)["in_sync"] is True

    def test_unchanged_value_writes_nothing(self, petrol_tank, manager_actor):
        stock_service.update_tank_stock(petrol_tank.id, 5000, manager_actor)
        assert len(stock_service.get_stock_movements(petrol_tank.id)) == 1

    def test_over_capacity_rejected(self, petrol_tank, manager_actor):
        with pytest.raises(CapacityExceededError):
            stock_service.update_tank_stock(petrol_tank.id, 10001, manager_actor)


class TestReconcile:

    def test_in_sync_after_normal_activity(self, petrol_tank):
        _delta(petrol_tank.id, Decimal("-12.345"), "sale")
        _delta(petrol_tank.id, Decimal("100"), "purchase_receipt")
        result = stock_service.reconcile_tank(petrol_tank.id)
        assert result == {
            "tank_id": petrol_tank.id,
            "current_stock": "5087.655",
            "movement_total": "5087.655",
            "drift": "0.000",
            "in_sync": True,
        }

    def test_out_of_band_edit_is_reported(self, petrol_tank):
        db.session.execute(text("UPDATE tanks SET current_stock = 4000 WHERE id = :id"), {"id": petrol_tank.id})
        db.session.commit()

        result = stock_service.reconcile_tank(petrol_tank.id)
        assert result["in_sync"] is False
        assert result["drift"] == "-1000.000"


class TestPumps:

    def test_reading_records_dispensed_quantity(self, station, petrol_tank, manager_actor, cashier_actor):
        pump = stock_service.create_pump(station.id, petrol_tank.id, "Pump 1", manager_actor)
        reading = stock_service.record_pump_reading(pump.id, "1200.5", "1350", cashier_actor, shift="morning")

        assert reading.quantity == Decimal("149.5")
        assert [r.id for r in stock_service.list_pump_readings(station.id)] == [reading.id]

    def test_closing_below_opening_rejected(self, station, petrol_tank, manager_actor):
        pump = stock_service.create_pump(station.id, petrol_tank.id, "Pump 1", manager_actor)
        with pytest.raises(ValidationError):
            stock_service.record_pump_reading(pump.id, 100, 99, manager_actor)

    def test_duplicate_pump_name_conflicts(self, station, petrol_tank, manager_actor):
        stock_service.create_pump(station.id, petrol_tank.id, "Pump 1", manager_actor)
        with pytest.raises(ConflictError):
            stock_service.create_pump(station.id, petrol_tank.id, "Pump 1", manager_actor)

    def test_inactive_pump_rejects_readings(self, station, petrol_tank, manager_actor):
        pump = stock_service.create_pump(station.id, petrol_tank.id, "Pump 1", manager_actor)
        stock_service.deactivate_pump(pump.id, manager_actor)
        with pytest.raises(ValidationError):
            stock_service.record_pump_reading(pump.id, 1, 2, manager_actor)
