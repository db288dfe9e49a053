# Overview: Tank stock, pumps, pump readings and the stock-movement log.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, update

from ..errors import (
    CapacityExceededError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Product, Pump, PumpReading, StockMovement, Tank
from ..numbers import parse_quantity, quantity_str
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic, lock_for_update
from fuelpos.time_utils import get_zone, parse_business_datetime, utcnow

"""
Inventory ledger invariants (authoritative)

- Tank.current_stock is the source of truth and satisfies
  0 <= current_stock <= capacity at every commit.
- Stock only changes through apply_stock_delta, which updates the tank
  with store-side arithmetic guarded by both bounds and appends exactly
  one StockMovement in the same transaction.
- StockMovement rows are append-only; quantity_delta is signed and
  balance_after is the tank stock right after the change.
- Tank.status is derived from the stock and refreshed on every write.
"""

ZERO = Decimal("0")


def tank_status_for(stock: Decimal, minimum_level: Decimal) -> str:
    if stock <= ZERO:
        return "empty"
    if stock <= minimum_level:
        return "low"
    return "normal"


def get_tank(tank_id: int) -> Tank:
    tank = db.session.get(Tank, tank_id)
    if tank is None:
        raise NotFoundError("Tank not found", field="tank_id")
    return tank


def list_tanks(station_id: int, active_only: bool = True) -> list[Tank]:
    query = db.session.query(Tank).filter(Tank.station_id == station_id)
    if active_only:
        query = query.filter(Tank.is_active.is_(True))
    return query.order_by(Tank.name.asc(), Tank.id.asc()).all()


def find_station_tank(station_id: int, product_id: int) -> Tank | None:
    """The active tank that sales and deliveries of a product use at a station."""
    return (
        db.session.query(Tank)
        .filter_by(station_id=station_id, product_id=product_id, is_active=True)
        .order_by(Tank.id.asc())
        .first()
    )


def apply_stock_delta(
    tank_id: int,
    delta,
    movement_type: str,
    *,
    reference_type: str | None = None,
    reference_id: int | None = None,
    note: str | None = None,
    user_id: int | None = None,
    occurred_at: datetime | None = None,
) -> StockMovement:
    """
    Atomically move a tank's stock by ``delta`` and log the movement.

    The bound check and the arithmetic happen in one UPDATE evaluated by
    the database, so concurrent writers can neither lose an update nor push
    the tank outside [0, capacity]. Flushes only; the caller commits.

    Raises InsufficientStockError / CapacityExceededError when the guard
    rejects the change.
    """
    delta = Decimal(delta)
    stmt = (
        update(Tank)
        .where(
            Tank.id == tank_id,
            Tank.current_stock + delta >= 0,
            Tank.current_stock + delta <= Tank.capacity,
        )
        .values(current_stock=Tank.current_stock + delta)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if not result.rowcount:
        tank = get_tank(tank_id)
        db.session.refresh(tank)
        if delta < 0:
            raise InsufficientStockError(
                f"Insufficient stock in tank {tank.name}",
                field="quantity",
                details={
                    "tank_id": tank.id,
                    "available": quantity_str(tank.current_stock),
                    "requested": quantity_str(-delta),
                },
            )
        raise CapacityExceededError(
            f"Tank {tank.name} capacity exceeded",
            field="quantity",
            details={
                "tank_id": tank.id,
                "capacity": quantity_str(tank.capacity),
                "current_stock": quantity_str(tank.current_stock),
                "requested": quantity_str(delta),
            },
        )

    tank = db.session.get(Tank, tank_id, populate_existing=True)
    tank.status = tank_status_for(tank.current_stock, tank.minimum_level)

    movement = StockMovement(
        tank_id=tank.id,
        station_id=tank.station_id,
        movement_type=movement_type,
        quantity_delta=delta,
        balance_after=tank.current_stock,
        reference_type=reference_type,
        reference_id=reference_id,
        note=note,
        user_id=user_id,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def create_tank(
    station_id: int,
    product_id: int,
    name: str,
    capacity,
    actor: Actor,
    *,
    current_stock=0,
    minimum_level=0,
) -> Tank:
    """Create a tank; a non-zero initial stock is logged as an ``opening`` movement."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", field="name")
    capacity = parse_quantity(capacity, "capacity")
    opening = parse_quantity(current_stock or 0, "current_stock", allow_zero=True)
    minimum = parse_quantity(minimum_level or 0, "minimum_level", allow_zero=True)
    if opening > capacity:
        raise ValidationError("current_stock cannot exceed capacity", field="current_stock")
    if minimum > capacity:
        raise ValidationError("minimum_level cannot exceed capacity", field="minimum_level")

    def _op():
        ensure_station_access(station_id, actor.station_id, actor.role)
        get_active_station(station_id)
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", field="product_id")

        tank = Tank(
            station_id=station_id,
            product_id=product.id,
            name=name,
            capacity=capacity,
            current_stock=ZERO,
            minimum_level=minimum,
            status=tank_status_for(ZERO, minimum),
            is_active=True,
        )
        db.session.add(tank)
        db.session.flush()

        if opening > 0:
            apply_stock_delta(
                tank.id, opening, "opening",
                reference_type="tank", reference_id=tank.id,
                note="Opening stock", user_id=actor.user_id,
            )
        return tank

    return atomic(_op)


def update_tank(tank_id: int, changes: dict, actor: Actor) -> Tank:
    """Edit name, minimum level, capacity or active flag. Stock is never set here."""
    def _op():
        tank = lock_for_update(db.session.query(Tank).filter_by(id=tank_id)).first()
        if tank is None:
            raise NotFoundError("Tank not found", field="tank_id")
        ensure_station_access(tank.station_id, actor.station_id, actor.role)

        if "name" in changes:
            name = (changes.get("name") or "").strip()
            if not name:
                raise ValidationError("name cannot be blank", field="name")
            tank.name = name
        if "capacity" in changes:
            capacity = parse_quantity(changes["capacity"], "capacity")
            if capacity < tank.current_stock:
                raise ConflictError("capacity cannot be below current stock", field="capacity")
            tank.capacity = capacity
        if "minimum_level" in changes:
            tank.minimum_level = parse_quantity(changes["minimum_level"], "minimum_level", allow_zero=True)
        if "is_active" in changes:
            tank.is_active = bool(changes["is_active"])

        tank.status = tank_status_for(tank.current_stock, tank.minimum_level)
        db.session.flush()
        return tank

    return atomic(_op)


def update_tank_stock(tank_id: int, new_quantity, actor: Actor, note: str | None = None) -> Tank:
    """
    Set a tank's stock to an absolute value (dip-reading correction).

    The difference is logged as an ``adjustment`` movement in the same
    transaction; an unchanged value writes nothing.
    """
    quantity = parse_quantity(new_quantity, "current_stock", allow_zero=True)

    def _op():
        tank = lock_for_update(db.session.query(Tank).filter_by(id=tank_id)).first()
        if tank is None:
            raise NotFoundError("Tank not found", field="tank_id")
        ensure_station_access(tank.station_id, actor.station_id, actor.role)
        if quantity > tank.capacity:
            raise CapacityExceededError(
                f"Tank {tank.name} capacity exceeded",
                field="current_stock",
                details={"capacity": quantity_str(tank.capacity)},
            )

        delta = quantity - Decimal(tank.current_stock)
        if delta != 0:
            apply_stock_delta(
                tank.id, delta, "adjustment",
                reference_type="tank", reference_id=tank.id,
                note=note or "Stock adjustment", user_id=actor.user_id,
            )
            current_app.logger.info(
                "Tank %s stock set to %s (delta %s)", tank.id, quantity_str(quantity), quantity_str(delta)
            )
        return db.session.get(Tank, tank.id)

    return atomic(_op)


def get_stock_movements(tank_id: int, limit: int = 50) -> list[StockMovement]:
    """Newest first."""
    get_tank(tank_id)
    return (
        db.session.query(StockMovement)
        .filter(StockMovement.tank_id == tank_id)
        .order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
        .limit(max(1, min(limit, 500)))
        .all()
    )


def reconcile_tank(tank_id: int) -> dict:
    """
    Compare the stored stock with the sum of logged movements.

    Any drift means rows were changed outside the application.
    """
    tank = get_tank(tank_id)
    logged = (
        db.session.query(func.coalesce(func.sum(StockMovement.quantity_delta), 0))
        .filter(StockMovement.tank_id == tank_id)
        .scalar()
    )
    logged = parse_quantity(logged, "movement_total", allow_zero=True, allow_negative=True)
    current = Decimal(tank.current_stock)
    drift = current - logged
    return {
        "tank_id": tank.id,
        "current_stock": quantity_str(current),
        "movement_total": quantity_str(logged),
        "drift": quantity_str(drift),
        "in_sync": drift == 0,
    }


def low_stock_tanks(station_id: int) -> list[Tank]:
    return (
        db.session.query(Tank)
        .filter(
            Tank.station_id == station_id,
            Tank.is_active.is_(True),
            Tank.current_stock <= Tank.minimum_level,
        )
        .order_by(Tank.current_stock.asc(), Tank.id.asc())
        .all()
    )


# -- Pumps --

def get_pump(pump_id: int) -> Pump:
    pump = db.session.get(Pump, pump_id)
    if pump is None:
        raise NotFoundError("Pump not found", field="pump_id")
    return pump


def list_pumps(station_id: int, active_only: bool = False) -> list[Pump]:
    query = db.session.query(Pump).filter(Pump.station_id == station_id)
    if active_only:
        query = query.filter(Pump.is_active.is_(True))
    return query.order_by(Pump.name.asc()).all()


def _check_pump_tank(station_id: int, tank_id) -> Tank:
    tank = db.session.get(Tank, int(tank_id)) if tank_id else None
    if tank is None:
        raise NotFoundError("Tank not found", field="tank_id")
    if tank.station_id != station_id:
        raise ValidationError("Tank belongs to another station", field="tank_id")
    return tank


def create_pump(station_id: int, tank_id: int, name: str, actor: Actor) -> Pump:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", field="name")

    def _op():
        ensure_station_access(station_id, actor.station_id, actor.role)
        get_active_station(station_id)
        tank = _check_pump_tank(station_id, tank_id)
        if db.session.query(Pump).filter_by(station_id=station_id, name=name).first():
            raise ConflictError(f"Pump {name} already exists", field="name")
        pump = Pump(station_id=station_id, tank_id=tank.id, name=name, is_active=True)
        db.session.add(pump)
        db.session.flush()
        return pump

    return atomic(_op)


def update_pump(pump_id: int, changes: dict, actor: Actor) -> Pump:
    def _op():
        pump = get_pump(pump_id)
        ensure_station_access(pump.station_id, actor.station_id, actor.role)
        if "name" in changes:
            name = (changes.get("name") or "").strip()
            if not name:
                raise ValidationError("name cannot be blank", field="name")
            clash = db.session.query(Pump).filter(
                Pump.station_id == pump.station_id, Pump.name == name, Pump.id != pump.id
            ).first()
            if clash:
                raise ConflictError(f"Pump {name} already exists", field="name")
            pump.name = name
        if "tank_id" in changes:
            pump.tank_id = _check_pump_tank(pump.station_id, changes["tank_id"]).id
        if "is_active" in changes:
            pump.is_active = bool(changes["is_active"])
        db.session.flush()
        return pump

    return atomic(_op)


def deactivate_pump(pump_id: int, actor: Actor) -> Pump:
    return update_pump(pump_id, {"is_active": False}, actor)


def record_pump_reading(
    pump_id: int,
    opening_reading,
    closing_reading,
    actor: Actor,
    *,
    shift: str | None = None,
    reading_date=None,
) -> PumpReading:
    """Record a shift's meter readings; the dispensed quantity is closing - opening."""
    opening = parse_quantity(opening_reading, "opening_reading", allow_zero=True)
    closing = parse_quantity(closing_reading, "closing_reading", allow_zero=True)
    if closing < opening:
        raise ValidationError("closing_reading cannot be below opening_reading", field="closing_reading")

    def _op():
        pump = get_pump(pump_id)
        ensure_station_access(pump.station_id, actor.station_id, actor.role)
        if not pump.is_active:
            raise ValidationError("Pump is not active", field="pump_id")
        station = get_active_station(pump.station_id)
        try:
            when = parse_business_datetime(reading_date, get_zone(station.timezone))
        except ValueError:
            raise ValidationError("reading_date must be an ISO-8601 date", field="reading_date")

        reading = PumpReading(
            pump_id=pump.id,
            station_id=pump.station_id,
            opening_reading=opening,
            closing_reading=closing,
            quantity=closing - opening,
            shift=(shift or "").strip() or None,
            reading_date=when,
            user_id=actor.user_id,
        )
        db.session.add(reading)
        db.session.flush()
        return reading

    return atomic(_op)


def list_pump_readings(station_id: int, pump_id: int | None = None, limit: int = 100) -> list[PumpReading]:
    query = db.session.query(PumpReading).filter(PumpReading.station_id == station_id)
    if pump_id is not None:
        query = query.filter(PumpReading.pump_id == pump_id)
    return (
        query.order_by(PumpReading.reading_date.desc(), PumpReading.id.desc())
        .limit(max(1, min(limit, 500)))
        .all()
    )
