from __future__ import annotations

from ..extensions import db
from ..numbers import quantity_str
from fuelpos.time_utils import to_utc_z

QUANTITY = db.Numeric(14, 3)

TANK_STATUSES = ("normal", "low", "empty")

MOVEMENT_TYPES = (
    "opening",
    "sale",
    "sale_reversal",
    "purchase_receipt",
    "receipt_reversal",
    "adjustment",
)


class Tank(db.Model):
    """
    A storage vessel holding one product at one station.

    current_stock is the source of truth for on-hand quantity and always
    satisfies 0 <= current_stock <= capacity. It is only ever changed by
    stock_service, which appends a StockMovement in the same transaction.
    """
    __tablename__ = "tanks"
    __table_args__ = (
        db.Index("ix_tanks_station_product", "station_id", "product_id"),
        db.CheckConstraint("current_stock >= 0", name="ck_tanks_stock_non_negative"),
        db.CheckConstraint("current_stock <= capacity", name="ck_tanks_stock_within_capacity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)

    capacity = db.Column(QUANTITY, nullable=False)
    current_stock = db.Column(QUANTITY, nullable=False, default=0)
    minimum_level = db.Column(QUANTITY, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="normal")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    station = db.relationship("Station", backref=db.backref("tanks", lazy=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "product_id": self.product_id,
            "name": self.name,
            "capacity": quantity_str(self.capacity),
            "current_stock": quantity_str(self.current_stock),
            "minimum_level": quantity_str(self.minimum_level),
            "status": self.status,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only log of signed tank stock changes.

    Each row is written in the same transaction as the tank update it
    describes; balance_after is the tank's stock right after the change.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_tank_occurred", "tank_id", "occurred_at"),
        db.Index("ix_stock_movements_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tank_id = db.Column(db.Integer, db.ForeignKey("tanks.id"), nullable=False, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)

    movement_type = db.Column(db.String(32), nullable=False, index=True)
    quantity_delta = db.Column(QUANTITY, nullable=False)
    balance_after = db.Column(QUANTITY, nullable=False)

    # Loose reference to the document that caused the movement
    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    note = db.Column(db.String(255), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    tank = db.relationship("Tank", backref=db.backref("movements", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tank_id": self.tank_id,
            "station_id": self.station_id,
            "movement_type": self.movement_type,
            "quantity_delta": quantity_str(self.quantity_delta),
            "balance_after": quantity_str(self.balance_after),
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "note": self.note,
            "user_id": self.user_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class Pump(db.Model):
    """A dispenser drawing from one tank."""
    __tablename__ = "pumps"
    __table_args__ = (
        db.UniqueConstraint("station_id", "name", name="uq_pumps_station_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    tank_id = db.Column(db.Integer, db.ForeignKey("tanks.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    tank = db.relationship("Tank", backref=db.backref("pumps", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "tank_id": self.tank_id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class PumpReading(db.Model):
    """Shift meter readings; quantity is what the pump dispensed in the shift."""
    __tablename__ = "pump_readings"
    __table_args__ = (
        db.Index("ix_pump_readings_station_date", "station_id", "reading_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    pump_id = db.Column(db.Integer, db.ForeignKey("pumps.id"), nullable=False, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False)

    opening_reading = db.Column(QUANTITY, nullable=False)
    closing_reading = db.Column(QUANTITY, nullable=False)
    quantity = db.Column(QUANTITY, nullable=False)

    shift = db.Column(db.String(16), nullable=True)
    reading_date = db.Column(db.DateTime(timezone=True), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    pump = db.relationship("Pump", backref=db.backref("readings", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pump_id": self.pump_id,
            "station_id": self.station_id,
            "opening_reading": quantity_str(self.opening_reading),
            "closing_reading": quantity_str(self.closing_reading),
            "quantity": quantity_str(self.quantity),
            "shift": self.shift,
            "reading_date": to_utc_z(self.reading_date),
            "user_id": self.user_id,
        }
