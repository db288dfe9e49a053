from __future__ import annotations

from ..extensions import db
from fuelpos.time_utils import to_utc_z

CUSTOMER_TYPES = ("regular", "credit")


class Customer(db.Model):
    """
    Customer master data with a running receivable balance.

    outstanding_cents is signed: positive means the customer owes the
    station. It is only changed through party_service.adjust_customer_balance
    (store-side arithmetic) or an admin correction under a row lock.

    station_id NULL means the customer is shared by every station.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_station_active", "station_id", "is_active"),
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=True, index=True)

    name = db.Column(db.String(128), nullable=False)
    customer_type = db.Column(db.String(16), nullable=False, default="regular")
    contact_phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    credit_limit_cents = db.Column(db.Integer, nullable=True)
    outstanding_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "name": self.name,
            "customer_type": self.customer_type,
            "contact_phone": self.contact_phone,
            "email": self.email,
            "address": self.address,
            "credit_limit_cents": self.credit_limit_cents,
            "outstanding_cents": self.outstanding_cents,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    """
    Supplier master data with a running payable balance.

    outstanding_cents is signed: positive means the station owes the supplier.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_station_active", "station_id", "is_active"),
        db.Index("ix_suppliers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=True, index=True)

    name = db.Column(db.String(128), nullable=False)
    contact_name = db.Column(db.String(128), nullable=True)
    contact_phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    outstanding_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "name": self.name,
            "contact_name": self.contact_name,
            "contact_phone": self.contact_phone,
            "email": self.email,
            "address": self.address,
            "outstanding_cents": self.outstanding_cents,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
