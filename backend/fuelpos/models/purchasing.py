from __future__ import annotations

from ..extensions import db
from ..numbers import quantity_str
from fuelpos.time_utils import to_utc_z

PO_STATUSES = ("pending", "approved", "delivered", "cancelled")


class PurchaseOrder(db.Model):
    """
    Purchase order header.

    LIFECYCLE:
    1. pending: created, items editable
    2. approved: confirmed with the supplier
    3. delivered: stock received into tanks, supplier balance increased
    4. cancelled: closed without delivery (only from pending)

    Transitions are validated by purchase_service; nothing else writes status.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.UniqueConstraint("station_id", "order_number", name="uq_purchase_orders_station_number"),
        db.Index("ix_purchase_orders_station_status", "station_id", "status"),
        db.Index("ix_purchase_orders_station_date", "station_id", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    order_number = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    order_date = db.Column(db.DateTime(timezone=True), nullable=False)
    expected_delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(16), nullable=False, default="pos")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    supplier = db.relationship("Supplier")
    items = db.relationship(
        "PurchaseOrderItem",
        backref="order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.line_number",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "station_id": self.station_id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "user_id": self.user_id,
            "order_number": self.order_number,
            "status": self.status,
            "total_cents": self.total_cents,
            "order_date": to_utc_z(self.order_date),
            "expected_delivery_date": to_utc_z(self.expected_delivery_date),
            "approved_at": to_utc_z(self.approved_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "notes": self.notes,
            "source": self.source,
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    """Line item on a purchase order."""
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        db.UniqueConstraint("order_id", "line_number", name="uq_purchase_order_items_line"),
        db.CheckConstraint("quantity > 0", name="ck_po_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_po_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    # Tank the delivery was received into
    tank_id = db.Column(db.Integer, db.ForeignKey("tanks.id"), nullable=True)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": quantity_str(self.quantity),
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "tank_id": self.tank_id,
        }
