from __future__ import annotations

from ..extensions import db
from ..numbers import quantity_str
from fuelpos.time_utils import to_utc_z

SALE_PAYMENT_METHODS = ("cash", "card", "credit")
DOCUMENT_SOURCES = ("pos", "import")


class SalesTransaction(db.Model):
    """
    Sales transaction header.

    The header exclusively owns its items: they are created together in one
    database transaction and deleted together (items first). total_cents is
    always the sum of the items' total_cents.

    customer_id NULL is a walk-in sale; credit sales require a customer.
    """
    __tablename__ = "sales_transactions"
    __table_args__ = (
        db.UniqueConstraint("station_id", "invoice_number", name="uq_sales_station_invoice"),
        db.Index("ix_sales_station_date", "station_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Human-readable number (e.g., "INV-001-0042")
    invoice_number = db.Column(db.String(64), nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(16), nullable=False, default="pos")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    station = db.relationship("Station")
    customer = db.relationship("Customer")
    items = db.relationship(
        "SalesTransactionItem",
        backref="transaction",
        cascade="all, delete-orphan",
        order_by="SalesTransactionItem.line_number",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "station_id": self.station_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "user_id": self.user_id,
            "invoice_number": self.invoice_number,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "transaction_date": to_utc_z(self.transaction_date),
            "notes": self.notes,
            "source": self.source,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SalesTransactionItem(db.Model):
    """Line item on a sales transaction; total_cents = quantity * unit_price_cents."""
    __tablename__ = "sales_transaction_items"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "line_number", name="uq_sales_items_line"),
        db.CheckConstraint("quantity > 0", name="ck_sales_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sales_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("sales_transactions.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    # Tank drawn from (when the product is tank-stocked at the station)
    tank_id = db.Column(db.Integer, db.ForeignKey("tanks.id"), nullable=True)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": quantity_str(self.quantity),
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "tank_id": self.tank_id,
        }
