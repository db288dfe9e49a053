from __future__ import annotations

from ..extensions import db
from fuelpos.time_utils import to_utc_z

PRODUCT_CATEGORIES = ("fuel", "lubricant", "other")


class Product(db.Model):
    """
    Product master data (fuel grades, lubricants, shop items).

    Products are shared by all stations. Fuel products are stocked in
    tanks; a product without a tank at a station is sold without touching
    tank stock.

    Price changes are historized: every change to current_price_cents
    writes a PriceHistory row in the same transaction (see product_service).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_active", "category", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    category = db.Column(db.String(32), nullable=False, default="fuel")
    unit = db.Column(db.String(16), nullable=False, default="L")

    # Authoritative storage in cents (frontend may only format for display)
    current_price_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "current_price_cents": self.current_price_cents,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PriceHistory(db.Model):
    """Append-only record of product price changes."""
    __tablename__ = "price_history"
    __table_args__ = (
        db.Index("ix_price_history_product_effective", "product_id", "effective_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=True)

    old_price_cents = db.Column(db.Integer, nullable=True)
    new_price_cents = db.Column(db.Integer, nullable=False)

    changed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    effective_at = db.Column(db.DateTime(timezone=True), nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    product = db.relationship("Product", backref=db.backref("price_history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "station_id": self.station_id,
            "old_price_cents": self.old_price_cents,
            "new_price_cents": self.new_price_cents,
            "changed_by_user_id": self.changed_by_user_id,
            "effective_at": to_utc_z(self.effective_at),
            "reason": self.reason,
        }
