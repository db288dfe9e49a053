# Overview: Product catalog with write-through price history.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import PRODUCT_CATEGORIES, PriceHistory, Product
from ..validation import ModelValidationPolicy, require_non_negative, validate_payload
from .access_service import Actor
from .concurrency import atomic, lock_for_update
from fuelpos.time_utils import utcnow

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "unit", "current_price_cents", "is_active"},
    required_on_create={"name", "current_price_cents"},
    choices={"category": set(PRODUCT_CATEGORIES)},
)


def _record_price(product: Product, old_price: int | None, actor: Actor, reason: str | None) -> None:
    db.session.add(PriceHistory(
        product_id=product.id,
        station_id=actor.station_id,
        old_price_cents=old_price,
        new_price_cents=product.current_price_cents,
        changed_by_user_id=actor.user_id,
        effective_at=utcnow(),
        reason=reason,
    ))


def create_product(payload: dict, actor: Actor) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    require_non_negative(patch, "current_price_cents")

    def _op():
        if db.session.query(Product).filter_by(name=patch["name"]).first():
            raise ConflictError(f"Product {patch['name']} already exists", field="name")
        product = Product(**patch)
        db.session.add(product)
        db.session.flush()
        _record_price(product, None, actor, "Initial price")
        return product

    return atomic(_op)


def update_product(product_id: int, payload: dict, actor: Actor) -> Product:
    """A price change writes a PriceHistory row in the same transaction."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    require_non_negative(patch, "current_price_cents")
    reason = (payload or {}).get("reason")

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found", field="product_id")
        if "name" in patch and patch["name"] != product.name:
            if db.session.query(Product).filter(Product.name == patch["name"], Product.id != product.id).first():
                raise ConflictError(f"Product {patch['name']} already exists", field="name")

        old_price = product.current_price_cents
        for key, value in patch.items():
            setattr(product, key, value)
        if product.current_price_cents != old_price:
            _record_price(product, old_price, actor, reason)
            current_app.logger.info(
                "Price of %s changed from %s to %s cents", product.name, old_price, product.current_price_cents
            )
        db.session.flush()
        return product

    return atomic(_op)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", field="product_id")
    return product


def list_products(active_only: bool = True, category: str | None = None) -> list[Product]:
    query = db.session.query(Product)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.name.asc()).all()


def get_price_history(product_id: int, limit: int = 100) -> list[PriceHistory]:
    get_product(product_id)
    return (
        db.session.query(PriceHistory)
        .filter(PriceHistory.product_id == product_id)
        .order_by(PriceHistory.effective_at.desc(), PriceHistory.id.desc())
        .limit(max(1, min(limit, 500)))
        .all()
    )
