# Overview: Purchase orders: creation, edits while pending, the status state machine and delivery receipt.

from __future__ import annotations

from flask import current_app

from ..errors import AuthorizationError, ConflictError, InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import DOCUMENT_SOURCES, PO_STATUSES, PurchaseOrder, PurchaseOrderItem
from . import posting_rules
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic, lock_for_update
from .document_lines import parse_lines
from .document_service import next_document_number
from .party_service import apply_supplier_delta, get_supplier
from .stock_service import apply_stock_delta, find_station_tank
from fuelpos.time_utils import get_zone, parse_business_datetime, utcnow

"""
Purchase order lifecycle

    pending --> approved --> delivered
       |
       +------> cancelled

- Only pending orders may be edited.
- Delivery (POS orders only), in the same transaction as the status change:
  - receives every tank-stocked item into the station tank (guarded by
    capacity) with a ``purchase_receipt`` movement
  - increments the supplier's outstanding balance by the order total
  - posts Dr Fuel Inventory / Cr Accounts Payable
- Deleting a delivered POS order compensates all three first.
"""

ALLOWED_TRANSITIONS = {
    "pending": {"approved", "cancelled"},
    "approved": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def _resolve_supplier(station_id: int, supplier_id):
    if supplier_id in (None, ""):
        raise ValidationError("supplier_id is required", field="supplier_id")
    try:
        supplier = get_supplier(int(supplier_id))
    except (TypeError, ValueError):
        raise ValidationError("supplier_id must be an integer", field="supplier_id")
    if supplier.station_id is not None and supplier.station_id != station_id:
        raise ValidationError("Supplier belongs to another station", field="supplier_id")
    if not supplier.is_active:
        raise ValidationError(f"Supplier {supplier.name} is inactive", field="supplier_id")
    return supplier


def _order_number_taken(station_id: int, order_number: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(PurchaseOrder.id).filter_by(station_id=station_id, order_number=order_number)
    if exclude_id is not None:
        query = query.filter(PurchaseOrder.id != exclude_id)
    return query.first() is not None


def _check_order_number(station_id: int, order_number: str, exclude_id: int | None = None) -> None:
    if _order_number_taken(station_id, order_number, exclude_id):
        raise ConflictError(f"Order number {order_number} already exists", field="order_number")


def _attach_items(order: PurchaseOrder, items) -> None:
    lines = parse_lines(items)
    for line in lines:
        order.items.append(PurchaseOrderItem(
            line_number=line.line_number,
            product_id=line.product.id,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            total_cents=line.total_cents,
        ))
    order.total_cents = sum(line.total_cents for line in lines)


def _parse_date(value, zone, field: str, *, default_now: bool = True):
    try:
        return parse_business_datetime(value, zone, default_now=default_now)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date", field=field)


def add_purchase_order(header: dict, items, actor: Actor) -> PurchaseOrder:
    """
    Build and flush a purchase order inside the caller's unit of work.

    POS orders always start ``pending``. Imported orders are historical and
    may carry any status; they never touch stock, balances or the journal.
    """
    station_id = header.get("station_id")
    if not station_id:
        raise ValidationError("station_id is required", field="station_id")
    ensure_station_access(station_id, actor.station_id, actor.role)
    station = get_active_station(station_id)
    zone = get_zone(station.timezone)

    source = header.get("source") or "pos"
    if source not in DOCUMENT_SOURCES:
        raise ValidationError("Invalid source", field="source")

    status = "pending"
    if source == "import":
        status = (header.get("status") or "pending").strip().lower()
        if status not in PO_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PO_STATUSES)}", field="status")

    supplier = _resolve_supplier(station_id, header.get("supplier_id"))
    order_date = _parse_date(header.get("order_date"), zone, "order_date")
    expected = _parse_date(header.get("expected_delivery_date"), zone, "expected_delivery_date", default_now=False)

    order_number = (header.get("order_number") or "").strip()
    if order_number:
        _check_order_number(station_id, order_number)
    else:
        order_number = next_document_number(
            station_id=station_id, document_type="PO",
            taken=lambda number: _order_number_taken(station_id, number),
        )

    order = PurchaseOrder(
        station_id=station_id,
        supplier_id=supplier.id,
        user_id=actor.user_id,
        order_number=order_number,
        status=status,
        order_date=order_date,
        expected_delivery_date=expected,
        notes=header.get("notes"),
        source=source,
    )
    if status == "delivered":
        order.delivered_at = order_date
    elif status == "cancelled":
        order.cancelled_at = order_date
    _attach_items(order, items)
    db.session.add(order)
    db.session.flush()
    return order


def create_purchase_order(header: dict, items, actor: Actor) -> PurchaseOrder:
    order = atomic(lambda: add_purchase_order(header, items, actor))
    current_app.logger.info(
        "Purchase order %s created at station %s: %s cents", order.order_number, order.station_id, order.total_cents
    )
    return order


def get_purchase_order(order_id: int) -> PurchaseOrder:
    order = db.session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Purchase order not found")
    return order


def _locked_order(order_id: int, actor: Actor) -> PurchaseOrder:
    order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
    if order is None:
        raise NotFoundError("Purchase order not found")
    ensure_station_access(order.station_id, actor.station_id, actor.role)
    return order


def update_purchase_order(order_id: int, changes: dict, actor: Actor) -> PurchaseOrder:
    """Edit header fields and/or replace the items of a pending order."""
    def _op():
        order = _locked_order(order_id, actor)
        if order.status != "pending":
            raise ConflictError(f"Cannot edit a purchase order that is {order.status}", field="status")
        zone = get_zone(get_active_station(order.station_id).timezone)

        if "supplier_id" in changes:
            order.supplier = _resolve_supplier(order.station_id, changes.get("supplier_id"))
        if "order_number" in changes:
            order_number = (changes.get("order_number") or "").strip()
            if not order_number:
                raise ValidationError("order_number cannot be blank", field="order_number")
            _check_order_number(order.station_id, order_number, exclude_id=order.id)
            order.order_number = order_number
        if "order_date" in changes:
            order.order_date = _parse_date(changes.get("order_date"), zone, "order_date")
        if "expected_delivery_date" in changes:
            order.expected_delivery_date = _parse_date(
                changes.get("expected_delivery_date"), zone, "expected_delivery_date", default_now=False
            )
        if "notes" in changes:
            order.notes = changes.get("notes")

        if "items" in changes:
            order.items.clear()
            db.session.flush()
            _attach_items(order, changes.get("items"))
        db.session.flush()
        return order

    return atomic(_op)


def _receive_delivery(order: PurchaseOrder, user_id: int | None) -> None:
    for item in order.items:
        tank = find_station_tank(order.station_id, item.product_id)
        if tank is None:
            item.tank_id = None
            continue
        item.tank_id = tank.id
        apply_stock_delta(
            tank.id, item.quantity, "purchase_receipt",
            reference_type="purchase_order", reference_id=order.id,
            note=f"Delivery {order.order_number}", user_id=user_id,
            occurred_at=order.delivered_at,
        )
    if order.total_cents:
        apply_supplier_delta(order.supplier_id, order.total_cents)
    posting_rules.post_purchase_delivery(order, user_id)
    db.session.flush()


def _reverse_delivery(order: PurchaseOrder, user_id: int | None, reason: str) -> None:
    """Undo a delivery. Fuel already sold from the tank blocks the reversal."""
    for item in order.items:
        if item.tank_id is None:
            continue
        try:
            apply_stock_delta(
                item.tank_id, -item.quantity, "receipt_reversal",
                reference_type="purchase_order", reference_id=order.id,
                note=f"{reason} {order.order_number}", user_id=user_id,
            )
        except InsufficientStockError as exc:
            raise InsufficientStockError(
                f"Purchase order {order.order_number} cannot be reversed: {exc.message}. Correct the tank stock first",
                field="tank_id",
                details={**exc.details, "order_number": order.order_number},
            ) from exc
    if order.total_cents:
        apply_supplier_delta(order.supplier_id, -order.total_cents)
    posting_rules.reverse_document(
        "purchase_order", order.id, user_id=user_id, reason=f"{reason} {order.order_number}"
    )
    db.session.flush()


def set_purchase_order_status(order_id: int, status: str, actor: Actor) -> PurchaseOrder:
    """
    Move an order along its lifecycle. Illegal transitions raise ConflictError.

    Delivery of a POS order receives stock, raises the supplier balance and
    posts the journal entry in the same transaction as the status change.
    """
    status = (status or "").strip().lower()
    if status not in PO_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(PO_STATUSES)}", field="status")

    def _op():
        order = _locked_order(order_id, actor)
        if status not in ALLOWED_TRANSITIONS.get(order.status, set()):
            raise ConflictError(
                f"Cannot change purchase order status from {order.status} to {status}",
                field="status",
                details={"from": order.status, "to": status},
            )

        now = utcnow()
        previous = order.status
        order.status = status
        if status == "approved":
            order.approved_at = now
        elif status == "cancelled":
            order.cancelled_at = now
        elif status == "delivered":
            order.delivered_at = now
            if order.source == "pos":
                _receive_delivery(order, actor.user_id)
        db.session.flush()
        return order, previous

    order, previous = atomic(_op)
    current_app.logger.info(
        "Purchase order %s: %s -> %s by user %s", order.order_number, previous, order.status, actor.user_id
    )
    return order


def delete_purchase_order_secure(order_id: int, caller_station_id: int | None, caller_role: str,
                                 *, user_id: int | None = None) -> dict:
    """Same station rule as delete_transaction_secure; delivered POS orders are compensated first."""
    def _op():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError("Purchase order not found")
        if caller_role != "admin" and order.station_id != caller_station_id:
            raise AuthorizationError("Unauthorized to delete this purchase order")

        summary = {
            "id": order.id,
            "station_id": order.station_id,
            "order_number": order.order_number,
            "status": order.status,
            "total_cents": order.total_cents,
        }
        if order.status == "delivered" and order.source == "pos":
            _reverse_delivery(order, user_id, "Deletion of")

        for item in list(order.items):
            db.session.delete(item)
        db.session.flush()
        db.session.expire(order, ["items"])
        db.session.delete(order)
        db.session.flush()
        return summary

    summary = atomic(_op)
    current_app.logger.info(
        "Purchase order %s (%s) deleted from station %s", summary["order_number"], summary["status"],
        summary["station_id"],
    )
    return summary


def list_purchase_orders(station_id: int, status: str | None = None, supplier_id: int | None = None,
                         limit: int = 100) -> list[PurchaseOrder]:
    query = db.session.query(PurchaseOrder).filter(PurchaseOrder.station_id == station_id)
    if status:
        if status not in PO_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PO_STATUSES)}", field="status")
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id is not None:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    return (
        query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )
