# Overview: Sales transactions: header + items with stock, credit and journal effects in one unit of work.

from __future__ import annotations

from flask import current_app

from ..errors import AuthorizationError, CapacityExceededError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import SALE_PAYMENT_METHODS, SalesTransaction, SalesTransactionItem, DOCUMENT_SOURCES
from . import posting_rules
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic, lock_for_update
from .document_lines import parse_lines
from .document_service import next_document_number
from .party_service import apply_customer_delta, charge_customer, get_customer
from .stock_service import apply_stock_delta, find_station_tank
from fuelpos.time_utils import get_zone, parse_business_datetime

"""
Sales invariants (authoritative)

- A transaction and all of its items are written in one database
  transaction; no reader ever sees a header without its items.
- total_cents == sum(item.total_cents) exactly.
- For POS sales, in the same transaction:
  - each item stocked in a station tank decrements that tank (guarded,
    never below zero) and logs a ``sale`` movement
  - a ``credit`` sale increments the customer's outstanding balance
  - one balanced journal entry is posted
- Imported sales (source="import") are historical records and have none
  of those effects.
- Deleting or editing a POS sale compensates every effect first.
"""


def _resolve_customer(station_id: int, customer_id):
    if customer_id in (None, ""):
        return None
    try:
        customer = get_customer(int(customer_id))
    except (TypeError, ValueError):
        raise ValidationError("customer_id must be an integer", field="customer_id")
    if customer.station_id is not None and customer.station_id != station_id:
        raise ValidationError("Customer belongs to another station", field="customer_id")
    if not customer.is_active:
        raise ValidationError(f"Customer {customer.name} is inactive", field="customer_id")
    return customer


def _check_payment(payment_method: str, customer) -> None:
    if payment_method not in SALE_PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of: {', '.join(SALE_PAYMENT_METHODS)}",
            field="payment_method",
        )
    if payment_method == "credit" and customer is None:
        raise ValidationError("Credit sales require a customer", field="customer_id")


def _invoice_number_taken(station_id: int, invoice_number: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(SalesTransaction.id).filter_by(station_id=station_id, invoice_number=invoice_number)
    if exclude_id is not None:
        query = query.filter(SalesTransaction.id != exclude_id)
    return query.first() is not None


def _check_invoice_number(station_id: int, invoice_number: str, exclude_id: int | None = None) -> None:
    if _invoice_number_taken(station_id, invoice_number, exclude_id):
        raise ConflictError(f"Invoice number {invoice_number} already exists", field="invoice_number")


def _attach_items(txn: SalesTransaction, items) -> None:
    lines = parse_lines(items)
    for line in lines:
        txn.items.append(SalesTransactionItem(
            line_number=line.line_number,
            product_id=line.product.id,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            total_cents=line.total_cents,
        ))
    txn.total_cents = sum(line.total_cents for line in lines)


def _apply_effects(txn: SalesTransaction, user_id: int | None) -> None:
    for item in txn.items:
        tank = find_station_tank(txn.station_id, item.product_id)
        if tank is None:
            item.tank_id = None
            continue
        item.tank_id = tank.id
        apply_stock_delta(
            tank.id, -item.quantity, "sale",
            reference_type="sale", reference_id=txn.id,
            note=f"Sale {txn.invoice_number}", user_id=user_id,
            occurred_at=txn.transaction_date,
        )

    if txn.payment_method == "credit" and txn.total_cents:
        charge_customer(txn.customer, txn.total_cents)

    posting_rules.post_sale(txn, user_id)
    db.session.flush()


def _reverse_effects(txn: SalesTransaction, user_id: int | None, reason: str) -> None:
    """
    Undo a sale's stock, balance and journal effects.

    Returning the litres is bounded by tank capacity like any other stock
    write; a tank refilled since the sale refuses the reversal and the
    whole edit or delete is rolled back.
    """
    for item in txn.items:
        if item.tank_id is None:
            continue
        try:
            apply_stock_delta(
                item.tank_id, item.quantity, "sale_reversal",
                reference_type="sale", reference_id=txn.id,
                note=f"{reason} {txn.invoice_number}", user_id=user_id,
            )
        except CapacityExceededError as exc:
            raise CapacityExceededError(
                f"Sale {txn.invoice_number} cannot be reversed: {exc.message}. Correct the tank stock first",
                field="tank_id",
                details={**exc.details, "invoice_number": txn.invoice_number},
            ) from exc

    if txn.payment_method == "credit" and txn.customer_id and txn.total_cents:
        apply_customer_delta(txn.customer_id, -txn.total_cents)

    posting_rules.reverse_document("sale", txn.id, user_id=user_id, reason=f"{reason} {txn.invoice_number}")
    db.session.flush()


def add_sales_transaction(header: dict, items, actor: Actor) -> SalesTransaction:
    """
    Build and flush a sales transaction inside the caller's unit of work.

    header keys: station_id (required), customer_id, payment_method
    (default cash), transaction_date, invoice_number (allocated when
    omitted), notes, source (default pos).
    """
    station_id = header.get("station_id")
    if not station_id:
        raise ValidationError("station_id is required", field="station_id")
    ensure_station_access(station_id, actor.station_id, actor.role)
    station = get_active_station(station_id)

    source = header.get("source") or "pos"
    if source not in DOCUMENT_SOURCES:
        raise ValidationError("Invalid source", field="source")

    customer = _resolve_customer(station_id, header.get("customer_id"))
    payment_method = (header.get("payment_method") or "cash").strip().lower()
    _check_payment(payment_method, customer)

    try:
        when = parse_business_datetime(header.get("transaction_date"), get_zone(station.timezone))
    except ValueError:
        raise ValidationError("transaction_date must be an ISO-8601 date", field="transaction_date")

    invoice_number = (header.get("invoice_number") or "").strip()
    if invoice_number:
        _check_invoice_number(station_id, invoice_number)
    else:
        invoice_number = next_document_number(
            station_id=station_id, document_type="INV",
            taken=lambda number: _invoice_number_taken(station_id, number),
        )

    txn = SalesTransaction(
        station_id=station_id,
        customer_id=customer.id if customer else None,
        user_id=actor.user_id,
        invoice_number=invoice_number,
        payment_method=payment_method,
        transaction_date=when,
        notes=header.get("notes"),
        source=source,
    )
    txn.customer = customer
    _attach_items(txn, items)
    db.session.add(txn)
    db.session.flush()

    if txn.source == "pos":
        _apply_effects(txn, actor.user_id)
    return txn


def create_sales_transaction(header: dict, items, actor: Actor) -> SalesTransaction:
    """Create a sale atomically: any failure leaves no header, item, stock, balance or journal change."""
    txn = atomic(lambda: add_sales_transaction(header, items, actor))
    current_app.logger.info(
        "Sale %s recorded at station %s: %s cents (%s)",
        txn.invoice_number, txn.station_id, txn.total_cents, txn.payment_method,
    )
    return txn


def get_sales_transaction(transaction_id: int) -> SalesTransaction:
    txn = db.session.get(SalesTransaction, transaction_id)
    if txn is None:
        raise NotFoundError("Sales transaction not found")
    return txn


def update_sales_transaction(transaction_id: int, changes: dict, actor: Actor) -> SalesTransaction:
    """
    Edit a sale: reverse its effects, apply the changes, re-apply effects.

    ``changes`` may carry customer_id, payment_method, transaction_date,
    invoice_number, notes and a full replacement ``items`` list.
    """
    def _op():
        txn = lock_for_update(db.session.query(SalesTransaction).filter_by(id=transaction_id)).first()
        if txn is None:
            raise NotFoundError("Sales transaction not found")
        ensure_station_access(txn.station_id, actor.station_id, actor.role)
        station = get_active_station(txn.station_id)
        effects = txn.source == "pos"

        if effects:
            _reverse_effects(txn, actor.user_id, "Edit of")

        if "customer_id" in changes:
            customer = _resolve_customer(txn.station_id, changes.get("customer_id"))
            txn.customer = customer
            txn.customer_id = customer.id if customer else None
        if "payment_method" in changes:
            txn.payment_method = (changes.get("payment_method") or "").strip().lower()
        _check_payment(txn.payment_method, txn.customer)

        if "transaction_date" in changes:
            try:
                txn.transaction_date = parse_business_datetime(
                    changes.get("transaction_date"), get_zone(station.timezone)
                )
            except ValueError:
                raise ValidationError("transaction_date must be an ISO-8601 date", field="transaction_date")
        if "invoice_number" in changes:
            invoice_number = (changes.get("invoice_number") or "").strip()
            if not invoice_number:
                raise ValidationError("invoice_number cannot be blank", field="invoice_number")
            _check_invoice_number(txn.station_id, invoice_number, exclude_id=txn.id)
            txn.invoice_number = invoice_number
        if "notes" in changes:
            txn.notes = changes.get("notes")

        if "items" in changes:
            txn.items.clear()
            db.session.flush()
            _attach_items(txn, changes.get("items"))
        db.session.flush()

        if effects:
            _apply_effects(txn, actor.user_id)
        return txn

    txn = atomic(_op)
    current_app.logger.info("Sale %s updated by user %s", txn.invoice_number, actor.user_id)
    return txn


def delete_transaction_secure(transaction_id: int, caller_station_id: int | None, caller_role: str,
                              *, user_id: int | None = None) -> dict:
    """
    Delete a sale after checking the caller may act on its station.

    Non-admins may only delete sales of their own station; a mismatch
    raises AuthorizationError before anything is written. The sale's stock,
    credit balance and journal effects are compensated, then the items and
    finally the header are deleted, all in one transaction.
    """
    def _op():
        txn = lock_for_update(db.session.query(SalesTransaction).filter_by(id=transaction_id)).first()
        if txn is None:
            raise NotFoundError("Sales transaction not found")
        if caller_role != "admin" and txn.station_id != caller_station_id:
            raise AuthorizationError("Unauthorized to delete this transaction")

        summary = {
            "id": txn.id,
            "station_id": txn.station_id,
            "invoice_number": txn.invoice_number,
            "total_cents": txn.total_cents,
        }
        if txn.source == "pos":
            _reverse_effects(txn, user_id, "Deletion of")

        for item in list(txn.items):
            db.session.delete(item)
        db.session.flush()
        db.session.expire(txn, ["items"])
        db.session.delete(txn)
        db.session.flush()
        return summary

    summary = atomic(_op)
    current_app.logger.info(
        "Sale %s deleted from station %s (role %s)", summary["invoice_number"], summary["station_id"], caller_role
    )
    return summary


def list_sales_transactions(
    station_id: int,
    start=None,
    end=None,
    limit: int = 100,
    customer_id: int | None = None,
    payment_method: str | None = None,
) -> list[SalesTransaction]:
    """Newest first. ``start`` is inclusive, ``end`` exclusive."""
    query = db.session.query(SalesTransaction).filter(SalesTransaction.station_id == station_id)
    if start is not None:
        query = query.filter(SalesTransaction.transaction_date >= start)
    if end is not None:
        query = query.filter(SalesTransaction.transaction_date < end)
    if customer_id is not None:
        query = query.filter(SalesTransaction.customer_id == customer_id)
    if payment_method:
        query = query.filter(SalesTransaction.payment_method == payment_method)
    return (
        query.order_by(SalesTransaction.transaction_date.desc(), SalesTransaction.id.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )
