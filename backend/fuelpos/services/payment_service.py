# Overview: Customer/supplier payments and operating expenses.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import DOCUMENT_SOURCES, PAYMENT_METHODS, PAYMENT_TYPES, Account, Expense, Payment
from ..numbers import parse_cents, parse_money
from . import posting_rules
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic
from .journal_service import get_account_by_code
from .party_service import apply_customer_delta, apply_supplier_delta, get_customer, get_supplier
from fuelpos.time_utils import get_zone, parse_business_datetime


def _amount(data: dict) -> int:
    if data.get("amount_cents") is not None:
        return parse_cents(data["amount_cents"], "amount_cents", allow_zero=False)
    return parse_money(data.get("amount"), "amount", allow_zero=False)


def _method(data: dict) -> str:
    method = (data.get("payment_method") or "cash").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}", field="payment_method")
    return method


def _source(data: dict) -> str:
    source = data.get("source") or "pos"
    if source not in DOCUMENT_SOURCES:
        raise ValidationError("Invalid source", field="source")
    return source


def _business_date(value, station, field: str):
    try:
        return parse_business_datetime(value, get_zone(station.timezone))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date", field=field)


def _id(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)


def _check_visible(party, station_id: int, label: str) -> None:
    if party.station_id is not None and party.station_id != station_id:
        raise ValidationError(f"{label} belongs to another station", field=f"{label.lower()}_id")


# -- Payments --

def add_payment(station_id: int, data: dict, actor: Actor) -> Payment:
    """
    Build and flush a payment inside the caller's unit of work.

    receivable: money in from a customer, lowers the customer's outstanding.
    payable: money out to a supplier, lowers the supplier's outstanding.
    Imported payments (source="import") are recorded without side effects.
    """
    ensure_station_access(station_id, actor.station_id, actor.role)
    station = get_active_station(station_id)

    payment_type = (data.get("payment_type") or "").strip().lower()
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(f"payment_type must be one of: {', '.join(PAYMENT_TYPES)}", field="payment_type")

    amount = _amount(data)
    source = _source(data)

    payment = Payment(
        station_id=station_id,
        payment_type=payment_type,
        amount_cents=amount,
        payment_method=_method(data),
        reference_number=(data.get("reference_number") or "").strip() or None,
        notes=data.get("notes"),
        payment_date=_business_date(data.get("payment_date"), station, "payment_date"),
        user_id=actor.user_id,
        source=source,
    )

    if payment_type == "receivable":
        if not data.get("customer_id"):
            raise ValidationError("customer_id is required for receivable payments", field="customer_id")
        customer = get_customer(_id(data["customer_id"], "customer_id"))
        _check_visible(customer, station_id, "Customer")
        payment.customer_id = customer.id
    else:
        if not data.get("supplier_id"):
            raise ValidationError("supplier_id is required for payable payments", field="supplier_id")
        supplier = get_supplier(_id(data["supplier_id"], "supplier_id"))
        _check_visible(supplier, station_id, "Supplier")
        payment.supplier_id = supplier.id

    db.session.add(payment)
    db.session.flush()

    if source == "pos":
        if payment_type == "receivable":
            apply_customer_delta(payment.customer_id, -amount)
        else:
            apply_supplier_delta(payment.supplier_id, -amount)
        posting_rules.post_payment(payment, actor.user_id)
    return payment


def record_payment(station_id: int, data: dict, actor: Actor) -> Payment:
    payment = atomic(lambda: add_payment(station_id, data, actor))
    current_app.logger.info(
        "Payment %s (%s) of %s cents recorded at station %s",
        payment.id, payment.payment_type, payment.amount_cents, station_id,
    )
    return payment


def list_payments(station_id: int, payment_type: str | None = None, limit: int = 100) -> list[Payment]:
    query = db.session.query(Payment).filter(Payment.station_id == station_id)
    if payment_type:
        query = query.filter(Payment.payment_type == payment_type)
    return (
        query.order_by(Payment.payment_date.desc(), Payment.id.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )


# -- Expenses --

def _expense_account(station_id: int, data: dict) -> Account:
    if data.get("account_id"):
        account = db.session.get(Account, _id(data["account_id"], "account_id"))
        if account is None or account.station_id != station_id:
            raise NotFoundError("Account not found", field="account_id")
    else:
        account = get_account_by_code(station_id, str(data.get("account_code") or "5001"))
    if account.account_type != "expense":
        raise ValidationError(f"Account {account.code} is not an expense account", field="account_code")
    return account


def add_expense(station_id: int, data: dict, actor: Actor) -> Expense:
    """Expenses book Dr expense account / Cr cash (or card clearing)."""
    ensure_station_access(station_id, actor.station_id, actor.role)
    station = get_active_station(station_id)

    description = (data.get("description") or "").strip()
    if not description:
        raise ValidationError("description is required", field="description")

    source = _source(data)
    expense = Expense(
        station_id=station_id,
        description=description,
        amount_cents=_amount(data),
        account_id=_expense_account(station_id, data).id,
        receipt_number=(data.get("receipt_number") or "").strip() or None,
        payment_method=_method(data),
        notes=data.get("notes"),
        expense_date=_business_date(data.get("expense_date"), station, "expense_date"),
        user_id=actor.user_id,
        source=source,
    )
    db.session.add(expense)
    db.session.flush()

    if source == "pos":
        posting_rules.post_expense(expense, actor.user_id)
    return expense


def record_expense(station_id: int, data: dict, actor: Actor) -> Expense:
    expense = atomic(lambda: add_expense(station_id, data, actor))
    current_app.logger.info("Expense %s of %s cents recorded at station %s", expense.id, expense.amount_cents, station_id)
    return expense


def list_expenses(station_id: int, limit: int = 100) -> list[Expense]:
    return (
        db.session.query(Expense)
        .filter(Expense.station_id == station_id)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )
