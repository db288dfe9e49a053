# Overview: Customers and suppliers, and their running outstanding balances.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_, update

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import CUSTOMER_TYPES, Customer, Supplier
from ..numbers import parse_cents
from ..validation import ModelValidationPolicy, require_non_negative, validate_payload
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic, lock_for_update

"""
Party ledger rules

- outstanding_cents is signed and only moves through apply_*_delta, a
  single UPDATE ... SET outstanding_cents = outstanding_cents + :delta, so
  concurrent adjustments never overwrite each other.
- Absolute balance corrections (set_*_balance) are admin-only and run
  under a row lock.
- Customers/suppliers with station_id NULL are shared by all stations.
"""

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "customer_type", "contact_phone", "email", "address",
        "credit_limit_cents", "is_active",
    },
    required_on_create={"name"},
    choices={"customer_type": set(CUSTOMER_TYPES)},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_name", "contact_phone", "email", "address", "is_active"},
    required_on_create={"name"},
)


def _visible_to(model, station_id: int):
    return or_(model.station_id == station_id, model.station_id.is_(None))


def _check_party_access(party, actor: Actor) -> None:
    if party.station_id is not None:
        ensure_station_access(party.station_id, actor.station_id, actor.role)


# -- Customers --

def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", field="customer_id")
    return customer


def list_customers(station_id: int, active_only: bool = True, search: str | None = None) -> list[Customer]:
    query = db.session.query(Customer).filter(_visible_to(Customer, station_id))
    if active_only:
        query = query.filter(Customer.is_active.is_(True))
    if search:
        query = query.filter(Customer.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Customer.name.asc()).all()


def find_customer_by_name(station_id: int, name: str) -> Customer | None:
    return (
        db.session.query(Customer)
        .filter(_visible_to(Customer, station_id), Customer.name.ilike(name.strip()))
        .order_by(Customer.station_id.is_(None), Customer.id.asc())
        .first()
    )


def create_customer(station_id: int | None, payload: dict, actor: Actor) -> Customer:
    """station_id None creates a shared customer (admin only)."""
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    require_non_negative(patch, "credit_limit_cents")

    def _op():
        if station_id is None:
            if not actor.is_admin:
                raise ValidationError("station_id is required", field="station_id")
        else:
            ensure_station_access(station_id, actor.station_id, actor.role)
            get_active_station(station_id)
        customer = Customer(station_id=station_id, outstanding_cents=0, **patch)
        db.session.add(customer)
        db.session.flush()
        return customer

    return atomic(_op)


def update_customer(customer_id: int, payload: dict, actor: Actor) -> Customer:
    """Master data only; the balance is never writable here."""
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    require_non_negative(patch, "credit_limit_cents")

    def _op():
        customer = get_customer(customer_id)
        _check_party_access(customer, actor)
        for key, value in patch.items():
            setattr(customer, key, value)
        db.session.flush()
        return customer

    return atomic(_op)


def apply_customer_delta(customer_id: int, delta_cents: int) -> int:
    """
    Store-side ``outstanding_cents += delta`` inside the caller's unit of work.

    Returns the new balance.
    """
    result = db.session.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(outstanding_cents=Customer.outstanding_cents + int(delta_cents))
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Customer not found", field="customer_id")
    customer = db.session.get(Customer, customer_id, populate_existing=True)
    return customer.outstanding_cents


def adjust_customer_balance(customer_id: int, delta_cents) -> int:
    """Atomically add ``delta_cents`` (signed) to the customer's balance and commit."""
    delta = parse_cents(delta_cents, "delta_cents", allow_negative=True)
    return atomic(lambda: apply_customer_delta(customer_id, delta))


def set_customer_balance(customer_id: int, amount_cents, actor: Actor) -> Customer:
    """Admin correction: overwrite the balance under a row lock."""
    amount = parse_cents(amount_cents, "outstanding_cents", allow_negative=True)

    def _op():
        customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
        if customer is None:
            raise NotFoundError("Customer not found", field="customer_id")
        _check_party_access(customer, actor)
        previous = customer.outstanding_cents
        customer.outstanding_cents = amount
        db.session.flush()
        current_app.logger.info(
            "Customer %s balance corrected from %s to %s by user %s",
            customer.id, previous, amount, actor.user_id,
        )
        return customer

    return atomic(_op)


def charge_customer(customer: Customer, amount_cents: int) -> int:
    """
    Add a credit sale to the customer's balance inside the caller's unit of work.

    The increment happens first and the limit is checked against the
    balance the database returns, so two concurrent charges cannot both
    slip under the limit. Raising here rolls the increment back with the
    rest of the transaction.
    """
    new_balance = apply_customer_delta(customer.id, amount_cents)
    if customer.credit_limit_cents is not None and new_balance > customer.credit_limit_cents:
        raise ValidationError(
            f"Credit limit exceeded for {customer.name}",
            field="customer_id",
            details={
                "credit_limit_cents": customer.credit_limit_cents,
                "outstanding_cents": new_balance - amount_cents,
                "requested_cents": amount_cents,
            },
        )
    return new_balance


# -- Suppliers --

def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier not found", field="supplier_id")
    return supplier


def list_suppliers(station_id: int, active_only: bool = True, search: str | None = None) -> list[Supplier]:
    query = db.session.query(Supplier).filter(_visible_to(Supplier, station_id))
    if active_only:
        query = query.filter(Supplier.is_active.is_(True))
    if search:
        query = query.filter(Supplier.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Supplier.name.asc()).all()


def find_supplier_by_name(station_id: int, name: str) -> Supplier | None:
    return (
        db.session.query(Supplier)
        .filter(_visible_to(Supplier, station_id), Supplier.name.ilike(name.strip()))
        .order_by(Supplier.station_id.is_(None), Supplier.id.asc())
        .first()
    )


def create_supplier(station_id: int | None, payload: dict, actor: Actor) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)

    def _op():
        if station_id is None:
            if not actor.is_admin:
                raise ValidationError("station_id is required", field="station_id")
        else:
            ensure_station_access(station_id, actor.station_id, actor.role)
            get_active_station(station_id)
        clash = db.session.query(Supplier).filter(
            Supplier.station_id == station_id if station_id is not None else Supplier.station_id.is_(None),
            Supplier.name == patch["name"],
        ).first()
        if clash:
            raise ConflictError(f"Supplier {patch['name']} already exists", field="name")
        supplier = Supplier(station_id=station_id, outstanding_cents=0, **patch)
        db.session.add(supplier)
        db.session.flush()
        return supplier

    return atomic(_op)


def update_supplier(supplier_id: int, payload: dict, actor: Actor) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)

    def _op():
        supplier = get_supplier(supplier_id)
        _check_party_access(supplier, actor)
        for key, value in patch.items():
            setattr(supplier, key, value)
        db.session.flush()
        return supplier

    return atomic(_op)


def apply_supplier_delta(supplier_id: int, delta_cents: int) -> int:
    result = db.session.execute(
        update(Supplier)
        .where(Supplier.id == supplier_id)
        .values(outstanding_cents=Supplier.outstanding_cents + int(delta_cents))
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Supplier not found", field="supplier_id")
    supplier = db.session.get(Supplier, supplier_id, populate_existing=True)
    return supplier.outstanding_cents


def adjust_supplier_balance(supplier_id: int, delta_cents) -> int:
    delta = parse_cents(delta_cents, "delta_cents", allow_negative=True)
    return atomic(lambda: apply_supplier_delta(supplier_id, delta))


def set_supplier_balance(supplier_id: int, amount_cents, actor: Actor) -> Supplier:
    amount = parse_cents(amount_cents, "outstanding_cents", allow_negative=True)

    def _op():
        supplier = lock_for_update(db.session.query(Supplier).filter_by(id=supplier_id)).first()
        if supplier is None:
            raise NotFoundError("Supplier not found", field="supplier_id")
        _check_party_access(supplier, actor)
        previous = supplier.outstanding_cents
        supplier.outstanding_cents = amount
        db.session.flush()
        current_app.logger.info(
            "Supplier %s balance corrected from %s to %s by user %s",
            supplier.id, previous, amount, actor.user_id,
        )
        return supplier

    return atomic(_op)
