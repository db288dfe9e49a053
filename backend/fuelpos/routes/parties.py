# Overview: Flask API routes for customers and suppliers and their running balances.

from flask import Blueprint, g, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..errors import AuthorizationError, ValidationError
from ..services import party_service
from .common import bool_arg, json_body, snake_keys, station_scope

parties_bp = Blueprint("parties", __name__, url_prefix="/api")


def _check_visible(party) -> None:
    """Shared parties (no station) are visible everywhere; others only to their station."""
    if g.role == "admin" or party.station_id is None:
        return
    if party.station_id != g.station_id:
        raise AuthorizationError("Access to this station is not allowed", field="station_id")


def _balance_amount(data: dict, field: str):
    amount = data.get(field, data.get("amount_cents"))
    if amount is None:
        raise ValidationError(f"{field} is required", field=field)
    return amount


# -- Customers --

@parties_bp.get("/customers")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    customers = party_service.list_customers(
        station_scope(),
        active_only=bool_arg("active_only", True),
        search=request.args.get("search"),
    )
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@parties_bp.post("/customers")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    data = snake_keys(json_body())
    station_id = None if data.get("shared") else station_scope(data, required=False)
    customer = party_service.create_customer(station_id, data, current_actor())
    return jsonify({"customer": customer.to_dict()}), 201


@parties_bp.get("/customers/<int:customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    customer = party_service.get_customer(customer_id)
    _check_visible(customer)
    return jsonify({"customer": customer.to_dict()}), 200


@parties_bp.put("/customers/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def update_customer_route(customer_id: int):
    customer = party_service.update_customer(customer_id, snake_keys(json_body()), current_actor())
    return jsonify({"customer": customer.to_dict()}), 200


@parties_bp.put("/customers/<int:customer_id>/balance")
@require_auth
@require_permission("CORRECT_BALANCES")
def set_customer_balance_route(customer_id: int):
    data = snake_keys(json_body())
    customer = party_service.set_customer_balance(
        customer_id, _balance_amount(data, "outstanding_cents"), current_actor()
    )
    return jsonify({"customer": customer.to_dict()}), 200


# -- Suppliers --

@parties_bp.get("/suppliers")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def list_suppliers_route():
    suppliers = party_service.list_suppliers(
        station_scope(),
        active_only=bool_arg("active_only", True),
        search=request.args.get("search"),
    )
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200


@parties_bp.post("/suppliers")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    data = snake_keys(json_body())
    station_id = None if data.get("shared") else station_scope(data, required=False)
    supplier = party_service.create_supplier(station_id, data, current_actor())
    return jsonify({"supplier": supplier.to_dict()}), 201


@parties_bp.get("/suppliers/<int:supplier_id>")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def get_supplier_route(supplier_id: int):
    supplier = party_service.get_supplier(supplier_id)
    _check_visible(supplier)
    return jsonify({"supplier": supplier.to_dict()}), 200


@parties_bp.put("/suppliers/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    supplier = party_service.update_supplier(supplier_id, snake_keys(json_body()), current_actor())
    return jsonify({"supplier": supplier.to_dict()}), 200


@parties_bp.put("/suppliers/<int:supplier_id>/balance")
@require_auth
@require_permission("CORRECT_BALANCES")
def set_supplier_balance_route(supplier_id: int):
    data = snake_keys(json_body())
    supplier = party_service.set_supplier_balance(
        supplier_id, _balance_amount(data, "outstanding_cents"), current_actor()
    )
    return jsonify({"supplier": supplier.to_dict()}), 200
