# Overview: Flask API routes for sales transactions.

from flask import Blueprint, g, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..services import sales_service
from ..services.access_service import ensure_station_access
from ..services.station_service import get_station
from .common import actor_user_id, date_range_args, int_arg, json_body, snake_keys, station_scope

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

HEADER_FIELDS = ("customer_id", "payment_method", "transaction_date", "invoice_number", "notes")


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    station_id = station_scope()
    start, end = date_range_args(get_station(station_id))
    sales = sales_service.list_sales_transactions(
        station_id,
        start=start,
        end=end,
        limit=int_arg("limit", 100, minimum=1, maximum=1000),
        customer_id=int_arg("customer_id"),
        payment_method=request.args.get("payment_method"),
    )
    return jsonify({"sales": [s.to_dict() for s in sales]}), 200


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Record a POS sale.

    Body: stationId, customer_id, payment_method (cash|card|credit),
    transaction_date, invoice_number, notes, items[{product_id, quantity,
    unit_price_cents}]. Header and items are written together or not at all.
    """
    data = snake_keys(json_body())
    header = {k: data.get(k) for k in HEADER_FIELDS}
    header["station_id"] = station_scope(data)
    txn = sales_service.create_sales_transaction(header, data.get("items"), current_actor())
    return jsonify({"sale": txn.to_dict(include_items=True)}), 201


@sales_bp.get("/<int:transaction_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(transaction_id: int):
    txn = sales_service.get_sales_transaction(transaction_id)
    ensure_station_access(txn.station_id, g.station_id, g.role)
    return jsonify({"sale": txn.to_dict(include_items=True)}), 200


@sales_bp.put("/<int:transaction_id>")
@require_auth
@require_permission("EDIT_SALE")
def update_sale_route(transaction_id: int):
    data = snake_keys(json_body())
    changes = {k: data[k] for k in (*HEADER_FIELDS, "items") if k in data}
    txn = sales_service.update_sales_transaction(transaction_id, changes, current_actor())
    return jsonify({"sale": txn.to_dict(include_items=True)}), 200


@sales_bp.delete("/<int:transaction_id>")
@require_auth
@require_permission("DELETE_SALE")
def delete_sale_route(transaction_id: int):
    summary = sales_service.delete_transaction_secure(
        transaction_id, g.station_id, g.role, user_id=actor_user_id()
    )
    return jsonify({"deleted": summary}), 200
