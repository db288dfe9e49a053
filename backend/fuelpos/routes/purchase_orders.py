# Overview: Flask API routes for purchase orders and their status lifecycle.

from flask import Blueprint, g, jsonify, request

from ..decorators import check_permission, current_actor, require_auth, require_permission
from ..errors import ValidationError
from ..services import purchase_service
from ..services.access_service import ensure_station_access
from .common import actor_user_id, int_arg, json_body, snake_keys, station_scope

purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

HEADER_FIELDS = ("supplier_id", "order_date", "expected_delivery_date", "order_number", "notes")


@purchase_orders_bp.get("")
@require_auth
@require_permission("VIEW_PURCHASE_ORDERS")
def list_orders_route():
    orders = purchase_service.list_purchase_orders(
        station_scope(),
        status=request.args.get("status"),
        supplier_id=int_arg("supplier_id"),
        limit=int_arg("limit", 100, minimum=1, maximum=500),
    )
    return jsonify({"purchase_orders": [o.to_dict() for o in orders]}), 200


@purchase_orders_bp.post("")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def create_order_route():
    data = snake_keys(json_body())
    header = {k: data.get(k) for k in HEADER_FIELDS}
    header["station_id"] = station_scope(data)
    order = purchase_service.create_purchase_order(header, data.get("items"), current_actor())
    return jsonify({"purchase_order": order.to_dict(include_items=True)}), 201


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_PURCHASE_ORDERS")
def get_order_route(order_id: int):
    order = purchase_service.get_purchase_order(order_id)
    ensure_station_access(order.station_id, g.station_id, g.role)
    return jsonify({"purchase_order": order.to_dict(include_items=True)}), 200


@purchase_orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def update_order_route(order_id: int):
    data = snake_keys(json_body())
    changes = {k: data[k] for k in (*HEADER_FIELDS, "items") if k in data}
    order = purchase_service.update_purchase_order(order_id, changes, current_actor())
    return jsonify({"purchase_order": order.to_dict(include_items=True)}), 200


@purchase_orders_bp.post("/<int:order_id>/status")
@require_auth
def set_status_route(order_id: int):
    """approved / cancelled need MANAGE_PURCHASE_ORDERS; delivered needs RECEIVE_DELIVERIES."""
    status = (json_body().get("status") or "").strip().lower()
    if not status:
        raise ValidationError("status is required", field="status")
    required = "RECEIVE_DELIVERIES" if status == "delivered" else "MANAGE_PURCHASE_ORDERS"
    denied = check_permission(required)
    if denied is not None:
        return denied
    order = purchase_service.set_purchase_order_status(order_id, status, current_actor())
    return jsonify({"purchase_order": order.to_dict(include_items=True)}), 200


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def delete_order_route(order_id: int):
    summary = purchase_service.delete_purchase_order_secure(
        order_id, g.station_id, g.role, user_id=actor_user_id()
    )
    return jsonify({"deleted": summary}), 200

