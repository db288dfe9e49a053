# Overview: Flask API routes for tanks, stock adjustments and the movement ledger.

from flask import Blueprint, g, jsonify

from ..decorators import current_actor, require_auth, require_permission
from ..errors import ValidationError
from ..services import stock_service
from ..services.access_service import ensure_station_access
from .common import bool_arg, int_arg, json_body, snake_keys, station_scope

tanks_bp = Blueprint("tanks", __name__, url_prefix="/api/tanks")


def _visible_tank(tank_id: int):
    tank = stock_service.get_tank(tank_id)
    ensure_station_access(tank.station_id, g.station_id, g.role)
    return tank


@tanks_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_tanks_route():
    station_id = station_scope()
    tanks = stock_service.list_tanks(station_id, active_only=bool_arg("active_only", True))
    return jsonify({"tanks": [t.to_dict() for t in tanks]}), 200


@tanks_bp.post("")
@require_auth
@require_permission("MANAGE_TANKS")
def create_tank_route():
    data = snake_keys(json_body())
    station_id = station_scope(data)
    if data.get("product_id") in (None, ""):
        raise ValidationError("product_id is required", field="product_id")
    try:
        product_id = int(data["product_id"])
    except (TypeError, ValueError):
        raise ValidationError("product_id must be an integer", field="product_id")
    tank = stock_service.create_tank(
        station_id,
        product_id,
        data.get("name"),
        data.get("capacity"),
        current_actor(),
        current_stock=data.get("current_stock") or 0,
        minimum_level=data.get("minimum_level") or 0,
    )
    return jsonify({"tank": tank.to_dict()}), 201


@tanks_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def low_stock_route():
    tanks = stock_service.low_stock_tanks(station_scope())
    return jsonify({"tanks": [t.to_dict() for t in tanks]}), 200


@tanks_bp.get("/<int:tank_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_tank_route(tank_id: int):
    return jsonify({"tank": _visible_tank(tank_id).to_dict()}), 200


@tanks_bp.put("/<int:tank_id>")
@require_auth
@require_permission("MANAGE_TANKS")
def update_tank_route(tank_id: int):
    tank = stock_service.update_tank(tank_id, snake_keys(json_body()), current_actor())
    return jsonify({"tank": tank.to_dict()}), 200


@tanks_bp.put("/<int:tank_id>/stock")
@require_auth
@require_permission("ADJUST_STOCK")
def update_stock_route(tank_id: int):
    """Set the tank to an absolute dip reading; the difference is logged as an adjustment."""
    data = snake_keys(json_body())
    quantity = data.get("current_stock", data.get("quantity"))
    if quantity is None:
        raise ValidationError("current_stock is required", field="current_stock")
    tank = stock_service.update_tank_stock(tank_id, quantity, current_actor(), note=data.get("note"))
    return jsonify({"tank": tank.to_dict()}), 200


@tanks_bp.get("/<int:tank_id>/movements")
@require_auth
@require_permission("VIEW_INVENTORY")
def movements_route(tank_id: int):
    _visible_tank(tank_id)
    movements = stock_service.get_stock_movements(tank_id, limit=int_arg("limit", 50, minimum=1, maximum=500))
    return jsonify({"movements": [m.to_dict() for m in movements]}), 200


@tanks_bp.get("/<int:tank_id>/reconcile")
@require_auth
@require_permission("VIEW_INVENTORY")
def reconcile_route(tank_id: int):
    _visible_tank(tank_id)
    return jsonify(stock_service.reconcile_tank(tank_id)), 200
