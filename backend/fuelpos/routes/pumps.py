# Overview: Flask API routes for pumps and shift meter readings.

from flask import Blueprint, g, jsonify

from ..decorators import current_actor, require_auth, require_permission
from ..errors import ValidationError
from ..services import stock_service
from ..services.access_service import ensure_station_access
from .common import bool_arg, int_arg, json_body, snake_keys, station_scope

pumps_bp = Blueprint("pumps", __name__, url_prefix="/api/pumps")


def _int_field(data: dict, field: str) -> int:
    value = data.get(field)
    if value in (None, ""):
        raise ValidationError(f"{field} is required", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)


@pumps_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_pumps_route():
    pumps = stock_service.list_pumps(station_scope(), active_only=bool_arg("active_only", False))
    return jsonify({"pumps": [p.to_dict() for p in pumps]}), 200


@pumps_bp.post("")
@require_auth
@require_permission("MANAGE_TANKS")
def create_pump_route():
    data = snake_keys(json_body())
    station_id = station_scope(data)
    pump = stock_service.create_pump(station_id, _int_field(data, "tank_id"), data.get("name"), current_actor())
    return jsonify({"pump": pump.to_dict()}), 201


@pumps_bp.put("/<int:pump_id>")
@require_auth
@require_permission("MANAGE_TANKS")
def update_pump_route(pump_id: int):
    pump = stock_service.update_pump(pump_id, snake_keys(json_body()), current_actor())
    return jsonify({"pump": pump.to_dict()}), 200


@pumps_bp.delete("/<int:pump_id>")
@require_auth
@require_permission("MANAGE_TANKS")
def delete_pump_route(pump_id: int):
    """Pumps keep their reading history, so delete only deactivates."""
    pump = stock_service.deactivate_pump(pump_id, current_actor())
    return jsonify({"pump": pump.to_dict()}), 200


@pumps_bp.get("/readings")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_readings_route():
    station_id = station_scope()
    pump_id = int_arg("pump_id")
    if pump_id is not None:
        ensure_station_access(stock_service.get_pump(pump_id).station_id, g.station_id, g.role)
    readings = stock_service.list_pump_readings(
        station_id, pump_id=pump_id, limit=int_arg("limit", 100, minimum=1, maximum=500)
    )
    return jsonify({"readings": [r.to_dict() for r in readings]}), 200


@pumps_bp.post("/readings")
@require_auth
@require_permission("RECORD_PUMP_READINGS")
def record_reading_route():
    data = snake_keys(json_body())
    reading = stock_service.record_pump_reading(
        _int_field(data, "pump_id"),
        data.get("opening_reading"),
        data.get("closing_reading"),
        current_actor(),
        shift=data.get("shift"),
        reading_date=data.get("reading_date"),
    )
    return jsonify({"reading": reading.to_dict()}), 201
