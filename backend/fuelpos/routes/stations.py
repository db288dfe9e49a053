# Overview: Flask API routes for stations and station settings.

from flask import Blueprint, g, jsonify

from ..decorators import current_actor, require_auth, require_permission
from ..services import station_service
from ..services.access_service import ensure_station_access
from .common import bool_arg, json_body

stations_bp = Blueprint("stations", __name__, url_prefix="/api/stations")


@stations_bp.get("")
@require_auth
def list_stations_route():
    actor = current_actor()
    stations = station_service.list_stations(
        station_id=None if actor.is_admin else actor.station_id,
        active_only=bool_arg("active_only", False),
    )
    return jsonify({"stations": [s.to_dict() for s in stations]}), 200


@stations_bp.post("")
@require_auth
@require_permission("MANAGE_STATIONS")
def create_station_route():
    station = station_service.create_station(json_body())
    return jsonify({"station": station.to_dict()}), 201


@stations_bp.get("/<int:station_id>")
@require_auth
def get_station_route(station_id: int):
    ensure_station_access(station_id, g.station_id, g.role)
    return jsonify({"station": station_service.get_station(station_id).to_dict()}), 200


@stations_bp.put("/<int:station_id>")
@require_auth
@require_permission("MANAGE_STATIONS")
def update_station_route(station_id: int):
    station = station_service.update_station(station_id, json_body())
    return jsonify({"station": station.to_dict()}), 200


@stations_bp.get("/<int:station_id>/settings")
@require_auth
def get_settings_route(station_id: int):
    ensure_station_access(station_id, g.station_id, g.role)
    return jsonify({"settings": station_service.get_settings(station_id).to_dict()}), 200


@stations_bp.put("/<int:station_id>/settings")
@require_auth
@require_permission("MANAGE_STATIONS")
def update_settings_route(station_id: int):
    settings = station_service.update_settings(station_id, json_body())
    return jsonify({"settings": settings.to_dict()}), 200
