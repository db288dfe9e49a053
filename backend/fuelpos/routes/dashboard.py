# Overview: Flask API route for the station dashboard.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..services.dashboard_service import get_dashboard_stats
from .common import station_scope

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard_route():
    """Today, month-to-date, balances and the last seven days for one station."""
    return jsonify(get_dashboard_stats(station_scope())), 200
