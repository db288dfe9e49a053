# Overview: Request parsing helpers shared by the blueprints.

from __future__ import annotations

import re
from datetime import date, timedelta

from flask import g, request

from ..errors import ValidationError
from ..decorators import current_actor
from ..services.access_service import resolve_station_id
from fuelpos.time_utils import get_zone, local_day_start, parse_business_datetime


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def snake_keys(data: dict) -> dict:
    """Accept camelCase keys from the web client alongside snake_case ones."""
    out = {}
    for key, value in data.items():
        snake = _CAMEL.sub("_", key).lower()
        if snake not in out or key == snake:
            out[snake] = value
    return out


def requested_station(data: dict | None = None):
    """stationId / station_id from the JSON body, then the query string."""
    data = data or {}
    for source in (data, request.args):
        for key in ("stationId", "station_id"):
            value = source.get(key)
            if value not in (None, ""):
                return value
    return None


def station_scope(data: dict | None = None, *, required: bool = True) -> int | None:
    """The station this request acts on, after station pinning."""
    return resolve_station_id(requested_station(data), current_actor(), required=required)


def int_arg(name: str, default: int | None = None, *, minimum: int | None = None,
            maximum: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def bool_arg(name: str, default: bool) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def date_range_args(station) -> tuple:
    """
    ?start=&end= as UTC-naive instants. A bare YYYY-MM-DD end date covers
    that whole local day.
    """
    zone = get_zone(station.timezone)
    start_raw = request.args.get("start") or request.args.get("startDate")
    end_raw = request.args.get("end") or request.args.get("endDate")
    try:
        start = parse_business_datetime(start_raw, zone, default_now=False)
        if end_raw and len(end_raw.strip()) == 10:
            end = local_day_start(date.fromisoformat(end_raw.strip()) + timedelta(days=1), zone)
        else:
            end = parse_business_datetime(end_raw, zone, default_now=False)
    except ValueError:
        raise ValidationError("start/end must be ISO-8601 dates", field="start")
    return start, end


def actor_user_id() -> int | None:
    return g.current_user.id if hasattr(g, "current_user") else None
