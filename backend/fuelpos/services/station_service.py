# Overview: Stations and their settings.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Station, StationSettings
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import atomic
from .journal_service import ensure_default_accounts
from fuelpos.time_utils import get_zone

STATION_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "location", "contact_number", "timezone", "is_active"},
    required_on_create={"name"},
)

SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={"currency_code", "currency_symbol", "low_stock_alerts_enabled", "receipt_footer"},
)


def _check_timezone(name: str) -> None:
    if get_zone(name).key != name:
        raise ValidationError(f"Unknown time zone: {name}", field="timezone")


def create_station(payload: dict) -> Station:
    """Create a station with default settings and the default chart of accounts."""
    patch = validate_payload(model=Station, payload=payload, policy=STATION_POLICY, partial=False)
    patch.setdefault("timezone", current_app.config.get("DEFAULT_STATION_TIMEZONE", "UTC"))
    _check_timezone(patch["timezone"])

    def _op():
        if db.session.query(Station).filter_by(name=patch["name"]).first():
            raise ConflictError(f"Station {patch['name']} already exists", field="name")
        if patch.get("code") and db.session.query(Station).filter_by(code=patch["code"]).first():
            raise ConflictError(f"Station code {patch['code']} already exists", field="code")
        station = Station(**patch)
        db.session.add(station)
        db.session.flush()
        db.session.add(StationSettings(station_id=station.id))
        ensure_default_accounts(station.id)
        return station

    station = atomic(_op)
    current_app.logger.info("Station %s created (%s)", station.id, station.name)
    return station


def get_station(station_id: int) -> Station:
    station = db.session.get(Station, station_id)
    if station is None:
        raise NotFoundError("Station not found", field="station_id")
    return station


def list_stations(station_id: int | None = None, active_only: bool = False) -> list[Station]:
    """All stations, or just ``station_id`` when given (non-admin callers)."""
    query = db.session.query(Station)
    if station_id is not None:
        query = query.filter(Station.id == station_id)
    if active_only:
        query = query.filter(Station.is_active.is_(True))
    return query.order_by(Station.name.asc()).all()


def update_station(station_id: int, payload: dict) -> Station:
    patch = validate_payload(model=Station, payload=payload, policy=STATION_POLICY, partial=True)
    if "timezone" in patch:
        _check_timezone(patch["timezone"])

    def _op():
        station = get_station(station_id)
        for key, value in patch.items():
            setattr(station, key, value)
        db.session.flush()
        return station

    return atomic(_op)


def get_settings(station_id: int) -> StationSettings:
    station = get_station(station_id)
    if station.settings is None:
        settings = StationSettings(station_id=station.id)
        db.session.add(settings)
        db.session.flush()
        return settings
    return station.settings


def update_settings(station_id: int, payload: dict) -> StationSettings:
    patch = validate_payload(model=StationSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)

    def _op():
        settings = get_settings(station_id)
        for key, value in patch.items():
            setattr(settings, key, value)
        db.session.flush()
        return settings

    return atomic(_op)
