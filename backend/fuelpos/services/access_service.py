# Overview: Station pinning. Decides which station a caller may read or write.

"""
Station access rules.

- admin: any station; an admin request without a station gets None
  (callers decide whether that means "all" or is an error)
- manager / cashier: always their own station; naming another station
  is an AuthorizationError, never a silent fallback
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Station


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation. Built from the session per request."""
    user_id: int | None
    role: str
    station_id: int | None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


SYSTEM_ACTOR = Actor(user_id=None, role="admin", station_id=None)


def _coerce_station_id(value) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("stationId must be an integer", field="stationId")


def ensure_station_access(station_id: int, caller_station_id: int | None, caller_role: str) -> None:
    if caller_role == "admin":
        return
    if caller_station_id is None or int(station_id) != int(caller_station_id):
        raise AuthorizationError("Access to this station is not allowed", field="station_id")


def resolve_station_id(requested, actor: Actor, *, required: bool = True) -> int | None:
    """
    Return the station the caller will act on.

    Non-admins default to (and are limited to) their own station.
    """
    station_id = _coerce_station_id(requested)

    if not actor.is_admin:
        if actor.station_id is None:
            raise AuthorizationError("User is not assigned to a station")
        if station_id is None:
            return actor.station_id
        ensure_station_access(station_id, actor.station_id, actor.role)
        return station_id

    if station_id is None:
        station_id = actor.station_id
    if station_id is None and required:
        raise ValidationError("stationId is required", field="stationId")
    return station_id


def get_active_station(station_id: int) -> Station:
    station = db.session.get(Station, station_id)
    if not station:
        raise NotFoundError("Station not found", field="station_id")
    if not station.is_active:
        raise ValidationError("Station is not active", field="station_id")
    return station
