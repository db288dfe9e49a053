# Overview: Permission checks and the security audit trail.

from __future__ import annotations

from ..extensions import db
from ..models import SecurityEvent
from ..permissions import permissions_for_role
from fuelpos.time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    station_id: int | None = None,
) -> SecurityEvent:
    """
    Append one row to the security audit trail and commit it.

    event_type examples:
    - LOGIN_SUCCESS / LOGIN_FAILED
    - LOGOUT
    - PERMISSION_DENIED
    - CROSS_STATION_DENIED

    Call this only after the request's unit of work has been rolled back
    or committed; it commits on its own.
    """
    event = SecurityEvent(
        user_id=user_id,
        station_id=station_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()
    return event


def role_has_permission(role: str | None, permission_code: str) -> bool:
    return permission_code in permissions_for_role(role)
