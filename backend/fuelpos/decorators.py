# Overview: Request and permission decorators for API routes.

from __future__ import annotations

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.access_service import Actor


def bearer_token() -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def current_actor() -> Actor:
    """The Actor for the authenticated request (set by @require_auth)."""
    return Actor(user_id=g.current_user.id, role=g.role, station_id=g.station_id)


def require_auth(f):
    """
    Require a valid bearer token.

    Sets on flask.g:
    - g.current_user: the authenticated User
    - g.role: role captured at login
    - g.station_id: station captured at login (None for station-less admins)
    - g.session_context: the full SessionContext
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.role = context.role
        g.station_id = context.station_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def check_permission(permission_code: str):
    """
    Return None when the caller's role holds ``permission_code``, otherwise
    audit the denial and return the 403 response.
    """
    if permission_service.role_has_permission(g.role, permission_code):
        return None

    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=request.path,
        action=permission_code,
        reason=f"Role {g.role} lacks {permission_code}",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        station_id=g.station_id,
    )
    return jsonify({
        "error": "Permission denied",
        "required_permission": permission_code,
    }), 403


def require_permission(permission_code: str):
    """Require a permission of the caller's role. Denials are audited."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            denied = check_permission(permission_code)
            if denied is not None:
                return denied

            return f(*args, **kwargs)

        return decorated_function

    return decorator
