# Overview: Flask API routes for login, logout and the current session.

from flask import Blueprint, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..errors import AuthenticationError, ValidationError
from ..permissions import ROLE_ROUTE_ACCESS, permissions_for_role
from ..services import auth_service, permission_service, session_service
from .common import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token goes in ``Authorization: Bearer <token>`` on every other call.
    """
    data = json_body()
    username = data.get("username")
    password = data.get("password")
    if not username or not password:
        raise ValidationError("username and password required")

    try:
        user = auth_service.authenticate(username, password)
    except AuthenticationError:
        permission_service.log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            resource=request.path,
            action="LOGIN",
            reason=f"Failed login for {username}",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        raise

    session, token = session_service.create_session(user)
    permission_service.log_security_event(
        user_id=user.id,
        event_type="LOGIN_SUCCESS",
        success=True,
        resource=request.path,
        action="LOGIN",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        station_id=user.station_id,
    )
    return jsonify({
        "token": token,
        "expires_at": session.to_dict()["expires_at"],
        "user": user.to_dict(),
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token(), "User logout")
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="LOGOUT",
        success=True,
        resource=request.path,
        action="LOGOUT",
        station_id=g.station_id,
    )
    return jsonify({"status": "logged_out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "user": g.current_user.to_dict(),
        "role": g.role,
        "station_id": g.station_id,
        "permissions": sorted(permissions_for_role(g.role)),
        "routes": ROLE_ROUTE_ACCESS.get(g.role, []),
    }), 200
