# Overview: Opaque bearer tokens with absolute and idle timeouts.

"""
Login sessions.

The client gets a random token once; only its SHA-256 digest is stored.
A session carries the user's role and station as they were at login, and
dies at SESSION_TTL_HOURS after creation or SESSION_IDLE_MINUTES after
its last use, whichever comes first.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from fuelpos.time_utils import utcnow


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    role: str
    station_id: int | None


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _find(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(token_hash=_digest(token)).first()


def _close(session: SessionToken, reason: str, when: datetime | None = None) -> None:
    session.is_revoked = True
    session.revoked_at = when or utcnow()
    session.revoked_reason = reason
    db.session.commit()


def _dead_reason(session: SessionToken, now: datetime) -> str | None:
    """Why a stored session can no longer be used, or None if it is live."""
    if session.is_revoked:
        return "revoked"
    if now >= session.expires_at:
        return "expired"
    idle = timedelta(minutes=current_app.config.get("SESSION_IDLE_MINUTES", 120))
    if now - session.last_used_at > idle:
        return "Idle timeout"
    if session.user is None or not session.user.is_active:
        return "User account deactivated"
    return None


def create_session(user: User) -> tuple[SessionToken, str]:
    """Open a session for ``user``; returns (record, plaintext token)."""
    token = secrets.token_hex(32)
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        station_id=user.station_id,
        role=user.role,
        token_hash=_digest(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 12)),
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext, or None.

    Idle sessions and sessions of deactivated users are closed on sight;
    a live session has its last_used_at touched.
    """
    if not token:
        return None
    session = _find(token)
    if session is None:
        return None

    now = utcnow()
    reason = _dead_reason(session, now)
    if reason in ("Idle timeout", "User account deactivated"):
        _close(session, reason, now)
    if reason:
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session, role=session.role, station_id=session.station_id)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = _find(token)
    if session is None or session.is_revoked:
        return False
    _close(session, reason)
    return True
