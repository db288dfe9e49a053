# Overview: User accounts, password hashing and credential checks.

"""
Authentication service.

Passwords are hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
and must pass validate_password_strength before hashing. Session tokens
live in session_service.

Non-admin users must belong to a station; admins may be station-less.
"""

import re

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ROLES, Station, User
from fuelpos.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long", field="password")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter", field="password")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter", field="password")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit", field="password")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character", field="password")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check; malformed hashes simply fail."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    username: str,
    password: str,
    *,
    role: str = "cashier",
    station_id: int | None = None,
    full_name: str | None = None,
    email: str | None = None,
) -> User:
    """
    Create a user. Raises ValidationError for bad input, ConflictError when
    the username or email is taken, NotFoundError for an unknown station.
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required", field="username")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}", field="role")

    if role != "admin" and not station_id:
        raise ValidationError("Non-admin users must be assigned to a station", field="station_id")
    if station_id is not None:
        station = db.session.get(Station, station_id)
        if not station:
            raise NotFoundError("Station not found", field="station_id")

    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists", field="username")
    email = (email or "").strip() or None
    if email and db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already exists", field="email")

    user = User(
        username=username,
        full_name=full_name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        station_id=station_id,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User:
    """
    Return the user for valid credentials, else raise AuthenticationError.

    The same message is used for unknown users, wrong passwords and
    deactivated accounts.
    """
    user = db.session.query(User).filter_by(username=(username or "").strip()).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid username or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_users(station_id: int | None = None) -> list[User]:
    query = db.session.query(User)
    if station_id is not None:
        query = query.filter(User.station_id == station_id)
    return query.order_by(User.username.asc()).all()
