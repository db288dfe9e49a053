# Overview: Allowlist-and-coerce validation of JSON payloads against model columns.

"""
Payload validation for the plain CRUD entities (stations, settings,
products, customers, suppliers).

A policy names the columns a client may write; every other key is dropped
so a client can post back an object it previously read. Values are coerced
by the column's SQLAlchemy type, which keeps the model the one place that
defines lengths, nullability and numeric kinds.

Integer columns named ``*_cents`` are money and go through parse_cents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String

from .errors import ValidationError
from .numbers import parse_cents, parse_quantity
from fuelpos.time_utils import parse_iso_datetime

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ModelValidationPolicy:
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    # allowed values for enumerated string columns
    choices: dict[str, set[str]] = field(default_factory=dict)


def _as_int(key: str, value: Any) -> int:
    if key.endswith("_cents"):
        return parse_cents(value, key, allow_negative=True)
    if isinstance(value, (bool, float)):
        raise ValidationError(f"{key} must be an integer", field=key)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    # plain digits only: no "1e3", no "12.0"
    if not text.lstrip("-").isdigit():
        raise ValidationError(f"{key} must be an integer", field=key)
    return int(text)


def _as_quantity(key: str, value: Any):
    return parse_quantity(value, key, allow_zero=True)


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


def _as_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        parsed = parse_iso_datetime(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime", field=key)
    return parsed


def _as_text(key: str, value: Any) -> str:
    return str(value).strip()


# First match wins; Text is a String subclass.
_COERCERS: tuple[tuple[type, Callable[[str, Any], Any]], ...] = (
    (Boolean, _as_bool),
    (Integer, _as_int),
    (Numeric, _as_quantity),
    (DateTime, _as_datetime),
    (String, _as_text),
)


def _coerce(column, value: Any) -> Any:
    for column_type, coerce in _COERCERS:
        if isinstance(column.type, column_type):
            return coerce(column.key, value)
    return value


def _clean(column, raw: Any, policy: ModelValidationPolicy) -> Any:
    key = column.key
    value = None if raw is None else _coerce(column, raw)

    if value == "" and column.nullable:
        value = None
    if value is None:
        if not column.nullable:
            raise ValidationError(f"{key} cannot be null", field=key)
        return None
    if value == "":
        raise ValidationError(f"{key} cannot be blank", field=key)

    length = getattr(column.type, "length", None)
    if length and isinstance(value, str) and len(value) > length:
        raise ValidationError(f"{key} exceeds max length {length}", field=key)

    allowed = policy.choices.get(key)
    if allowed is not None and value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(sorted(allowed))}", field=key)
    return value


def validate_payload(*, model, payload: dict | None, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Return the cleaned, writable subset of ``payload``.

    partial=False is create: required_on_create must be present and
    non-blank. partial=True is patch: only the keys given are checked.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(name for name in policy.required_on_create if payload.get(name) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])

    columns = {column.key: column for column in model.__mapper__.columns}
    return {
        key: _clean(columns[key], raw, policy)
        for key, raw in payload.items()
        if key in policy.writable_fields and key in columns
    }


def require_non_negative(patch: dict, *fields: str) -> None:
    for name in fields:
        value = patch.get(name)
        if value is not None and value < 0:
            raise ValidationError(f"{name} must be >= 0", field=name)
