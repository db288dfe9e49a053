# Overview: Money and quantity parsing shared by services, routes and imports.

"""
Money is integer cents everywhere. Quantities (litres, units) are Decimal
with three places. Line totals are quantity * unit price, rounded half-up to
the cent, so a header total built from its lines is always exact.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .errors import ValidationError

QUANTITY_PLACES = Decimal("0.001")
CENT = Decimal("1")

# $9,999,999.99 keeps every total well inside a 64-bit integer
MAX_AMOUNT_CENTS = 999_999_999


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip().replace(",", "")
    if not text:
        raise ValidationError(f"{field} is required", field=field)
    try:
        result = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    return result


def parse_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False,
                   allow_negative: bool = False) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    qty = _to_decimal(value, field).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)
    if qty < 0 and not allow_negative:
        raise ValidationError(f"{field} must be positive", field=field)
    if qty == 0 and not allow_zero:
        raise ValidationError(f"{field} must be positive", field=field)
    return qty


def parse_cents(value: Any, field: str, *, allow_zero: bool = True,
                allow_negative: bool = False) -> int:
    """Parse an integer amount already expressed in cents."""
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer", field=field)
        value = int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be an integer", field=field)
        value = int(stripped)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field)
    return _check_amount(value, field, allow_zero=allow_zero, allow_negative=allow_negative)


def parse_money(value: Any, field: str, *, allow_zero: bool = True,
                allow_negative: bool = False) -> int:
    """Parse a major-unit amount ("150.00", 150.5, "$1,200") into cents."""
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, str):
        value = value.strip().replace("$", "")
    amount = _to_decimal(value, field)
    cents = int((amount * 100).quantize(CENT, rounding=ROUND_HALF_UP))
    return _check_amount(cents, field, allow_zero=allow_zero, allow_negative=allow_negative)


def _check_amount(cents: int, field: str, *, allow_zero: bool, allow_negative: bool) -> int:
    if cents < 0 and not allow_negative:
        raise ValidationError(f"{field} must be >= 0", field=field)
    if cents == 0 and not allow_zero:
        raise ValidationError(f"{field} must be > 0", field=field)
    if abs(cents) > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds the maximum amount", field=field)
    return cents


def line_total_cents(quantity: Decimal, unit_price_cents: int) -> int:
    return int((quantity * unit_price_cents).quantize(CENT, rounding=ROUND_HALF_UP))


def quantity_str(value) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(QUANTITY_PLACES))
