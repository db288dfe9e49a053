# Overview: Shared parsing of document line items (sales and purchase orders).

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from ..numbers import line_total_cents, parse_cents, parse_money, parse_quantity


@dataclass
class ParsedLine:
    line_number: int
    product: Product
    quantity: Decimal
    unit_price_cents: int
    total_cents: int


def parse_lines(items, *, default_price: bool = True) -> list[ParsedLine]:
    """
    Validate raw line dicts and price them.

    Each item needs product_id and quantity > 0. The unit price comes from
    unit_price_cents, else unit_price (major units), else, when
    default_price is set, the product's current price.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required", field="items")

    parsed: list[ParsedLine] = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index}: invalid item", field="items")

        product_id = raw.get("product_id", raw.get("productId"))
        if product_id in (None, ""):
            raise ValidationError(f"Item {index}: product_id is required", field="product_id")
        try:
            product = db.session.get(Product, int(product_id))
        except (TypeError, ValueError):
            raise ValidationError(f"Item {index}: product_id must be an integer", field="product_id")
        if product is None:
            raise NotFoundError(f"Item {index}: product not found", field="product_id")
        if not product.is_active:
            raise ValidationError(f"Item {index}: product {product.name} is inactive", field="product_id")

        quantity = parse_quantity(raw.get("quantity"), "quantity")

        if raw.get("unit_price_cents", raw.get("unitPriceCents")) is not None:
            unit_price = parse_cents(raw.get("unit_price_cents", raw.get("unitPriceCents")), "unit_price_cents")
        elif raw.get("unit_price", raw.get("unitPrice")) not in (None, ""):
            unit_price = parse_money(raw.get("unit_price", raw.get("unitPrice")), "unit_price")
        elif default_price:
            unit_price = product.current_price_cents
        else:
            raise ValidationError(f"Item {index}: unit_price_cents is required", field="unit_price_cents")

        parsed.append(ParsedLine(
            line_number=index,
            product=product,
            quantity=quantity,
            unit_price_cents=unit_price,
            total_cents=line_total_cents(quantity, unit_price),
        ))
    return parsed
