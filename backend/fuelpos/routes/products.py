# Overview: Flask API routes for the product catalog and price history.

from flask import Blueprint, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..services import product_service
from .common import bool_arg, int_arg, json_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    products = product_service.list_products(
        active_only=bool_arg("active_only", True),
        category=request.args.get("category"),
    )
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    product = product_service.create_product(json_body(), current_actor())
    return jsonify({"product": product.to_dict()}), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return jsonify({"product": product_service.get_product(product_id).to_dict()}), 200


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    product = product_service.update_product(product_id, json_body(), current_actor())
    return jsonify({"product": product.to_dict()}), 200


@products_bp.get("/<int:product_id>/price-history")
@require_auth
def price_history_route(product_id: int):
    history = product_service.get_price_history(product_id, limit=int_arg("limit", 100, minimum=1, maximum=500))
    return jsonify({"price_history": [h.to_dict() for h in history]}), 200
