# Overview: Flask API routes for customer/supplier payments and expenses.

from flask import Blueprint, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..services import payment_service
from .common import int_arg, json_body, snake_keys, station_scope

payments_bp = Blueprint("payments", __name__, url_prefix="/api")


@payments_bp.get("/payments")
@require_auth
@require_permission("RECORD_PAYMENTS")
def list_payments_route():
    payments = payment_service.list_payments(
        station_scope(),
        payment_type=request.args.get("type") or request.args.get("payment_type"),
        limit=int_arg("limit", 100, minimum=1, maximum=500),
    )
    return jsonify({"payments": [p.to_dict() for p in payments]}), 200


@payments_bp.post("/payments")
@require_auth
@require_permission("RECORD_PAYMENTS")
def record_payment_route():
    data = snake_keys(json_body())
    data.pop("source", None)
    payment = payment_service.record_payment(station_scope(data), data, current_actor())
    return jsonify({"payment": payment.to_dict()}), 201


@payments_bp.get("/expenses")
@require_auth
@require_permission("RECORD_EXPENSES")
def list_expenses_route():
    expenses = payment_service.list_expenses(station_scope(), limit=int_arg("limit", 100, minimum=1, maximum=500))
    return jsonify({"expenses": [e.to_dict() for e in expenses]}), 200


@payments_bp.post("/expenses")
@require_auth
@require_permission("RECORD_EXPENSES")
def record_expense_route():
    data = snake_keys(json_body())
    data.pop("source", None)
    expense = payment_service.record_expense(station_scope(data), data, current_actor())
    return jsonify({"expense": expense.to_dict()}), 201
