# Overview: Flask API routes for the chart of accounts, journal entries and the trial balance.

from flask import Blueprint, g, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..errors import ValidationError
from ..services import journal_service
from ..services.access_service import ensure_station_access
from ..services.station_service import get_station
from .common import bool_arg, date_range_args, int_arg, json_body, snake_keys, station_scope

accounting_bp = Blueprint("accounting", __name__, url_prefix="/api")


@accounting_bp.get("/accounts")
@require_auth
@require_permission("VIEW_LEDGER")
def list_accounts_route():
    accounts = journal_service.list_accounts(station_scope(), active_only=bool_arg("active_only", False))
    return jsonify({"accounts": [a.to_dict() for a in accounts]}), 200


@accounting_bp.post("/accounts")
@require_auth
@require_permission("POST_JOURNAL")
def create_account_route():
    data = snake_keys(json_body())
    account = journal_service.create_account(
        station_scope(data),
        data.get("code"),
        data.get("name"),
        (data.get("account_type") or "").strip().lower(),
        normal_balance=data.get("normal_balance"),
    )
    return jsonify({"account": account.to_dict()}), 201


@accounting_bp.get("/journal-entries")
@require_auth
@require_permission("VIEW_LEDGER")
def list_entries_route():
    station_id = station_scope()
    start, end = date_range_args(get_station(station_id))
    entries = journal_service.list_journal_entries(
        station_id,
        start=start,
        end=end,
        source_type=request.args.get("source_type"),
        limit=int_arg("limit", 200, minimum=1, maximum=1000),
    )
    return jsonify({"journal_entries": [e.to_dict() for e in entries]}), 200


@accounting_bp.post("/journal-entries")
@require_auth
@require_permission("POST_JOURNAL")
def create_entry_route():
    """
    Post a manual entry.

    Body: stationId, description, entry_date, lines[{account_id or
    account_code, debit_cents, credit_cents, description}]. Unbalanced
    entries are rejected with 400 and nothing is written.
    """
    data = snake_keys(json_body())
    lines = data.get("lines")
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list", field="lines")
    entry = journal_service.create_journal_entry(
        station_scope(data),
        lines,
        current_actor(),
        description=data.get("description"),
        entry_date=data.get("entry_date"),
    )
    return jsonify({"journal_entry": entry.to_dict()}), 201


@accounting_bp.get("/journal-entries/<int:entry_id>")
@require_auth
@require_permission("VIEW_LEDGER")
def get_entry_route(entry_id: int):
    entry = journal_service.get_journal_entry(entry_id)
    ensure_station_access(entry.station_id, g.station_id, g.role)
    return jsonify({"journal_entry": entry.to_dict()}), 200


@accounting_bp.post("/journal-entries/<int:entry_id>/reverse")
@require_auth
@require_permission("POST_JOURNAL")
def reverse_entry_route(entry_id: int):
    reversal = journal_service.reverse_journal_entry(entry_id, current_actor(), json_body().get("reason"))
    return jsonify({"journal_entry": reversal.to_dict()}), 201


@accounting_bp.get("/trial-balance")
@require_auth
@require_permission("VIEW_LEDGER")
def trial_balance_route():
    return jsonify(journal_service.trial_balance(station_scope())), 200
