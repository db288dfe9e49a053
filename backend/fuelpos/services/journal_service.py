# Overview: Chart of accounts, balanced journal entries, reversals and the trial balance.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ACCOUNT_TYPES, NORMAL_BALANCES, Account, JournalEntry, JournalLine, Station
from ..numbers import parse_cents
from .access_service import Actor, ensure_station_access, get_active_station
from .concurrency import atomic
from .document_service import next_document_number
from fuelpos.time_utils import get_zone, parse_business_datetime, utcnow

"""
Journal invariants (authoritative)

- Every entry has at least two lines.
- Every line carries exactly one positive side (debit XOR credit).
- sum(debit_cents) == sum(credit_cents) for every entry.
- All lines of an entry use accounts of the entry's station.
- Entries are append-only. Undo by posting a reversing entry.

post_entry / post_reversal only flush: they run inside the caller's unit
of work so a document and its journal entry commit or roll back together.
"""

DEFAULT_ACCOUNTS = (
    ("1001", "Cash in Hand", "asset", "debit"),
    ("1002", "Card Clearing", "asset", "debit"),
    ("1100", "Accounts Receivable", "asset", "debit"),
    ("1200", "Fuel Inventory", "asset", "debit"),
    ("2001", "Accounts Payable", "liability", "credit"),
    ("3001", "Owner's Equity", "equity", "credit"),
    ("4001", "Fuel Sales", "income", "credit"),
    ("5001", "Operating Expenses", "expense", "debit"),
)

_NORMAL_BY_TYPE = {
    "asset": "debit",
    "expense": "debit",
    "liability": "credit",
    "equity": "credit",
    "income": "credit",
}


# -- Chart of accounts --

def ensure_default_accounts(station_id: int) -> list[Account]:
    """Create any missing default accounts for the station. Idempotent."""
    existing = {
        a.code: a
        for a in db.session.query(Account).filter_by(station_id=station_id).all()
    }
    for code, name, account_type, normal_balance in DEFAULT_ACCOUNTS:
        if code in existing:
            continue
        account = Account(
            station_id=station_id,
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance,
            is_active=True,
        )
        db.session.add(account)
        existing[code] = account
    db.session.flush()
    return sorted(existing.values(), key=lambda a: a.code)


def get_account_by_code(station_id: int, code: str) -> Account:
    account = db.session.query(Account).filter_by(station_id=station_id, code=str(code).strip()).first()
    if account is None and any(code == c for c, _, _, _ in DEFAULT_ACCOUNTS):
        ensure_default_accounts(station_id)
        account = db.session.query(Account).filter_by(station_id=station_id, code=code).first()
    if account is None:
        raise NotFoundError(f"Account {code} not found", field="account_code")
    return account


def create_account(station_id: int, code: str, name: str, account_type: str,
                   normal_balance: str | None = None) -> Account:
    code = (code or "").strip()
    name = (name or "").strip()
    if not code:
        raise ValidationError("code is required", field="code")
    if not name:
        raise ValidationError("name is required", field="name")
    if account_type not in ACCOUNT_TYPES:
        raise ValidationError(f"account_type must be one of: {', '.join(ACCOUNT_TYPES)}", field="account_type")
    normal_balance = normal_balance or _NORMAL_BY_TYPE[account_type]
    if normal_balance not in NORMAL_BALANCES:
        raise ValidationError("normal_balance must be debit or credit", field="normal_balance")

    def _op():
        get_active_station(station_id)
        if db.session.query(Account).filter_by(station_id=station_id, code=code).first():
            raise ConflictError(f"Account code {code} already exists", field="code")
        account = Account(
            station_id=station_id,
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance,
            is_active=True,
        )
        db.session.add(account)
        db.session.flush()
        return account

    return atomic(_op)


def list_accounts(station_id: int, active_only: bool = False) -> list[Account]:
    query = db.session.query(Account).filter(Account.station_id == station_id)
    if active_only:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.code.asc()).all()


# -- Entries --

def _resolve_line_account(station_id: int, raw: dict, index: int) -> Account:
    account_id = raw.get("account_id") or raw.get("accountId")
    account_code = raw.get("account_code") or raw.get("accountCode")
    if account_id:
        account = db.session.get(Account, int(account_id))
        if account is None:
            raise NotFoundError(f"Line {index}: account not found", field="account_id")
    elif account_code:
        account = get_account_by_code(station_id, str(account_code))
    else:
        raise ValidationError(f"Line {index}: account_id or account_code is required", field="account_id")

    if account.station_id != station_id:
        raise ValidationError(f"Line {index}: account belongs to another station", field="account_id")
    if not account.is_active:
        raise ValidationError(f"Line {index}: account {account.code} is inactive", field="account_id")
    return account


def _build_lines(station_id: int, lines: list[dict]) -> list[JournalLine]:
    if not isinstance(lines, list) or len(lines) < 2:
        raise ValidationError("A journal entry needs at least two lines", field="lines")

    built: list[JournalLine] = []
    for index, raw in enumerate(lines, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Line {index}: invalid line", field="lines")
        account = _resolve_line_account(station_id, raw, index)
        debit = parse_cents(raw.get("debit_cents", raw.get("debitCents")) or 0, "debit_cents")
        credit = parse_cents(raw.get("credit_cents", raw.get("creditCents")) or 0, "credit_cents")
        if (debit > 0) == (credit > 0):
            raise ValidationError(
                f"Line {index}: exactly one of debit_cents or credit_cents must be positive",
                field="lines",
            )
        built.append(JournalLine(
            account_id=account.id,
            debit_cents=debit,
            credit_cents=credit,
            description=raw.get("description"),
        ))

    total_debit = sum(line.debit_cents for line in built)
    total_credit = sum(line.credit_cents for line in built)
    if total_debit != total_credit:
        raise ValidationError(
            "Journal entry is not balanced",
            field="lines",
            details={"total_debit_cents": total_debit, "total_credit_cents": total_credit},
        )
    return built


def post_entry(
    *,
    station_id: int,
    lines: list[dict],
    description: str | None = None,
    entry_date: datetime | None = None,
    source_type: str | None = None,
    source_id: int | None = None,
    reverses_entry_id: int | None = None,
    user_id: int | None = None,
) -> JournalEntry:
    """Validate and add one balanced entry to the current unit of work."""
    built = _build_lines(station_id, lines)
    entry = JournalEntry(
        station_id=station_id,
        entry_number=next_document_number(station_id=station_id, document_type="JE"),
        description=description,
        entry_date=entry_date or utcnow(),
        source_type=source_type,
        source_id=source_id,
        reverses_entry_id=reverses_entry_id,
        created_by_user_id=user_id,
    )
    entry.lines = built
    db.session.add(entry)
    db.session.flush()
    return entry


def _is_reversed(entry_id: int) -> bool:
    return db.session.query(JournalEntry.id).filter_by(reverses_entry_id=entry_id).first() is not None


def post_reversal(entry: JournalEntry, *, user_id: int | None = None, reason: str | None = None) -> JournalEntry:
    """Mirror ``entry`` (debits become credits) inside the current unit of work."""
    if entry.reverses_entry_id is not None:
        raise ConflictError("A reversing entry cannot itself be reversed")
    if _is_reversed(entry.id):
        raise ConflictError(f"Journal entry {entry.entry_number} is already reversed")

    mirrored = [
        {
            "account_id": line.account_id,
            "debit_cents": line.credit_cents,
            "credit_cents": line.debit_cents,
            "description": line.description,
        }
        for line in entry.lines
    ]
    reversal = post_entry(
        station_id=entry.station_id,
        lines=mirrored,
        description=reason or f"Reversal of {entry.entry_number}",
        source_type=entry.source_type,
        source_id=entry.source_id,
        reverses_entry_id=entry.id,
        user_id=user_id,
    )
    current_app.logger.info("Reversed journal entry %s with %s", entry.entry_number, reversal.entry_number)
    return reversal


def reverse_source_entries(source_type: str, source_id: int, *, user_id: int | None = None,
                           reason: str | None = None) -> list[JournalEntry]:
    """Reverse every live (not yet reversed) entry posted for a document."""
    originals = (
        db.session.query(JournalEntry)
        .filter(
            JournalEntry.source_type == source_type,
            JournalEntry.source_id == source_id,
            JournalEntry.reverses_entry_id.is_(None),
        )
        .order_by(JournalEntry.id.asc())
        .all()
    )
    return [
        post_reversal(entry, user_id=user_id, reason=reason)
        for entry in originals
        if not _is_reversed(entry.id)
    ]


def create_journal_entry(station_id: int, lines: list[dict], actor: Actor, *,
                         description: str | None = None, entry_date=None) -> JournalEntry:
    """Post a manual entry. Rejects unbalanced or malformed entries with a ValidationError."""
    def _op():
        ensure_station_access(station_id, actor.station_id, actor.role)
        station = get_active_station(station_id)
        try:
            when = parse_business_datetime(entry_date, get_zone(station.timezone))
        except ValueError:
            raise ValidationError("entry_date must be an ISO-8601 date", field="entry_date")
        return post_entry(
            station_id=station_id,
            lines=lines,
            description=description,
            entry_date=when,
            source_type="manual",
            user_id=actor.user_id,
        )

    return atomic(_op)


def get_journal_entry(entry_id: int) -> JournalEntry:
    entry = db.session.get(JournalEntry, entry_id)
    if entry is None:
        raise NotFoundError("Journal entry not found")
    return entry


def reverse_journal_entry(entry_id: int, actor: Actor, reason: str | None = None) -> JournalEntry:
    def _op():
        entry = get_journal_entry(entry_id)
        ensure_station_access(entry.station_id, actor.station_id, actor.role)
        return post_reversal(entry, user_id=actor.user_id, reason=reason)

    return atomic(_op)


def list_journal_entries(station_id: int, start: datetime | None = None, end: datetime | None = None,
                         source_type: str | None = None, limit: int = 200) -> list[JournalEntry]:
    query = db.session.query(JournalEntry).filter(JournalEntry.station_id == station_id)
    if start is not None:
        query = query.filter(JournalEntry.entry_date >= start)
    if end is not None:
        query = query.filter(JournalEntry.entry_date < end)
    if source_type:
        query = query.filter(JournalEntry.source_type == source_type)
    return (
        query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )


def trial_balance(station_id: int) -> dict:
    """
    Per-account debit and credit totals for the station.

    balance_cents is signed by the account's normal side, so a debit-normal
    account with more credits than debits shows a negative balance.
    """
    if db.session.get(Station, station_id) is None:
        raise NotFoundError("Station not found", field="station_id")

    rows = (
        db.session.query(
            Account,
            func.coalesce(func.sum(JournalLine.debit_cents), 0),
            func.coalesce(func.sum(JournalLine.credit_cents), 0),
        )
        .outerjoin(JournalLine, JournalLine.account_id == Account.id)
        .filter(Account.station_id == station_id)
        .group_by(Account.id)
        .order_by(Account.code.asc())
        .all()
    )

    accounts = []
    total_debit = 0
    total_credit = 0
    for account, debit, credit in rows:
        debit = int(debit or 0)
        credit = int(credit or 0)
        total_debit += debit
        total_credit += credit
        balance = debit - credit if account.normal_balance == "debit" else credit - debit
        accounts.append({
            "account_id": account.id,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "debit_cents": debit,
            "credit_cents": credit,
            "balance_cents": balance,
        })

    return {
        "station_id": station_id,
        "accounts": accounts,
        "total_debit_cents": total_debit,
        "total_credit_cents": total_credit,
        "balanced": total_debit == total_credit,
    }
