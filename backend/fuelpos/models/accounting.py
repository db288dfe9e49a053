from __future__ import annotations

from ..extensions import db
from fuelpos.time_utils import to_utc_z

ACCOUNT_TYPES = ("asset", "liability", "equity", "income", "expense")
NORMAL_BALANCES = ("debit", "credit")


class Account(db.Model):
    """Chart-of-accounts entry, scoped to a station."""
    __tablename__ = "accounts"
    __table_args__ = (
        db.UniqueConstraint("station_id", "code", name="uq_accounts_station_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    code = db.Column(db.String(16), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    account_type = db.Column(db.String(16), nullable=False)
    normal_balance = db.Column(db.String(8), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "code": self.code,
            "name": self.name,
            "account_type": self.account_type,
            "normal_balance": self.normal_balance,
            "is_active": self.is_active,
        }


class JournalEntry(db.Model):
    """
    Double-entry journal entry.

    INVARIANT (enforced by journal_service on every write path):
    - at least two lines
    - every line has exactly one positive side
    - sum(debit_cents) == sum(credit_cents)

    Entries are never edited or deleted; a mistake is undone by posting a
    reversing entry (reverses_entry_id).
    """
    __tablename__ = "journal_entries"
    __table_args__ = (
        db.UniqueConstraint("station_id", "entry_number", name="uq_journal_entries_station_number"),
        db.Index("ix_journal_entries_source", "source_type", "source_id"),
        db.Index("ix_journal_entries_station_date", "station_id", "entry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    entry_number = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    entry_date = db.Column(db.DateTime(timezone=True), nullable=False)

    source_type = db.Column(db.String(32), nullable=True)  # sale, purchase_order, payment, expense, manual
    source_id = db.Column(db.Integer, nullable=True)
    reverses_entry_id = db.Column(db.Integer, db.ForeignKey("journal_entries.id"), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "JournalLine",
        backref="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.id",
        lazy=True,
    )

    @property
    def total_debit_cents(self) -> int:
        return sum(line.debit_cents for line in self.lines)

    @property
    def total_credit_cents(self) -> int:
        return sum(line.credit_cents for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "entry_number": self.entry_number,
            "description": self.description,
            "entry_date": to_utc_z(self.entry_date),
            "source_type": self.source_type,
            "source_id": self.source_id,
            "reverses_entry_id": self.reverses_entry_id,
            "created_by_user_id": self.created_by_user_id,
            "total_debit_cents": self.total_debit_cents,
            "total_credit_cents": self.total_credit_cents,
            "lines": [line.to_dict() for line in self.lines],
        }


class JournalLine(db.Model):
    __tablename__ = "journal_lines"
    __table_args__ = (
        db.CheckConstraint("debit_cents >= 0 AND credit_cents >= 0", name="ck_journal_lines_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(db.Integer, db.ForeignKey("journal_entries.id"), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    debit_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_cents = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.String(255), nullable=True)

    account = db.relationship("Account")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "account_code": self.account.code if self.account else None,
            "debit_cents": self.debit_cents,
            "credit_cents": self.credit_cents,
            "description": self.description,
        }
