from __future__ import annotations

from ..extensions import db
from fuelpos.time_utils import to_utc_z

PAYMENT_TYPES = ("receivable", "payable")
PAYMENT_METHODS = ("cash", "card", "bank", "cheque")


class Payment(db.Model):
    """
    Money received from a customer (receivable) or paid to a supplier (payable).

    Exactly one of customer_id / supplier_id is set, matching payment_type.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_station_date", "station_id", "payment_date"),
        db.CheckConstraint("amount_cents > 0", name="ck_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)

    payment_type = db.Column(db.String(16), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    reference_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    source = db.Column(db.String(16), nullable=False, default="pos")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    supplier = db.relationship("Supplier")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "payment_type": self.payment_type,
            "customer_id": self.customer_id,
            "supplier_id": self.supplier_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "payment_date": to_utc_z(self.payment_date),
            "user_id": self.user_id,
            "source": self.source,
        }


class Expense(db.Model):
    """Operating expense booked against an expense account."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_station_date", "station_id", "expense_date"),
        db.CheckConstraint("amount_cents > 0", name="ck_expenses_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)

    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False)
    receipt_number = db.Column(db.String(64), nullable=True)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    notes = db.Column(db.Text, nullable=True)

    expense_date = db.Column(db.DateTime(timezone=True), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    source = db.Column(db.String(16), nullable=False, default="pos")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    account = db.relationship("Account")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "account_id": self.account_id,
            "account_code": self.account.code if self.account else None,
            "receipt_number": self.receipt_number,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "expense_date": to_utc_z(self.expense_date),
            "user_id": self.user_id,
            "source": self.source,
        }
