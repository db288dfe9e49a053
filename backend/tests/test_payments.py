"""Payment and expense tests."""

import pytest

from fuelpos.errors import ValidationError
from fuelpos.extensions import db
from fuelpos.models import JournalEntry
from fuelpos.services import journal_service, party_service, payment_service
from fuelpos.services.access_service import SYSTEM_ACTOR


def _entry_codes(source_type, source_id):
    entry = db.session.query(JournalEntry).filter_by(source_type=source_type, source_id=source_id).one()
    return {line.account.code: (line.debit_cents, line.credit_cents) for line in entry.lines}


class TestPayments:

    def test_receivable_payment_lowers_customer_balance(self, station, customer, cashier_actor):
        party_service.set_customer_balance(customer.id, 30000, SYSTEM_ACTOR)

        payment = payment_service.record_payment(station.id, {
            "payment_type": "receivable",
            "customer_id": customer.id,
            "amount": "120.50",
            "payment_method": "card",
        }, cashier_actor)

        assert payment.amount_cents == 12050
        assert party_service.get_customer(customer.id).outstanding_cents == 17950
        assert _entry_codes("payment", payment.id) == {"1002": (12050, 0), "1100": (0, 12050)}

    def test_payable_payment_lowers_supplier_balance(self, station, supplier, manager_actor):
        payment = payment_service.record_payment(station.id, {
            "payment_type": "payable",
            "supplier_id": supplier.id,
            "amount_cents": 80000,
        }, manager_actor)

        assert party_service.get_supplier(supplier.id).outstanding_cents == -80000
        assert _entry_codes("payment", payment.id) == {"2001": (80000, 0), "1001": (0, 80000)}

    def test_receivable_requires_customer(self, station, manager_actor):
        with pytest.raises(ValidationError, match="customer_id is required"):
            payment_service.record_payment(station.id, {"payment_type": "receivable", "amount": 10}, manager_actor)

    @pytest.mark.parametrize("amount", [0, "-5", "abc"])
    def test_amount_must_be_positive(self, station, customer, manager_actor, amount):
        with pytest.raises(ValidationError):
            payment_service.record_payment(station.id, {
                "payment_type": "receivable", "customer_id": customer.id, "amount": amount,
            }, manager_actor)

    def test_unknown_method_rejected(self, station, customer, manager_actor):
        with pytest.raises(ValidationError, match="payment_method"):
            payment_service.record_payment(station.id, {
                "payment_type": "receivable", "customer_id": customer.id, "amount": 1,
                "payment_method": "barter",
            }, manager_actor)

    def test_customer_from_other_station_rejected(self, station_b, customer):
        with pytest.raises(ValidationError, match="another station"):
            payment_service.record_payment(station_b.id, {
                "payment_type": "receivable", "customer_id": customer.id, "amount": 1,
            }, SYSTEM_ACTOR)


class TestExpenses:

    def test_expense_posts_against_default_account(self, station, manager_actor):
        expense = payment_service.record_expense(station.id, {
            "description": "Forecourt cleaning",
            "amount": 45,
        }, manager_actor)

        assert expense.account.code == "5001"
        assert _entry_codes("expense", expense.id) == {"5001": (4500, 0), "1001": (0, 4500)}

    def test_custom_expense_account(self, station, manager_actor):
        journal_service.create_account(station.id, "5100", "Electricity", "expense")
        expense = payment_service.record_expense(station.id, {
            "description": "Power bill",
            "amount_cents": 99000,
            "account_code": "5100",
            "payment_method": "bank",
        }, manager_actor)

        assert _entry_codes("expense", expense.id) == {"5100": (99000, 0), "1002": (0, 99000)}

    def test_non_expense_account_rejected(self, station, manager_actor):
        with pytest.raises(ValidationError, match="not an expense account"):
            payment_service.record_expense(station.id, {
                "description": "Oops", "amount": 1, "account_code": "4001",
            }, manager_actor)
        assert payment_service.list_expenses(station.id) == []

    def test_description_required(self, station, manager_actor):
        with pytest.raises(ValidationError, match="description"):
            payment_service.record_expense(station.id, {"amount": 1}, manager_actor)
