# Overview: Maps business documents onto balanced journal entries.

"""
POSTING RULES

Defines HOW each document maps to accounting intent:

    sale (cash/card/credit)  Dr 1001 / 1002 / 1100   Cr 4001 Fuel Sales
    purchase delivery        Dr 1200 Fuel Inventory  Cr 2001 Accounts Payable
    receivable payment       Dr 1001 / 1002          Cr 1100 Accounts Receivable
    payable payment          Dr 2001                 Cr 1001 / 1002
    expense                  Dr expense account      Cr 1001 / 1002

This module resolves accounts and builds postings; journal_service
persists them and enforces the balancing rules. A zero-value document
posts nothing.
"""

from __future__ import annotations

from ..models import Expense, JournalEntry, Payment, PurchaseOrder, SalesTransaction
from . import journal_service

CASH = "1001"
CARD_CLEARING = "1002"
RECEIVABLES = "1100"
INVENTORY = "1200"
PAYABLES = "2001"
FUEL_SALES = "4001"

SALE_DEBIT_ACCOUNTS = {
    "cash": CASH,
    "card": CARD_CLEARING,
    "credit": RECEIVABLES,
}


def _settlement_account(payment_method: str) -> str:
    """Where money lands (or leaves from) for a non-credit payment."""
    return CARD_CLEARING if payment_method in ("card", "bank") else CASH


def _pair(station_id: int, debit_code: str, credit_code: str, amount_cents: int, memo: str) -> list[dict]:
    return [
        {
            "account_id": journal_service.get_account_by_code(station_id, debit_code).id,
            "debit_cents": amount_cents,
            "credit_cents": 0,
            "description": memo,
        },
        {
            "account_id": journal_service.get_account_by_code(station_id, credit_code).id,
            "debit_cents": 0,
            "credit_cents": amount_cents,
            "description": memo,
        },
    ]


def post_sale(txn: SalesTransaction, user_id: int | None = None) -> JournalEntry | None:
    if txn.total_cents <= 0:
        return None
    memo = f"Sale {txn.invoice_number}"
    return journal_service.post_entry(
        station_id=txn.station_id,
        lines=_pair(txn.station_id, SALE_DEBIT_ACCOUNTS[txn.payment_method], FUEL_SALES, txn.total_cents, memo),
        description=memo,
        entry_date=txn.transaction_date,
        source_type="sale",
        source_id=txn.id,
        user_id=user_id,
    )


def post_purchase_delivery(order: PurchaseOrder, user_id: int | None = None) -> JournalEntry | None:
    if order.total_cents <= 0:
        return None
    memo = f"Delivery {order.order_number}"
    return journal_service.post_entry(
        station_id=order.station_id,
        lines=_pair(order.station_id, INVENTORY, PAYABLES, order.total_cents, memo),
        description=memo,
        entry_date=order.delivered_at,
        source_type="purchase_order",
        source_id=order.id,
        user_id=user_id,
    )


def post_payment(payment: Payment, user_id: int | None = None) -> JournalEntry:
    settlement = _settlement_account(payment.payment_method)
    if payment.payment_type == "receivable":
        debit, credit = settlement, RECEIVABLES
        memo = f"Payment received {payment.reference_number or payment.id}"
    else:
        debit, credit = PAYABLES, settlement
        memo = f"Payment made {payment.reference_number or payment.id}"
    return journal_service.post_entry(
        station_id=payment.station_id,
        lines=_pair(payment.station_id, debit, credit, payment.amount_cents, memo),
        description=memo,
        entry_date=payment.payment_date,
        source_type="payment",
        source_id=payment.id,
        user_id=user_id,
    )


def post_expense(expense: Expense, user_id: int | None = None) -> JournalEntry:
    memo = expense.description
    lines = [
        {"account_id": expense.account_id, "debit_cents": expense.amount_cents, "credit_cents": 0,
         "description": memo},
        {"account_id": journal_service.get_account_by_code(
            expense.station_id, _settlement_account(expense.payment_method)).id,
         "debit_cents": 0, "credit_cents": expense.amount_cents, "description": memo},
    ]
    return journal_service.post_entry(
        station_id=expense.station_id,
        lines=lines,
        description=f"Expense: {memo}",
        entry_date=expense.expense_date,
        source_type="expense",
        source_id=expense.id,
        user_id=user_id,
    )


def reverse_document(source_type: str, source_id: int, user_id: int | None = None,
                     reason: str | None = None) -> list[JournalEntry]:
    return journal_service.reverse_source_entries(source_type, source_id, user_id=user_id, reason=reason)
