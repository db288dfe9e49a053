"""Double-entry journal tests: balance checks, reversals and the trial balance."""

import pytest

from fuelpos.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from fuelpos.extensions import db
from fuelpos.models import JournalEntry, JournalLine
from fuelpos.services import journal_service
from fuelpos.services.access_service import SYSTEM_ACTOR


def _lines(debit_code, credit_code, amount):
    return [
        {"account_code": debit_code, "debit_cents": amount},
        {"account_code": credit_code, "credit_cents": amount},
    ]


class TestChartOfAccounts:

    def test_station_gets_default_accounts(self, station):
        codes = [a.code for a in journal_service.list_accounts(station.id)]
        assert codes == ["1001", "1002", "1100", "1200", "2001", "3001", "4001", "5001"]

    def test_duplicate_code_conflicts(self, station):
        journal_service.create_account(station.id, "5100", "Electricity", "expense")
        with pytest.raises(ConflictError):
            journal_service.create_account(station.id, "5100", "Water", "expense")

    def test_normal_balance_follows_type(self, station):
        account = journal_service.create_account(station.id, "2100", "Accrued Wages", "liability")
        assert account.normal_balance == "credit"


class TestEntries:

    def test_balanced_entry_is_posted(self, station):
        entry = journal_service.create_journal_entry(
            station.id, _lines("1001", "3001", 500000), SYSTEM_ACTOR, description="Owner float"
        )
        assert entry.entry_number == f"JE-{station.id:03d}-0001"
        assert entry.source_type == "manual"
        assert entry.total_debit_cents == entry.total_credit_cents == 500000

    def test_unbalanced_entry_writes_nothing(self, station):
        lines = [
            {"account_code": "1001", "debit_cents": 1000},
            {"account_code": "4001", "credit_cents": 999},
        ]
        with pytest.raises(ValidationError) as exc_info:
            journal_service.create_journal_entry(station.id, lines, SYSTEM_ACTOR)

        assert exc_info.value.details == {"total_debit_cents": 1000, "total_credit_cents": 999}
        assert db.session.query(JournalEntry).count() == 0
        assert db.session.query(JournalLine).count() == 0

    @pytest.mark.parametrize("lines", [
        [{"account_code": "1001", "debit_cents": 100}],
        [{"account_code": "1001", "debit_cents": 100, "credit_cents": 100},
         {"account_code": "4001", "credit_cents": 0}],
        [{"account_code": "1001", "debit_cents": 100}, {"credit_cents": 100}],
    ])
    def test_malformed_lines_rejected(self, station, lines):
        with pytest.raises(ValidationError):
            journal_service.create_journal_entry(station.id, lines, SYSTEM_ACTOR)

    def test_unknown_account_code(self, station):
        with pytest.raises(NotFoundError):
            journal_service.create_journal_entry(station.id, _lines("1001", "9999", 100), SYSTEM_ACTOR)

    def test_account_from_other_station_rejected(self, station, station_b):
        other_cash = journal_service.get_account_by_code(station_b.id, "1001")
        lines = [
            {"account_id": other_cash.id, "debit_cents": 100},
            {"account_code": "4001", "credit_cents": 100},
        ]
        with pytest.raises(ValidationError, match="another station"):
            journal_service.create_journal_entry(station.id, lines, SYSTEM_ACTOR)

    def test_manager_pinned_to_own_station(self, station_b, manager_actor):
        with pytest.raises(AuthorizationError):
            journal_service.create_journal_entry(station_b.id, _lines("1001", "4001", 100), manager_actor)


class TestReversal:

    def test_reversal_mirrors_lines(self, station, manager_actor):
        entry = journal_service.create_journal_entry(station.id, _lines("5001", "1001", 2500), manager_actor)
        reversal = journal_service.reverse_journal_entry(entry.id, manager_actor, reason="Posted twice")

        assert reversal.reverses_entry_id == entry.id
        assert reversal.description == "Posted twice"
        codes = {line.account.code: (line.debit_cents, line.credit_cents) for line in reversal.lines}
        assert codes == {"5001": (0, 2500), "1001": (2500, 0)}

        balances = {a["code"]: a["balance_cents"] for a in journal_service.trial_balance(station.id)["accounts"]}
        assert balances["5001"] == 0
        assert balances["1001"] == 0

    def test_entry_can_only_be_reversed_once(self, station):
        entry = journal_service.create_journal_entry(station.id, _lines("1001", "4001", 100), SYSTEM_ACTOR)
        reversal = journal_service.reverse_journal_entry(entry.id, SYSTEM_ACTOR)

        with pytest.raises(ConflictError, match="already reversed"):
            journal_service.reverse_journal_entry(entry.id, SYSTEM_ACTOR)
        with pytest.raises(ConflictError, match="cannot itself be reversed"):
            journal_service.reverse_journal_entry(reversal.id, SYSTEM_ACTOR)


class TestTrialBalance:

    def test_totals_and_signed_balances(self, station):
        journal_service.create_journal_entry(station.id, _lines("1001", "3001", 100000), SYSTEM_ACTOR)
        journal_service.create_journal_entry(station.id, _lines("1001", "4001", 25000), SYSTEM_ACTOR)
        journal_service.create_journal_entry(station.id, _lines("5001", "1001", 4000), SYSTEM_ACTOR)

        tb = journal_service.trial_balance(station.id)
        balances = {a["code"]: a["balance_cents"] for a in tb["accounts"]}

        assert tb["total_debit_cents"] == tb["total_credit_cents"] == 129000
        assert tb["balanced"] is True
        assert balances["1001"] == 121000
        assert balances["3001"] == 100000
        assert balances["4001"] == 25000
        assert balances["5001"] == 4000
        assert balances["2001"] == 0

    def test_stations_are_separate(self, station, station_b):
        journal_service.create_journal_entry(station.id, _lines("1001", "4001", 700), SYSTEM_ACTOR)
        assert journal_service.trial_balance(station_b.id)["total_debit_cents"] == 0
