"""Customer and supplier master data and running balances."""

import pytest

from fuelpos.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from fuelpos.extensions import db
from fuelpos.models import Customer
from fuelpos.services import party_service
from fuelpos.services.access_service import SYSTEM_ACTOR, Actor


class TestBalanceAdjustments:

    def test_signed_deltas_accumulate(self, customer):
        assert party_service.adjust_customer_balance(customer.id, 5000) == 5000
        assert party_service.adjust_customer_balance(customer.id, "-1500") == 3500
        assert party_service.get_customer(customer.id).outstanding_cents == 3500

    def test_supplier_balance_may_go_negative(self, supplier):
        assert party_service.adjust_supplier_balance(supplier.id, -2500) == -2500

    def test_unknown_party_is_not_found(self, app):
        with pytest.raises(NotFoundError):
            party_service.adjust_customer_balance(9999, 100)
        with pytest.raises(NotFoundError):
            party_service.adjust_supplier_balance(9999, 100)

    @pytest.mark.parametrize("delta", ["12.5", "abc", True])
    def test_delta_must_be_integer_cents(self, customer, delta):
        with pytest.raises(ValidationError):
            party_service.adjust_customer_balance(customer.id, delta)

    def test_adjustment_ignores_stale_in_memory_balance(self, customer):
        # Another writer moves the balance behind the session's back.
        db.session.execute(
            Customer.__table__.update().where(Customer.id == customer.id).values(outstanding_cents=7000)
        )
        db.session.commit()

        assert party_service.adjust_customer_balance(customer.id, 1000) == 8000


class TestBalanceCorrection:

    def test_admin_overwrites_balance(self, customer):
        party_service.adjust_customer_balance(customer.id, 4000)
        corrected = party_service.set_customer_balance(customer.id, 2500, SYSTEM_ACTOR)
        assert corrected.outstanding_cents == 2500

    def test_other_station_cannot_correct(self, supplier, other_manager_user):
        actor = Actor(user_id=other_manager_user.id, role="manager", station_id=other_manager_user.station_id)

        with pytest.raises(AuthorizationError):
            party_service.set_supplier_balance(supplier.id, 100, actor)
        assert party_service.get_supplier(supplier.id).outstanding_cents == 0


class TestMasterData:

    def test_balance_not_writable_through_update(self, customer, manager_actor):
        updated = party_service.update_customer(
            customer.id, {"outstanding_cents": 99999, "contact_phone": "0800 111"}, manager_actor
        )
        assert updated.outstanding_cents == 0
        assert updated.contact_phone == "0800 111"

    def test_negative_credit_limit_rejected(self, station, manager_actor):
        with pytest.raises(ValidationError, match="credit_limit_cents"):
            party_service.create_customer(station.id, {"name": "Bad Limit", "credit_limit_cents": -1}, manager_actor)

    def test_unknown_customer_type_rejected(self, station, manager_actor):
        with pytest.raises(ValidationError, match="customer_type"):
            party_service.create_customer(station.id, {"name": "X", "customer_type": "vip"}, manager_actor)

    def test_duplicate_supplier_name_in_station(self, station, supplier, manager_actor):
        with pytest.raises(ConflictError):
            party_service.create_supplier(station.id, {"name": supplier.name}, manager_actor)

    def test_manager_cannot_create_shared_customer(self, manager_actor):
        with pytest.raises(ValidationError, match="station_id is required"):
            party_service.create_customer(None, {"name": "Shared"}, manager_actor)

    def test_lookup_by_name_prefers_station_row(self, station, customer):
        party_service.create_customer(None, {"name": customer.name}, SYSTEM_ACTOR)

        found = party_service.find_customer_by_name(station.id, customer.name.upper())
        assert found.id == customer.id

    def test_search_is_case_insensitive(self, station, customer):
        assert [c.id for c in party_service.list_customers(station.id, search="transport")] == [customer.id]
