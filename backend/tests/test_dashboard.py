"""
Dashboard rollup tests.

The station runs on America/New_York; "today" and the weekly buckets are
local calendar days, so a sale at 04:30 UTC belongs to the previous day.
"""

from datetime import datetime

import pytest

from fuelpos.services import dashboard_service, party_service, purchase_service, sales_service, station_service
from fuelpos.services.access_service import SYSTEM_ACTOR

# Thursday 15 January 2026, 10:00 in New York (UTC-5)
NOW = datetime(2026, 1, 15, 15, 0)


@pytest.fixture
def ny_station(app):
    return station_service.create_station({"name": "Hudson Fuel", "code": "HUD", "timezone": "America/New_York"})


def _sell(station, product, quantity, when):
    return sales_service.create_sales_transaction(
        {"station_id": station.id, "transaction_date": when},
        [{"product_id": product.id, "quantity": quantity, "unit_price_cents": 250}],
        SYSTEM_ACTOR,
    )


class TestLocalDays:

    @pytest.fixture(autouse=True)
    def _sales(self, ny_station, petrol):
        _sell(ny_station, petrol, 2, "2026-01-08T12:00:00Z")    # outside the week
        _sell(ny_station, petrol, 10, "2026-01-09T12:00:00Z")   # first day of the week
        _sell(ny_station, petrol, 4, "2026-01-15T04:30:00Z")    # 23:30 on the 14th locally
        _sell(ny_station, petrol, 40, "2026-01-15T06:00:00Z")   # 01:00 today
        _sell(ny_station, petrol, 8, "2026-01-15T18:00:00Z")    # later today, after NOW

    def test_todays_sales_use_local_midnight(self, ny_station):
        stats = dashboard_service.get_dashboard_stats(ny_station.id, now=NOW)
        assert stats["todays_sales"] == {"total_cents": 10000, "count": 1}
        assert stats["as_of"] == "2026-01-15T15:00:00Z"
        assert stats["timezone"] == "America/New_York"

    def test_monthly_sales(self, ny_station):
        stats = dashboard_service.get_dashboard_stats(ny_station.id, now=NOW)
        assert stats["monthly_sales"] == {"total_cents": 14000, "count": 4}

    def test_weekly_buckets_are_zero_filled(self, ny_station):
        weekly = dashboard_service.get_dashboard_stats(ny_station.id, now=NOW)["weekly_sales"]

        assert [d["date"] for d in weekly] == [f"2026-01-{day:02d}" for day in range(9, 16)]
        assert [d["total_cents"] for d in weekly] == [2500, 0, 0, 0, 0, 1000, 12000]
        assert weekly[-1]["day_of_week"] == 4

    def test_product_sales_for_today(self, ny_station, petrol):
        product_sales = dashboard_service.get_dashboard_stats(ny_station.id, now=NOW)["product_sales"]
        assert product_sales == [
            {"product_id": petrol.id, "product_name": "95 Octane Petrol", "total_cents": 10000, "quantity": "40.000"},
        ]


class TestBalances:

    def test_outstanding_payables_and_low_stock(self, station, petrol, petrol_tank, diesel_tank, customer,
                                                supplier, manager_actor):
        party_service.set_customer_balance(customer.id, 42000, SYSTEM_ACTOR)
        purchase_service.create_purchase_order(
            {"station_id": station.id, "supplier_id": supplier.id},
            [{"product_id": petrol.id, "quantity": 100, "unit_price_cents": 200}],
            manager_actor,
        )

        stats = dashboard_service.get_dashboard_stats(station.id)

        assert stats["outstanding"] == {"total_cents": 42000}
        assert stats["payables"] == {"total_cents": 20000}
        assert stats["counts"] == {"customers": 1, "suppliers": 1}
        assert [t["id"] for t in stats["low_stock_tanks"]] == [diesel_tank.id]
        assert len(stats["recent_purchase_orders"]) == 1

    def test_other_station_data_is_excluded(self, station, station_b, customer):
        party_service.set_customer_balance(customer.id, 500, SYSTEM_ACTOR)
        stats = dashboard_service.get_dashboard_stats(station_b.id)
        assert stats["outstanding"] == {"total_cents": 0}
        assert stats["todays_sales"] == {"total_cents": 0, "count": 0}
