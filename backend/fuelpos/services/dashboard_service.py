# Overview: Per-station dashboard rollups on the station's local calendar.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import case, func, or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import Customer, Product, PurchaseOrder, SalesTransaction, SalesTransactionItem, Station, Supplier
from ..numbers import quantity_str
from .stock_service import low_stock_tanks
from fuelpos.time_utils import get_zone, local_day_start, to_utc_z, utc_naive_to_local, utcnow

"""
Every "day" here is a calendar day in the station's IANA time zone.
Local day boundaries are converted to UTC-naive instants once and all
filtering happens on the stored UTC timestamps.
"""

WEEK_DAYS = 7
RECENT_ORDERS = 5


def _sales_summary(station_id: int, start: datetime, end: datetime) -> dict:
    total, count = (
        db.session.query(
            func.coalesce(func.sum(SalesTransaction.total_cents), 0),
            func.count(SalesTransaction.id),
        )
        .filter(
            SalesTransaction.station_id == station_id,
            SalesTransaction.transaction_date >= start,
            SalesTransaction.transaction_date < end,
        )
        .one()
    )
    return {"total_cents": int(total or 0), "count": int(count or 0)}


def _product_sales(station_id: int, start: datetime, end: datetime) -> list[dict]:
    rows = (
        db.session.query(
            Product.id,
            Product.name,
            func.coalesce(func.sum(SalesTransactionItem.total_cents), 0),
            func.coalesce(func.sum(SalesTransactionItem.quantity), 0),
        )
        .join(SalesTransactionItem, SalesTransactionItem.product_id == Product.id)
        .join(SalesTransaction, SalesTransaction.id == SalesTransactionItem.transaction_id)
        .filter(
            SalesTransaction.station_id == station_id,
            SalesTransaction.transaction_date >= start,
            SalesTransaction.transaction_date < end,
        )
        .group_by(Product.id, Product.name)
        .order_by(Product.name.asc())
        .all()
    )
    return [
        {
            "product_id": product_id,
            "product_name": name,
            "total_cents": int(total or 0),
            "quantity": quantity_str(quantity or 0),
        }
        for product_id, name, total, quantity in rows
    ]


def _weekly_sales(station_id: int, today, zone) -> list[dict]:
    """
    Seven zero-filled local-day buckets, oldest first.

    One grouped query: the bucket index is a CASE over the UTC instants at
    which each local day starts.
    """
    days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
    bounds = [local_day_start(day, zone) for day in days]
    bounds.append(local_day_start(today + timedelta(days=1), zone))

    bucket = case(
        *[(SalesTransaction.transaction_date < bounds[i + 1], i) for i in range(WEEK_DAYS - 1)],
        else_=WEEK_DAYS - 1,
    ).label("bucket")

    in_week = (
        db.session.query(bucket, SalesTransaction.total_cents.label("total_cents"))
        .filter(
            SalesTransaction.station_id == station_id,
            SalesTransaction.transaction_date >= bounds[0],
            SalesTransaction.transaction_date < bounds[-1],
        )
        .subquery()
    )
    rows = (
        db.session.query(in_week.c.bucket, func.coalesce(func.sum(in_week.c.total_cents), 0))
        .group_by(in_week.c.bucket)
        .all()
    )
    totals = {int(index): int(total or 0) for index, total in rows}

    return [
        {
            "date": day.isoformat(),
            # 0 = Sunday
            "day_of_week": (day.weekday() + 1) % 7,
            "total_cents": totals.get(index, 0),
        }
        for index, day in enumerate(days)
    ]


def get_dashboard_stats(station_id: int, now: datetime | None = None) -> dict:
    """
    Rollups for one station.

    ``now`` is a UTC-naive instant (defaults to the current time); today's
    and this month's figures cover [local start, now).
    """
    station = db.session.get(Station, station_id)
    if station is None:
        raise NotFoundError("Station not found", field="station_id")

    zone = get_zone(station.timezone)
    now = now or utcnow()
    today = utc_naive_to_local(now, zone).date()
    day_start = local_day_start(today, zone)
    month_start = local_day_start(today.replace(day=1), zone)

    visible_customers = (
        Customer.is_active.is_(True),
        or_(Customer.station_id == station_id, Customer.station_id.is_(None)),
    )
    outstanding = (
        db.session.query(func.coalesce(func.sum(Customer.outstanding_cents), 0))
        .filter(*visible_customers)
        .scalar()
    )
    customer_count = db.session.query(func.count(Customer.id)).filter(*visible_customers).scalar()
    supplier_count = (
        db.session.query(func.count(Supplier.id))
        .filter(
            Supplier.is_active.is_(True),
            or_(Supplier.station_id == station_id, Supplier.station_id.is_(None)),
        )
        .scalar()
    )

    payables = (
        db.session.query(func.coalesce(func.sum(PurchaseOrder.total_cents), 0))
        .filter(PurchaseOrder.station_id == station_id, PurchaseOrder.status == "pending")
        .scalar()
    )
    recent_orders = (
        db.session.query(PurchaseOrder)
        .filter(PurchaseOrder.station_id == station_id)
        .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .limit(RECENT_ORDERS)
        .all()
    )

    return {
        "station_id": station.id,
        "timezone": station.timezone,
        "as_of": to_utc_z(now),
        "todays_sales": _sales_summary(station_id, day_start, now),
        "monthly_sales": _sales_summary(station_id, month_start, now),
        "outstanding": {"total_cents": int(outstanding or 0)},
        "payables": {"total_cents": int(payables or 0)},
        "recent_purchase_orders": [order.to_dict() for order in recent_orders],
        "product_sales": _product_sales(station_id, day_start, now),
        "weekly_sales": _weekly_sales(station_id, today, zone),
        "counts": {"customers": int(customer_count or 0), "suppliers": int(supplier_count or 0)},
        "low_stock_tanks": [tank.to_dict() for tank in low_stock_tanks(station_id)],
    }
