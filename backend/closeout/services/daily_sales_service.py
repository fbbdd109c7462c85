# Overview: Daily sales aggregation over the checkout archive; recompute, finalize and report.

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ArchivedOrder, DailySales, DiningTable, Order, SalesCycle, Store
from ..time_utils import Clock, SystemClock
from .business_hours_service import get_accounting_settings, get_store_calendar
from .concurrency import lock_for_update, run_with_retry


class DailySalesError(Exception):
    """Raised for daily sales aggregation errors."""
    pass


class AlreadyFinalized(DailySalesError):
    """Raised when recomputing a finalized day."""
    pass


class DailySalesNotFound(DailySalesError):
    """Raised when no aggregate exists for the requested day."""
    pass


def calculate_tax(amount: int, tax_rate_bps: int) -> int:
    """Tax on amount, rounded down to the minor unit."""
    return amount * tax_rate_bps // 10000


def _archived_totals(store_id: int, start, end) -> tuple[int, int, int]:
    row = db.session.query(
        func.count(ArchivedOrder.id),
        func.coalesce(func.sum(ArchivedOrder.total_items), 0),
        func.coalesce(func.sum(ArchivedOrder.total_amount), 0),
    ).filter(
        ArchivedOrder.store_id == store_id,
        ArchivedOrder.status != "cancelled",
        ArchivedOrder.archived_at >= start,
        ArchivedOrder.archived_at < end,
    ).one()
    return int(row[0] or 0), int(row[1] or 0), int(row[2] or 0)


def _delivered_unbilled_totals(store_id: int, start, end) -> tuple[int, int, int]:
    row = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_items), 0),
        func.coalesce(func.sum(Order.total_amount), 0),
    ).filter(
        Order.store_id == store_id,
        Order.status == "delivered",
        Order.updated_at >= start,
        Order.updated_at < end,
    ).one()
    return int(row[0] or 0), int(row[1] or 0), int(row[2] or 0)


def recompute(store_id: int, day: date) -> DailySales:
    """
    Rebuild the aggregate for (store, accounting date) and upsert it.

    Counts archived orders whose archived_at falls in the day's period and,
    when the store's count_delivered_unbilled flag is on, live delivered
    orders last updated in that period. Reads committed data only.
    """
    calendar = get_store_calendar(store_id)
    settings = get_accounting_settings(store_id)
    period = calendar.period(day)
    include_delivered = settings.count_delivered_unbilled
    tax_rate_bps = settings.tax_rate_bps
    db.session.commit()

    def _op() -> DailySales:
        row = lock_for_update(
            db.session.query(DailySales).filter_by(store_id=store_id, accounting_date=day.isoformat())
        ).first()
        if row and row.is_finalized:
            raise AlreadyFinalized(f"Daily sales for {day.isoformat()} are finalized")

        orders, items, amount = _archived_totals(store_id, period.start, period.end)
        if include_delivered:
            live_orders, live_items, live_amount = _delivered_unbilled_totals(store_id, period.start, period.end)
            orders += live_orders
            items += live_items
            amount += live_amount

        if row is None:
            row = DailySales(store_id=store_id, accounting_date=day.isoformat())
            db.session.add(row)

        row.total_orders = orders
        row.total_items = items
        row.total_amount = amount
        row.tax_amount = calculate_tax(amount, tax_rate_bps)
        row.period_start = period.start
        row.period_end = period.end
        row.is_finalized = False

        db.session.commit()
        return row

    try:
        row = run_with_retry(_op)
    except IntegrityError:
        # Lost the insert race for a new day; the row exists now
        row = run_with_retry(_op)

    current_app.logger.info(
        "Daily sales recomputed for store %s, date %s: %s orders, amount %s",
        store_id, day.isoformat(), row.total_orders, row.total_amount,
    )
    return row


def finalize(store_id: int, day: date) -> DailySales:
    """Freeze the aggregate for the day. One-way."""
    def _op() -> DailySales:
        row = lock_for_update(
            db.session.query(DailySales).filter_by(store_id=store_id, accounting_date=day.isoformat())
        ).first()
        if not row:
            raise DailySalesNotFound(f"No daily sales for store {store_id} on {day.isoformat()}")
        row.is_finalized = True
        db.session.commit()
        return row

    row = run_with_retry(_op)
    current_app.logger.info("Daily sales finalized for store %s, date %s", store_id, day.isoformat())
    return row


def get_daily_sales(
    store_id: int,
    day: date | None = None,
    start: date | None = None,
    end: date | None = None,
    *,
    clock: Clock | None = None,
) -> list[DailySales]:
    """
    Aggregates for one day, an inclusive range, or (by default) the current
    accounting date. Newest first.
    """
    query = db.session.query(DailySales).filter(DailySales.store_id == store_id)

    if day is not None:
        query = query.filter(DailySales.accounting_date == day.isoformat())
    elif start is not None and end is not None:
        query = query.filter(
            DailySales.accounting_date >= start.isoformat(),
            DailySales.accounting_date <= end.isoformat(),
        )
    else:
        clock = clock or SystemClock()
        today = get_store_calendar(store_id).accounting_date(clock.now())
        query = query.filter(DailySales.accounting_date == today.isoformat())

    return query.order_by(DailySales.accounting_date.desc()).all()


def _period_key(accounting_date: str, group_by: str) -> str:
    day = date.fromisoformat(accounting_date)
    if group_by == "day":
        return day.isoformat()
    if group_by == "week":
        return (day - timedelta(days=day.weekday())).isoformat()
    if group_by == "month":
        return day.strftime("%Y-%m")
    raise DailySalesError("group_by must be day, week, or month")


def sales_summary(store_id: int, start: date, end: date, group_by: str = "day") -> dict:
    """Sum daily aggregates over [start, end) grouped by day, ISO week (Monday) or month."""
    if group_by not in ("day", "week", "month"):
        raise DailySalesError("group_by must be day, week, or month")

    rows = (
        db.session.query(DailySales)
        .filter(
            DailySales.store_id == store_id,
            DailySales.accounting_date >= start.isoformat(),
            DailySales.accounting_date < end.isoformat(),
        )
        .order_by(DailySales.accounting_date.asc())
        .all()
    )

    buckets: dict[str, dict] = {}
    for row in rows:
        key = _period_key(row.accounting_date, group_by)
        bucket = buckets.setdefault(key, {
            "period": key,
            "days": 0,
            "total_orders": 0,
            "total_items": 0,
            "total_amount": 0,
            "tax_amount": 0,
        })
        bucket["days"] += 1
        bucket["total_orders"] += row.total_orders
        bucket["total_items"] += row.total_items
        bucket["total_amount"] += row.total_amount
        bucket["tax_amount"] += row.tax_amount

    for bucket in buckets.values():
        orders = bucket["total_orders"]
        bucket["average_order_amount"] = bucket["total_amount"] // orders if orders else 0

    return {
        "store_id": store_id,
        "group_by": group_by,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "rows": [buckets[key] for key in sorted(buckets)],
    }


def list_sales_cycles(store_id: int, day: date) -> list[dict]:
    """Completed cycles whose checkout fell in the day's period, newest first."""
    period = get_store_calendar(store_id).period(day)
    cycles = (
        db.session.query(SalesCycle, DiningTable.number)
        .join(DiningTable, DiningTable.id == SalesCycle.table_id)
        .filter(
            SalesCycle.store_id == store_id,
            SalesCycle.status == "completed",
            SalesCycle.completed_at >= period.start,
            SalesCycle.completed_at < period.end,
        )
        .order_by(SalesCycle.completed_at.desc())
        .all()
    )

    result = []
    for cycle, table_number in cycles:
        data = cycle.to_dict()
        data["table_number"] = table_number
        data["orders_count"] = len(cycle.archived_orders)
        data["archived_orders"] = [order.to_dict() for order in cycle.archived_orders]
        result.append(data)
    return result


def refresh_open_days(*, clock: Clock | None = None, store_ids: list[int] | None = None) -> list[DailySales]:
    """
    Periodic job: recompute yesterday and today (by accounting date) for each
    store, leaving finalized days alone. Safe to run next to live checkouts.
    """
    clock = clock or SystemClock()
    if store_ids is None:
        store_ids = [row.id for row in db.session.query(Store.id).order_by(Store.id.asc()).all()]

    refreshed = []
    for store_id in store_ids:
        today = get_store_calendar(store_id).accounting_date(clock.now())
        for day in (today - timedelta(days=1), today):
            try:
                refreshed.append(recompute(store_id, day))
            except AlreadyFinalized:
                current_app.logger.info("Skipping finalized day %s for store %s", day.isoformat(), store_id)
    return refreshed
