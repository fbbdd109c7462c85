# Overview: Per-table visit numbering within a business day.

from __future__ import annotations

from datetime import date, datetime

from flask import current_app
from sqlalchemy import and_, func, or_

from ..extensions import db
from ..models import DiningTable, SalesCycle
from .business_hours_service import StoreCalendar


def next_cycle_number(table: DiningTable, day: date, calendar: StoreCalendar) -> int:
    """
    1 + highest cycle number completed on this table during day's period.

    Only safe inside the checkout transaction, after the table row is locked:
    the read and the insert of the new cycle must not interleave with another
    checkout of the same table.
    """
    query = db.session.query(func.max(SalesCycle.cycle_number)).filter(
        SalesCycle.table_id == table.id,
    )

    if calendar.has_business_hours:
        period = calendar.period(day)
        # Cycles already filed under day count too, in case the hours moved
        query = query.filter(or_(
            and_(SalesCycle.completed_at >= period.start, SalesCycle.completed_at < period.end),
            SalesCycle.accounting_date == day.isoformat(),
        ))
    else:
        # Degraded mode: numbering is not reset per business day
        current_app.logger.warning(
            "Store %s has no business hours; cycle number for table %s uses global max",
            table.store_id, table.id,
        )

    current_max = query.scalar()
    return (current_max or 0) + 1


def resolve_active_cycle(
    table: DiningTable,
    day: date,
    calendar: StoreCalendar,
    *,
    started_at: datetime,
) -> SalesCycle:
    """Active cycle of the table for day, created with the next number if none exists."""
    cycle = (
        db.session.query(SalesCycle)
        .filter_by(table_id=table.id, status="active", accounting_date=day.isoformat())
        .order_by(SalesCycle.id.desc())
        .first()
    )
    if cycle:
        return cycle

    cycle = SalesCycle(
        store_id=table.store_id,
        table_id=table.id,
        cycle_number=next_cycle_number(table, day, calendar),
        accounting_date=day.isoformat(),
        status="active",
        total_amount=0,
        total_items=0,
        started_at=started_at,
    )
    db.session.add(cycle)
    db.session.flush()
    return cycle
