# Overview: Service-layer operations for store business hours and accounting settings.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from flask import current_app

from ..extensions import db
from ..models import Store, StoreBusinessHours, AccountingSettings
from ..time_utils import Clock, SystemClock
from .business_calendar import (
    AccountingPeriod,
    BusinessHours,
    accounting_date,
    accounting_period,
    format_time,
    get_zone,
)
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


class StoreNotFound(Exception):
    """Raised when a store id does not resolve."""
    pass


@dataclass(frozen=True)
class StoreCalendar:
    """
    Everything needed to do business-day math for one store.

    has_business_hours is False when the schedule was synthesized from the
    accounting settings' rollover time; cycle numbering degrades in that case.
    """
    store_id: int
    timezone: str
    hours: BusinessHours
    has_business_hours: bool

    def accounting_date(self, instant: datetime) -> date:
        return accounting_date(instant, self.hours, self.timezone)

    def period(self, day: date) -> AccountingPeriod:
        return accounting_period(day, self.hours, self.timezone)


def get_store(store_id: int) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise StoreNotFound(f"Store {store_id} not found")
    return store


def create_store(name: str, *, code: str | None = None, timezone: str | None = None) -> Store:
    tz_name = timezone or current_app.config["CLOSEOUT_DEFAULT_TIMEZONE"]
    get_zone(tz_name)
    store = Store(name=name, code=code, timezone=tz_name)
    db.session.add(store)
    db.session.commit()
    return store


def get_business_hours(store_id: int) -> BusinessHours | None:
    """Active day-independent schedule of the store, or None if not configured."""
    row = (
        db.session.query(StoreBusinessHours)
        .filter_by(store_id=store_id, day_of_week=None, is_active=True)
        .first()
    )
    if not row:
        return None
    return BusinessHours.from_stored(row.open_time, row.close_time, row.is_next_day)


def set_business_hours(store_id: int, open_time: str, close_time: str) -> StoreBusinessHours:
    """
    Validate and upsert the single schedule row of a store.

    close_time may use the overflow form ("26:00"); it is stored normalized
    with is_next_day set.
    """
    hours = BusinessHours.from_strings(open_time, close_time)

    def _op():
        # Store row lock (write lock on SQLite) keeps the (store, day_of_week=NULL) row unique
        begin_write_transaction()
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise StoreNotFound(f"Store {store_id} not found")

        row = (
            db.session.query(StoreBusinessHours)
            .filter_by(store_id=store_id, day_of_week=None)
            .first()
        )
        if row is None:
            row = StoreBusinessHours(store_id=store_id, day_of_week=None)
            db.session.add(row)

        row.open_time = format_time(hours.open_time)
        row.close_time = format_time(hours.close_time)
        row.is_next_day = hours.crosses_midnight
        row.is_active = True

        db.session.commit()
        current_app.logger.info(
            "Business hours for store %s set to %s-%s",
            store_id, hours.display_open_time, hours.display_close_time,
        )
        return row

    return run_with_retry(_op)


def get_accounting_settings(store_id: int) -> AccountingSettings:
    """Settings row for the store; defaults from config are created on first access."""
    settings = db.session.query(AccountingSettings).filter_by(store_id=store_id).first()
    if settings:
        return settings

    get_store(store_id)
    settings = AccountingSettings(
        store_id=store_id,
        day_rollover_time=current_app.config["CLOSEOUT_DEFAULT_ROLLOVER_TIME"],
        tax_rate_bps=current_app.config["CLOSEOUT_DEFAULT_TAX_RATE_BPS"],
        count_delivered_unbilled=current_app.config["CLOSEOUT_COUNT_DELIVERED_UNBILLED"],
    )
    db.session.add(settings)
    db.session.flush()
    return settings


def update_accounting_settings(
    store_id: int,
    *,
    day_rollover_time: str | None = None,
    tax_rate_bps: int | None = None,
    count_delivered_unbilled: bool | None = None,
) -> AccountingSettings:
    settings = get_accounting_settings(store_id)
    if day_rollover_time is not None:
        rollover = BusinessHours.from_strings(day_rollover_time, day_rollover_time)
        settings.day_rollover_time = rollover.display_open_time
    if tax_rate_bps is not None:
        if isinstance(tax_rate_bps, bool) or not isinstance(tax_rate_bps, int):
            raise ValueError("tax_rate_bps must be an integer")
        if tax_rate_bps < 0 or tax_rate_bps > 10000:
            raise ValueError("tax_rate_bps must be between 0 and 10000")
        settings.tax_rate_bps = tax_rate_bps
    if count_delivered_unbilled is not None:
        settings.count_delivered_unbilled = bool(count_delivered_unbilled)
    db.session.commit()
    return settings


def get_store_calendar(store_id: int) -> StoreCalendar:
    store = get_store(store_id)
    hours = get_business_hours(store_id)
    if hours is not None:
        return StoreCalendar(store.id, store.timezone, hours, True)

    # No schedule: the business day starts at the configured rollover time
    rollover = get_accounting_settings(store_id).day_rollover_time
    fallback = BusinessHours.from_strings(rollover, rollover)
    return StoreCalendar(store.id, store.timezone, fallback, False)


def get_accounting_date(
    store_id: int,
    instant: datetime | None = None,
    *,
    clock: Clock | None = None,
) -> date:
    """Accounting date of instant (default: now) for the store."""
    clock = clock or SystemClock()
    calendar = get_store_calendar(store_id)
    return calendar.accounting_date(instant if instant is not None else clock.now())


def get_accounting_period(store_id: int, day: date) -> AccountingPeriod:
    return get_store_calendar(store_id).period(day)
