# Overview: Business-day calendar math; maps instants to accounting dates for stores open past midnight.

"""
Business calendar (pure functions, no database access).

Invariants:
- One business day starts at open_time and ends at the next day's open_time.
  close_time never moves the boundary: orders taken after the nominal close
  still belong to the day that opened before them.
- Close times after midnight are held as (normalized time, next-day flag).
  The "26:00" spelling exists only at the display boundary, and
  render_overflow_time(*normalize_overflow_time(s)) == s for hours 24-29.
- Naive datetimes are UTC. Periods are returned as UTC-naive datetimes so
  they can be compared directly with stored timestamps.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import NamedTuple, Union

import pytz

from closeout.time_utils import as_utc_aware

MAX_OPEN_HOUR = 23
MAX_CLOSE_HOUR = 29

_TIME_RE = re.compile(r"^(\d{1,2}):([0-5]\d)(?::([0-5]\d))?$")

TimezoneLike = Union[str, tzinfo]


class CalendarError(Exception):
    """Raised for business calendar errors."""
    pass


class InvalidTimeFormat(CalendarError):
    """Raised when a business-hours time string is not a valid HH:MM."""
    def __init__(self, value, reason: str | None = None):
        message = f"Invalid time format: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.value = value


class InvalidTimezone(CalendarError):
    """Raised when a store timezone name is unknown."""
    pass


def parse_time(value: str, *, max_hour: int = MAX_OPEN_HOUR) -> tuple[int, int]:
    """
    Parse "H:MM", "HH:MM" or "HH:MM:00" into (hour, minute).

    Schedules have minute resolution, so non-zero seconds are rejected
    rather than dropped.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(value, "expected a string")
    match = _TIME_RE.match(value.strip())
    if not match:
        raise InvalidTimeFormat(value)
    if match.group(3) not in (None, "00"):
        raise InvalidTimeFormat(value, "seconds must be 00")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > max_hour:
        raise InvalidTimeFormat(value, f"hour must be 0-{max_hour}")
    return hour, minute


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def normalize_overflow_time(value: str) -> tuple[time, bool]:
    """
    "26:00" -> (02:00, True); "17:30" -> (17:30, False).

    Hours 24-29 denote a time on the following day.
    """
    hour, minute = parse_time(value, max_hour=MAX_CLOSE_HOUR)
    if hour >= 24:
        return time(hour - 24, minute), True
    return time(hour, minute), False


def render_overflow_time(normalized: time, next_day: bool) -> str:
    """
    Inverse of normalize_overflow_time: add 24h when next_day.

    Falls back to plain HH:MM when the overflow hour would pass 29, so the
    result always parses again.
    """
    hour = normalized.hour
    if next_day and hour + 24 <= MAX_CLOSE_HOUR:
        hour += 24
    return f"{hour:02d}:{normalized.minute:02d}"


@dataclass(frozen=True)
class BusinessHours:
    open_time: time
    close_time: time
    crosses_midnight: bool

    @classmethod
    def from_strings(cls, open_time: str, close_time: str) -> "BusinessHours":
        open_hour, open_minute = parse_time(open_time, max_hour=MAX_OPEN_HOUR)
        opened = time(open_hour, open_minute)
        closed, carries = normalize_overflow_time(close_time)
        # A plain close before the open time can only mean the next day
        crosses = carries or closed < opened
        return cls(open_time=opened, close_time=closed, crosses_midnight=crosses)

    @property
    def is_all_day(self) -> bool:
        """Open around the clock: the close lands on the next open."""
        return self.close_time == self.open_time

    @classmethod
    def from_stored(cls, open_time: str, close_time: str, is_next_day: bool) -> "BusinessHours":
        hours = cls.from_strings(open_time, close_time)
        if is_next_day and not hours.crosses_midnight:
            return cls(hours.open_time, hours.close_time, True)
        return hours

    @property
    def display_open_time(self) -> str:
        return format_time(self.open_time)

    @property
    def display_close_time(self) -> str:
        return render_overflow_time(self.close_time, self.crosses_midnight)

    def to_dict(self) -> dict:
        return {
            "open_time": self.display_open_time,
            "close_time": self.display_close_time,
            "normalized_close_time": format_time(self.close_time),
            "is_next_day": self.crosses_midnight,
            "is_all_day": self.is_all_day,
            "accounting_day_start": self.display_open_time,
        }


class AccountingPeriod(NamedTuple):
    """Half-open [start, end) window of one business day, UTC-naive."""
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        naive = as_utc_aware(instant).replace(tzinfo=None)
        return self.start <= naive < self.end


def get_zone(tz: TimezoneLike) -> tzinfo:
    if isinstance(tz, tzinfo):
        return tz
    try:
        return pytz.timezone(tz)
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidTimezone(f"Unknown timezone: {tz!r}") from exc


def _localize(zone: tzinfo, naive_local: datetime) -> datetime:
    if hasattr(zone, "localize"):
        return zone.localize(naive_local)
    return naive_local.replace(tzinfo=zone)


def to_store_local(instant: datetime, tz: TimezoneLike) -> datetime:
    return as_utc_aware(instant).astimezone(get_zone(tz))


def accounting_date(instant: datetime, business_hours: BusinessHours, tz: TimezoneLike) -> date:
    """Before today's opening time the instant still belongs to yesterday."""
    local = to_store_local(instant, tz)
    if local.time() < business_hours.open_time:
        return local.date() - timedelta(days=1)
    return local.date()


def accounting_period(day: date, business_hours: BusinessHours, tz: TimezoneLike) -> AccountingPeriod:
    """
    [day @ open_time, day+1 @ open_time) in store-local time, as UTC.

    One calendar day long; across a DST change that is 23 or 25 hours.
    """
    zone = get_zone(tz)
    start_local = _localize(zone, datetime.combine(day, business_hours.open_time))
    end_local = _localize(zone, datetime.combine(day + timedelta(days=1), business_hours.open_time))
    return AccountingPeriod(
        start=start_local.astimezone(pytz.utc).replace(tzinfo=None),
        end=end_local.astimezone(pytz.utc).replace(tzinfo=None),
    )


def accounting_date_range(start: date, end: date) -> list[date]:
    """Every accounting date from start to end, inclusive."""
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def is_within_business_hours(instant: datetime, business_hours: BusinessHours, tz: TimezoneLike) -> bool:
    """Whether instant falls between the open and close of its business day."""
    zone = get_zone(tz)
    day = accounting_date(instant, business_hours, zone)
    opened = _localize(zone, datetime.combine(day, business_hours.open_time))
    if business_hours.is_all_day:
        return True
    close_day = day + timedelta(days=1) if business_hours.crosses_midnight else day
    closed = _localize(zone, datetime.combine(close_day, business_hours.close_time))
    return opened <= as_utc_aware(instant) <= closed


def format_business_hours(business_hours: BusinessHours) -> str:
    text = f"{business_hours.display_open_time}-{business_hours.display_close_time}"
    if business_hours.is_all_day:
        return f"{text} (24h)"
    if business_hours.crosses_midnight:
        return f"{text} (next day)"
    return text
