from datetime import date, datetime, time, timedelta

import pytest
import pytz

from closeout.services.business_calendar import (
    BusinessHours,
    InvalidTimeFormat,
    InvalidTimezone,
    accounting_date,
    accounting_date_range,
    accounting_period,
    format_business_hours,
    get_zone,
    is_within_business_hours,
    normalize_overflow_time,
    render_overflow_time,
)

TOKYO = pytz.timezone("Asia/Tokyo")
NEW_YORK = pytz.timezone("America/New_York")
NIGHT = BusinessHours.from_strings("17:00", "26:00")


def _local(zone, *args):
    return zone.localize(datetime(*args)).astimezone(pytz.utc)


@pytest.mark.parametrize("value", ["24:00", "25:30", "26:00", "27:15", "28:45", "29:59"])
def test_overflow_time_round_trip(value):
    normalized, next_day = normalize_overflow_time(value)
    assert next_day is True
    assert normalized.hour < 6
    assert render_overflow_time(normalized, next_day) == value


def test_normalize_same_day_time():
    assert normalize_overflow_time("17:30") == (time(17, 30), False)
    assert normalize_overflow_time("9:05") == (time(9, 5), False)


@pytest.mark.parametrize("value", ["30:00", "25:60", "abc", "", "12", "12:5", None, 1700])
def test_invalid_close_times_rejected(value):
    with pytest.raises(InvalidTimeFormat):
        normalize_overflow_time(value)


def test_open_time_cannot_overflow():
    with pytest.raises(InvalidTimeFormat):
        BusinessHours.from_strings("25:00", "27:00")


def test_business_hours_forms():
    assert NIGHT.open_time == time(17, 0)
    assert NIGHT.close_time == time(2, 0)
    assert NIGHT.crosses_midnight is True
    assert NIGHT.display_close_time == "26:00"

    # Same schedule written with a plain close time
    assert BusinessHours.from_strings("17:00", "02:00") == NIGHT

    lunch = BusinessHours.from_strings("11:00", "15:00")
    assert lunch.crosses_midnight is False
    assert lunch.display_close_time == "15:00"

    # close == open means open around the clock, without an overflow close
    all_day = BusinessHours.from_strings("05:00", "05:00")
    assert all_day.crosses_midnight is False
    assert all_day.is_all_day is True
    assert all_day.display_close_time == "05:00"


@pytest.mark.parametrize("open_time, close_time", [
    ("17:00", "17:00"),
    ("17:00", "10:00"),
    ("17:00", "02:00"),
    ("02:00", "26:00"),
    ("11:00", "15:00"),
])
def test_displayed_hours_parse_back_to_the_same_schedule(open_time, close_time):
    hours = BusinessHours.from_strings(open_time, close_time)
    shown = hours.to_dict()

    again = BusinessHours.from_strings(shown["open_time"], shown["close_time"])
    assert again == hours
    assert BusinessHours.from_stored(
        shown["open_time"], shown["normalized_close_time"], shown["is_next_day"]
    ) == hours


def test_late_plain_close_stays_plain():
    hours = BusinessHours.from_strings("17:00", "10:00")
    assert hours.crosses_midnight is True
    assert hours.display_close_time == "10:00"
    assert hours.to_dict()["is_next_day"] is True
    assert render_overflow_time(time(10, 0), True) == "10:00"


def test_seconds_must_be_zero():
    assert normalize_overflow_time("17:00:00") == (time(17, 0), False)
    with pytest.raises(InvalidTimeFormat):
        normalize_overflow_time("17:00:30")
    with pytest.raises(InvalidTimeFormat):
        BusinessHours.from_strings("17:00:30", "26:00")


def test_from_stored_keeps_next_day_flag():
    hours = BusinessHours.from_stored("17:00", "02:00", True)
    assert hours == NIGHT
    assert hours.to_dict()["close_time"] == "26:00"


def test_format_business_hours():
    assert format_business_hours(NIGHT) == "17:00-26:00 (next day)"
    assert format_business_hours(BusinessHours.from_strings("11:00", "15:00")) == "11:00-15:00"
    assert format_business_hours(BusinessHours.from_strings("17:00", "17:00")) == "17:00-17:00 (24h)"


def test_accounting_date_after_midnight_belongs_to_previous_day():
    assert accounting_date(_local(TOKYO, 2025, 6, 13, 0, 20), NIGHT, "Asia/Tokyo") == date(2025, 6, 12)
    assert accounting_date(_local(TOKYO, 2025, 6, 12, 23, 0), NIGHT, "Asia/Tokyo") == date(2025, 6, 12)
    # After close but before the next open still counts for the previous day
    assert accounting_date(_local(TOKYO, 2025, 6, 13, 10, 0), NIGHT, "Asia/Tokyo") == date(2025, 6, 12)
    assert accounting_date(_local(TOKYO, 2025, 6, 13, 17, 0), NIGHT, "Asia/Tokyo") == date(2025, 6, 13)


def test_naive_instants_are_utc():
    # 2025-06-12 15:20 UTC == 2025-06-13 00:20 JST
    assert accounting_date(datetime(2025, 6, 12, 15, 20), NIGHT, "Asia/Tokyo") == date(2025, 6, 12)


def test_accounting_date_is_monotonic_and_changes_once_per_day_at_open():
    start = _local(TOKYO, 2025, 6, 10, 0, 0)
    previous = accounting_date(start, NIGHT, TOKYO)
    changes = []
    instant = start
    for _ in range(4 * 24 * 4):
        instant = instant + timedelta(minutes=15)
        current = accounting_date(instant, NIGHT, TOKYO)
        assert current >= previous
        if current != previous:
            changes.append(instant.astimezone(TOKYO))
        previous = current

    assert len(changes) == 4
    for changed_at in changes:
        assert changed_at.time() == time(17, 0)


def test_accounting_period_bounds():
    period = accounting_period(date(2025, 6, 12), NIGHT, "Asia/Tokyo")
    assert period.start == datetime(2025, 6, 12, 8, 0)
    assert period.end == datetime(2025, 6, 13, 8, 0)
    assert period.contains(_local(TOKYO, 2025, 6, 13, 1, 30))
    assert not period.contains(_local(TOKYO, 2025, 6, 13, 17, 0))


def test_accounting_period_across_dst_is_one_calendar_day():
    hours = BusinessHours.from_strings("05:00", "05:00")
    spring = accounting_period(date(2025, 3, 8), hours, NEW_YORK)
    fall = accounting_period(date(2025, 11, 1), hours, NEW_YORK)
    assert spring.end - spring.start == timedelta(hours=23)
    assert fall.end - fall.start == timedelta(hours=25)


def test_accounting_date_range_inclusive():
    assert accounting_date_range(date(2025, 6, 30), date(2025, 7, 2)) == [
        date(2025, 6, 30), date(2025, 7, 1), date(2025, 7, 2),
    ]
    assert accounting_date_range(date(2025, 7, 2), date(2025, 7, 1)) == []


def test_is_within_business_hours():
    assert is_within_business_hours(_local(TOKYO, 2025, 6, 13, 1, 30), NIGHT, "Asia/Tokyo")
    assert is_within_business_hours(_local(TOKYO, 2025, 6, 12, 17, 0), NIGHT, "Asia/Tokyo")
    assert not is_within_business_hours(_local(TOKYO, 2025, 6, 13, 3, 0), NIGHT, "Asia/Tokyo")
    assert not is_within_business_hours(_local(TOKYO, 2025, 6, 12, 12, 0), NIGHT, "Asia/Tokyo")
    all_day = BusinessHours.from_strings("17:00", "17:00")
    assert is_within_business_hours(_local(TOKYO, 2025, 6, 12, 12, 0), all_day, "Asia/Tokyo")


def test_unknown_timezone():
    with pytest.raises(InvalidTimezone):
        get_zone("Mars/Olympus_Mons")
