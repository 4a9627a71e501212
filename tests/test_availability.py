from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.exceptions import ValidationError
from app.models.service_model import WEEKDAYS, default_working_hours
from app.scheduling.availability import (
    compute_available_slots,
    day_bounds,
    format_display,
    generate_candidate_slots,
    parse_booking_date,
    parse_time_of_day,
)

# 2024-01-01 is a Monday, 2024-01-06 a Saturday
MONDAY = "2024-01-01"
SATURDAY = "2024-01-06"


def make_service(duration=60, is_active=True, working_hours=None):
    return SimpleNamespace(
        is_active=is_active,
        duration_minutes=duration,
        working_hours=working_hours if working_hours is not None else default_working_hours(),
    )


def make_booking(start, end=None, status="pending"):
    return SimpleNamespace(start_time=start, end_time=end, status=status)


def hours(start, end, enabled=True):
    return {day: {"enabled": enabled, "start": start, "end": end} for day in WEEKDAYS}


def test_full_day_of_hourly_slots():
    slots = compute_available_slots(make_service(), [], MONDAY)

    assert len(slots) == 8
    assert (slots[0].start_time, slots[0].end_time) == ("09:00", "10:00")
    assert (slots[-1].start_time, slots[-1].end_time) == ("16:00", "17:00")
    assert slots[0].display == "9:00 AM"
    assert slots[-1].display == "4:00 PM"


def test_booked_start_is_removed():
    bookings = [make_booking(datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 10, 0))]

    slots = compute_available_slots(make_service(), bookings, MONDAY)

    assert len(slots) == 7
    assert "09:00" not in [slot.start_time for slot in slots]
    assert slots[0].start_time == "10:00"


def test_cancelled_bookings_do_not_block_slots():
    bookings = [make_booking(datetime(2024, 1, 1, 9, 0), status="cancelled")]

    slots = compute_available_slots(make_service(), bookings, MONDAY)

    assert len(slots) == 8


def test_timezone_aware_booking_start_is_compared_in_utc():
    from datetime import timedelta, timezone

    plus_two = timezone(timedelta(hours=2))
    bookings = [make_booking(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two))]

    slots = compute_available_slots(make_service(), bookings, MONDAY)

    assert "10:00" not in [slot.start_time for slot in slots]
    assert len(slots) == 7


def test_inactive_service_has_no_slots():
    assert compute_available_slots(make_service(is_active=False), [], MONDAY) == []


def test_disabled_day_has_no_slots():
    # Default hours close on weekends
    assert compute_available_slots(make_service(), [], SATURDAY) == []


def test_missing_day_entry_has_no_slots():
    working_hours = {"tuesday": {"enabled": True, "start": "09:00", "end": "17:00"}}

    assert compute_available_slots(make_service(working_hours=working_hours), [], MONDAY) == []


@pytest.mark.parametrize(
    "start, end, duration, expected",
    [
        ("09:00", "17:00", 60, 8),
        ("09:00", "17:00", 45, 10),
        ("09:00", "10:00", 90, 0),
        ("08:30", "12:15", 30, 7),
        ("00:00", "23:59", 120, 11),
    ],
)
def test_slot_count_is_floor_of_window_over_duration(start, end, duration, expected):
    slots = compute_available_slots(make_service(duration, working_hours=hours(start, end)), [], MONDAY)

    assert len(slots) == expected
    if slots:
        assert slots[-1].end_time <= end


def test_remainder_is_dropped():
    slots = compute_available_slots(make_service(45, working_hours=hours("09:00", "17:00")), [], MONDAY)

    assert (slots[-1].start_time, slots[-1].end_time) == ("15:45", "16:30")


def test_slots_tile_without_gaps():
    slots = compute_available_slots(make_service(25, working_hours=hours("10:00", "12:00")), [], MONDAY)

    for previous, current in zip(slots, slots[1:]):
        assert previous.end_time == current.start_time


def test_repeated_calls_return_identical_results():
    service = make_service(30)
    bookings = [make_booking(datetime(2024, 1, 1, 11, 0))]

    assert compute_available_slots(service, bookings, MONDAY) == compute_available_slots(service, bookings, MONDAY)


def test_accepts_date_objects():
    assert len(compute_available_slots(make_service(), [], date(2024, 1, 1))) == 8


def test_exact_start_matching_can_offer_straddling_slot():
    # Booked 10:00-11:00 under a 60 minute tiling, duration later changed to 90.
    # The 09:00-10:30 slot overlaps the booking but is still offered.
    bookings = [make_booking(datetime(2024, 1, 1, 10, 0), datetime(2024, 1, 1, 11, 0))]

    slots = compute_available_slots(make_service(90), bookings, MONDAY)

    assert [slot.start_time for slot in slots][:2] == ["09:00", "10:30"]


@pytest.mark.parametrize("value", ["2024-1-01", "01-01-2024", "2024-02-30", "2024-13-01", "", "2024-01-01\n"])
def test_invalid_dates_are_rejected(value):
    with pytest.raises(ValidationError):
        compute_available_slots(make_service(), [], value)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "1200", None])
def test_invalid_times_are_rejected(value):
    with pytest.raises(ValidationError):
        parse_time_of_day(value)


def test_parse_helpers():
    assert parse_booking_date("2024-02-29") == date(2024, 2, 29)
    assert parse_time_of_day("07:05").hour == 7
    start, end = day_bounds(date(2024, 1, 1))
    assert start == datetime(2024, 1, 1)
    assert end == datetime(2024, 1, 2)


@pytest.mark.parametrize(
    "moment, expected",
    [
        (datetime(2024, 1, 1, 0, 15), "12:15 AM"),
        (datetime(2024, 1, 1, 9, 0), "9:00 AM"),
        (datetime(2024, 1, 1, 12, 0), "12:00 PM"),
        (datetime(2024, 1, 1, 13, 30), "1:30 PM"),
    ],
)
def test_display_uses_twelve_hour_clock(moment, expected):
    assert format_display(moment) == expected


def test_candidate_generation_rejects_non_positive_duration():
    with pytest.raises(ValidationError):
        generate_candidate_slots(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 17), 0)
