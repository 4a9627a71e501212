"""
Availability calculation for a single service and day.

A provider's working-hours window for the weekday is tiled into fixed
``duration_minutes`` slots starting at the window start. Trailing time that
cannot hold a full slot is dropped. Slots whose start coincides with a live
booking's start are removed.

Known discrepancy: exclusion is by exact start instant, not by interval
overlap. That is equivalent only while every booking is aligned to the
current tiling. Once a service's duration changes, bookings made under the
old duration may straddle new slots, and such a slot is still offered here;
``ConflictGuard`` rejects it at write time. Existing clients rely on the
current behaviour, so it is left as is.

Everything works in UTC: the weekday comes from the UTC calendar date and
all datetimes are naive UTC.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Tuple, Union
from app.exceptions import NotFoundError, ValidationError
from app.models.service_model import WEEKDAYS
from app.schemas.booking_schema import BookingStatus
from app.schemas.service_schema import AvailableSlot
from app.logger import get_logger

logger = get_logger(__name__)

DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
TIME_RE = re.compile(r"([01]\d|2[0-3]):([0-5]\d)")


def parse_booking_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date or raise ValidationError"""
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        raise ValidationError("A valid date in YYYY-MM-DD format is required.")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{value} is not a valid calendar date")


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour HH:MM time or raise ValidationError"""
    match = TIME_RE.fullmatch(value) if isinstance(value, str) else None
    if not match:
        raise ValidationError("Time must be in HH:MM format")
    return time(int(match.group(1)), int(match.group(2)))


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def format_display(moment: datetime) -> str:
    """12-hour clock label, e.g. '9:00 AM' or '12:30 PM'"""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def generate_candidate_slots(
        window_start: datetime, window_end: datetime, duration_minutes: int
) -> List[Tuple[datetime, datetime]]:
    """Tile [window_start, window_end) into back-to-back slots of duration_minutes"""
    if duration_minutes <= 0:
        raise ValidationError("Service duration must be a positive number of minutes")

    step = timedelta(minutes=duration_minutes)
    slots = []
    slot_start = window_start
    while slot_start < window_end:
        slot_end = slot_start + step
        if slot_end > window_end:
            break
        slots.append((slot_start, slot_end))
        slot_start = slot_end
    return slots


def compute_available_slots(
        service, bookings_on_date: Iterable, booking_date: Union[str, date]
) -> List[AvailableSlot]:
    """Free slots of ``service`` on ``booking_date``.

    Pure: reads ``is_active``, ``duration_minutes`` and ``working_hours`` from
    the service and ``start_time``/``status`` from each booking.
    """
    day = booking_date if isinstance(booking_date, date) else parse_booking_date(booking_date)

    if not service.is_active:
        return []

    schedule = (service.working_hours or {}).get(WEEKDAYS[day.weekday()])
    if not schedule or not schedule.get("enabled"):
        return []

    window_start = datetime.combine(day, parse_time_of_day(schedule["start"]))
    window_end = datetime.combine(day, parse_time_of_day(schedule["end"]))
    candidates = generate_candidate_slots(window_start, window_end, service.duration_minutes)

    booked_starts = {
        _as_naive_utc(booking.start_time)
        for booking in bookings_on_date
        if booking.status != BookingStatus.cancelled
    }

    return [
        AvailableSlot(
            start_time=slot_start.strftime("%H:%M"),
            end_time=slot_end.strftime("%H:%M"),
            display=format_display(slot_start),
        )
        for slot_start, slot_end in candidates
        if slot_start not in booked_starts
    ]


def list_available_slots(repository, service_id: str, booking_date: str) -> List[AvailableSlot]:
    """Resolve the service and its bookings for the day, then compute free slots"""
    day = parse_booking_date(booking_date)

    service = repository.get_service(service_id)
    if not service:
        raise NotFoundError("Service not found")
    if not service.is_active:
        logger.info(f"Slots requested for inactive service {service_id}")
        return []

    start_of_day, end_of_day = day_bounds(day)
    bookings = repository.bookings_between(service.id, start_of_day, end_of_day)
    slots = compute_available_slots(service, bookings, day)
    logger.info(
        f"Computed {len(slots)} free slot(s) for service {service_id} on {booking_date} "
        f"({len(bookings)} existing booking(s))"
    )
    return slots
