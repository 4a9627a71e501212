from datetime import datetime, time, timedelta
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from app.exceptions import BookingError, ConflictError, InternalError, NotFoundError, ValidationError
from app.models.booking_model import LIVE_START_INDEX, Booking
from app.schemas.booking_schema import BookingStatus
from app.scheduling.availability import parse_booking_date, parse_time_of_day
from app.scheduling.clock import system_clock
from app.scheduling.locks import service_locks
from app.logger import get_logger

logger = get_logger(__name__)


def violates_live_start_index(error: IntegrityError) -> bool:
    """True when the insert collided with another live booking's start"""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == LIVE_START_INDEX
    # SQLite names the columns instead of the index
    message = str(error.orig)
    return LIVE_START_INDEX in message or "bookings.service_id, bookings.start_time" in message


class ConflictGuard:
    """Authoritative write-time check that keeps a service's live bookings disjoint.

    The check and the insert run while holding the service's in-process lock
    and its row lock; a partial unique index on (service_id, start_time)
    catches anything that still slips through.
    """

    def __init__(self, repository, clock=system_clock, locks=service_locks):
        self.repository = repository
        self.clock = clock
        self.locks = locks

    def try_create_booking(
            self,
            service_id: str,
            booking_date: str,
            start_time: str,
            notes: Optional[str],
            requesting_user_id: str,
    ) -> Booking:
        day = parse_booking_date(booking_date)
        start = datetime.combine(day, parse_time_of_day(start_time))
        if start <= self.clock.now():
            raise ValidationError("start_time must be in the future")

        service_id = str(service_id)
        with self.locks.hold(service_id):
            try:
                booking = self._check_and_insert(service_id, day, start, notes, str(requesting_user_id))
            except BookingError:
                self.repository.rollback()
                raise

        self.repository.refresh(booking)
        logger.info(f"Booking created: {booking.id} for service {service_id} by user {requesting_user_id}")
        return booking

    def _check_and_insert(self, service_id, day, start, notes, user_id) -> Booking:
        service = self.repository.get_service(service_id, lock=True)
        if not service or not service.is_active:
            raise NotFoundError("Service not found")

        end = start + timedelta(minutes=service.duration_minutes)
        conflicting = self.repository.find_overlapping(service_id, start, end)
        if conflicting:
            logger.warning(
                f"Booking conflict on service {service_id}: {start:%Y-%m-%d %H:%M}-{end:%H:%M} "
                f"overlaps booking {conflicting.id}"
            )
            raise ConflictError()

        now = self.clock.now()
        booking = Booking(
            user_id=user_id,
            service_id=service_id,
            date=datetime.combine(day, time.min),
            start_time=start,
            end_time=end,
            status=BookingStatus.pending.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repository.add_booking(booking)
            self.repository.commit()
        except IntegrityError as e:
            if not violates_live_start_index(e):
                logger.error(f"Integrity error creating booking for service {service_id}: {str(e)}")
                raise InternalError("Error occurred while creating booking")
            logger.warning(f"Concurrent booking on service {service_id} at {start:%Y-%m-%d %H:%M} rejected")
            raise ConflictError()
        except SQLAlchemyError as e:
            logger.error(f"Error creating booking for service {service_id}: {str(e)}")
            raise InternalError("Error occurred while creating booking")
        return booking
