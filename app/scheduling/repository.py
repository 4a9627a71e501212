from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_
from sqlalchemy.orm import Session
from app.models.booking_model import Booking
from app.models.service_model import Service
from app.schemas.booking_schema import BookingStatus


class BookingRepository:
    """Store access needed by the availability calculator and the conflict guard"""

    def __init__(self, db: Session):
        self.db = db

    def get_service(self, service_id: str, lock: bool = False) -> Optional[Service]:
        query = self.db.query(Service).filter(Service.id == str(service_id))
        if lock:
            # Serializes concurrent booking attempts for the service on backends with row locks
            query = query.with_for_update()
        return query.first()

    def bookings_between(self, service_id: str, start: datetime, end: datetime) -> List[Booking]:
        """Non-cancelled bookings whose start falls in [start, end)"""
        return (
            self.db.query(Booking)
            .filter(
                Booking.service_id == str(service_id),
                Booking.status != BookingStatus.cancelled.value,
                Booking.start_time >= start,
                Booking.start_time < end,
            )
            .order_by(Booking.start_time)
            .all()
        )

    def find_overlapping(self, service_id: str, start: datetime, end: datetime) -> Optional[Booking]:
        """First non-cancelled booking whose [start_time, end_time) intersects [start, end)"""
        return (
            self.db.query(Booking)
            .filter(
                and_(
                    Booking.service_id == str(service_id),
                    Booking.status != BookingStatus.cancelled.value,
                    Booking.start_time < end,
                    Booking.end_time > start,
                )
            )
            .first()
        )

    def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, obj):
        self.db.refresh(obj)
