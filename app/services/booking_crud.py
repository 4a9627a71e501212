from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import func
from typing import List, Optional
from uuid import UUID
from app.exceptions import InternalError, NotFoundError, PermissionDenied, ValidationError
from app.models.booking_model import Booking
from app.models.service_model import Service
from app.models.user_model import User
from app.notifications.relay import notification_relay
from app.schemas.booking_schema import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    BookingStatus,
    BookingStatusUpdate,
)
from app.logger import get_logger

logger = get_logger(__name__)


class BookingCRUD:
    @staticmethod
    def get_booking_by_id(db: Session, booking_id: UUID) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == str(booking_id)).first()

    @staticmethod
    def get_booking_for_user(db: Session, booking_id: UUID, user: User) -> Booking:
        """A booking is readable by its customer and by the provider of its service"""
        booking = BookingCRUD.get_booking_by_id(db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.user_id != user.id and booking.service.owner_id != user.id:
            raise PermissionDenied("Not authorized to access this booking")
        return booking

    @staticmethod
    def get_user_bookings(db: Session, user_id: UUID) -> List[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.user_id == str(user_id))
            .order_by(Booking.start_time.desc())
            .all()
        )

    @staticmethod
    def get_provider_bookings(
            db: Session, provider_id: UUID, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        query = (
            db.query(Booking)
            .join(Service, Booking.service_id == Service.id)
            .filter(Service.owner_id == str(provider_id))
        )
        if status:
            query = query.filter(Booking.status == status.value)
        return query.order_by(Booking.start_time.desc()).all()

    @staticmethod
    def get_provider_dashboard(db: Session, provider_id: UUID) -> dict:
        provider_bookings = (
            db.query(Booking)
            .join(Service, Booking.service_id == Service.id)
            .filter(Service.owner_id == str(provider_id))
        )
        total_bookings = provider_bookings.count()
        active_bookings = provider_bookings.filter(
            Booking.status.in_([s.value for s in ACTIVE_STATUSES])
        ).count()
        completed_bookings = provider_bookings.filter(
            Booking.status == BookingStatus.completed.value
        ).count()
        total_earnings = (
            db.query(func.coalesce(func.sum(Service.price), 0))
            .select_from(Booking)
            .join(Service, Booking.service_id == Service.id)
            .filter(
                Service.owner_id == str(provider_id),
                Booking.status == BookingStatus.completed.value,
            )
            .scalar()
        )
        recent_bookings = provider_bookings.order_by(Booking.created_at.desc()).limit(5).all()

        logger.info(
            f"Dashboard for provider {provider_id}: total={total_bookings} "
            f"active={active_bookings} completed={completed_bookings}"
        )
        return {
            "stats": {
                "total_bookings": total_bookings,
                "active_bookings": active_bookings,
                "completed_bookings": completed_bookings,
                "total_earnings": float(total_earnings),
            },
            "recent_bookings": recent_bookings,
        }

    @staticmethod
    def update_booking_status(
            db: Session,
            booking_id: UUID,
            status_update: BookingStatusUpdate,
            provider_id: UUID,
            relay=notification_relay,
    ) -> Booking:
        """Move a booking along its lifecycle on behalf of the service's provider"""
        booking = (
            db.query(Booking)
            .join(Service, Booking.service_id == Service.id)
            .filter(Booking.id == str(booking_id), Service.owner_id == str(provider_id))
            .first()
        )
        if not booking:
            logger.warning(f"Booking {booking_id} not found for provider {provider_id}")
            raise NotFoundError("Booking not found")

        previous_status = BookingStatus(booking.status)
        new_status = status_update.status
        if new_status not in ALLOWED_TRANSITIONS.get(previous_status, set()):
            raise ValidationError(
                f"Cannot change booking status from {previous_status.value} to {new_status.value}"
            )

        try:
            booking.status = new_status.value
            if status_update.notes is not None:
                booking.notes = status_update.notes
            db.commit()
            db.refresh(booking)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating booking status {booking_id}: {str(e)}")
            raise InternalError("Error occurred while updating booking status")

        logger.info(f"Booking status updated: {booking_id} {previous_status.value} -> {new_status.value}")
        BookingCRUD._notify_status_change(booking, relay, status_update.notes)
        return booking

    @staticmethod
    def _notify_status_change(booking: Booking, relay, message: Optional[str] = None) -> None:
        # Fire and forget: a relay failure never fails the status change
        try:
            relay.publish_booking_update(
                booking.user_id,
                {
                    "type": "STATUS_UPDATE",
                    "booking": {
                        "id": booking.id,
                        "serviceName": booking.service.name,
                        "status": booking.status,
                        "startTime": booking.start_time.isoformat(),
                        "message": message or f"Booking status updated to {booking.status}",
                    },
                },
            )
        except Exception as e:
            logger.error(f"Failed to publish booking update for {booking.id}: {str(e)}")


booking_crud = BookingCRUD()
