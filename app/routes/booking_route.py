from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List
from app.exceptions import BookingError
from app.services.booking_crud import booking_crud
from app.scheduling.clock import get_clock
from app.scheduling.conflict_guard import ConflictGuard
from app.scheduling.repository import BookingRepository
from app.schemas.booking_schema import BookingCreate, BookingResponse, BookingWithDetails
from app.database import get_db
from app.security.auth import get_current_active_user
from app.models.user_model import User
from app.logger import get_logger

booking_router = APIRouter()
logger = get_logger(__name__)

# CUSTOMER ENDPOINTS - Customers book services and follow their own bookings


@booking_router.post(
    "/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED
)
def create_booking(
    booking: BookingCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Book a slot of a service; 409 when it overlaps a live booking"""
    try:
        logger.info(
            f"User {current_user.email} booking service {booking.service_id} "
            f"on {booking.date} at {booking.start_time}"
        )
        guard = ConflictGuard(BookingRepository(db), clock=clock)
        db_booking = guard.try_create_booking(
            service_id=str(booking.service_id),
            booking_date=booking.date,
            start_time=booking.start_time,
            notes=booking.notes,
            requesting_user_id=current_user.id,
        )
        return BookingResponse.model_validate(db_booking)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal server error occurred.",
        )


@booking_router.get(
    "/bookings", response_model=List[BookingResponse], status_code=status.HTTP_200_OK
)
def get_user_bookings(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Get the caller's own bookings, latest start first"""
    try:
        bookings = booking_crud.get_user_bookings(db, current_user.id)
        logger.info(f"User {current_user.email} fetched {len(bookings)} booking(s)")
        return [BookingResponse.model_validate(booking) for booking in bookings]

    except Exception as e:
        logger.error(f"Error fetching user bookings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch bookings",
        )


@booking_router.get(
    "/bookings/{booking_id}",
    response_model=BookingWithDetails,
    status_code=status.HTTP_200_OK,
)
def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Get booking by ID (its customer or the service's provider)"""
    try:
        booking = booking_crud.get_booking_for_user(db, booking_id, current_user)
        return BookingWithDetails.model_validate(booking)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error fetching booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching booking",
        )
