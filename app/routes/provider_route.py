from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List, Optional
from app.exceptions import BookingError
from app.services.booking_crud import booking_crud
from app.services.service_crud import service_crud
from app.schemas.booking_schema import BookingStatus, BookingStatusUpdate, BookingWithDetails, DashboardResponse, DashboardStats
from app.schemas.service_schema import ServiceCreate, ServiceUpdate, ServiceResponse, ProviderServiceResponse
from app.database import get_db
from app.security.auth import get_current_provider_user
from app.models.user_model import User
from app.logger import get_logger

provider_router = APIRouter(prefix="/provider")
logger = get_logger(__name__)


# DASHBOARD


@provider_router.get("/dashboard", response_model=DashboardResponse, status_code=status.HTTP_200_OK)
def get_provider_dashboard(
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Booking counts, earnings from completed bookings and the latest bookings"""
    try:
        dashboard = booking_crud.get_provider_dashboard(db, current_user.id)
        return DashboardResponse(
            stats=DashboardStats(**dashboard["stats"]),
            recent_bookings=[BookingWithDetails.model_validate(b) for b in dashboard["recent_bookings"]],
        )

    except Exception as e:
        logger.error(f"Provider dashboard error for {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch dashboard data",
        )


# SERVICES - Providers own and manage their services


@provider_router.get("/services", response_model=List[ProviderServiceResponse], status_code=status.HTTP_200_OK)
def get_provider_services(
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """All of the provider's services, inactive ones included"""
    try:
        rows = service_crud.get_services_by_owner(db, current_user.id)
        return [
            ProviderServiceResponse.model_validate(service).model_copy(update={"booking_count": count})
            for service, count in rows
        ]

    except Exception as e:
        logger.error(f"Error fetching services of provider {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch services",
        )


@provider_router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    service: ServiceCreate,
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Create a new service"""
    try:
        logger.info(f"Provider {current_user.email} creating service: {service.name}")
        db_service = service_crud.create_service(db, service, current_user.id)
        return ServiceResponse.model_validate(db_service)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error creating service: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating service",
        )


@provider_router.put("/services/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def update_service(
    service_id: UUID,
    service_update: ServiceUpdate,
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Update one of the provider's services"""
    try:
        logger.info(f"Provider {current_user.email} updating service: {service_id}")
        updated_service = service_crud.update_service(db, service_id, service_update, current_user.id)
        return ServiceResponse.model_validate(updated_service)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error updating service {service_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating service",
        )


@provider_router.delete("/services/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def delete_service(
    service_id: UUID,
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Deactivate a service that has no active bookings"""
    try:
        logger.info(f"Provider {current_user.email} deleting service: {service_id}")
        deleted_service = service_crud.delete_service(db, service_id, current_user.id)
        return ServiceResponse.model_validate(deleted_service)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error deleting service {service_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete service",
        )


# BOOKINGS - Providers move bookings on their services through the lifecycle


@provider_router.get("/bookings", response_model=List[BookingWithDetails], status_code=status.HTTP_200_OK)
def get_provider_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Bookings made on the provider's services"""
    try:
        bookings = booking_crud.get_provider_bookings(db, current_user.id, booking_status)
        return [BookingWithDetails.model_validate(booking) for booking in bookings]

    except Exception as e:
        logger.error(f"Error fetching bookings of provider {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch bookings",
        )


@provider_router.put(
    "/bookings/{booking_id}/status",
    response_model=BookingWithDetails,
    status_code=status.HTTP_200_OK,
)
def update_booking_status(
    booking_id: UUID,
    status_update: BookingStatusUpdate,
    current_user: User = Depends(get_current_provider_user),
    db: Session = Depends(get_db),
):
    """Update booking status and notify the customer"""
    try:
        logger.info(
            f"Provider {current_user.email} updating booking {booking_id} status to {status_update.status.value}"
        )
        booking = booking_crud.update_booking_status(db, booking_id, status_update, current_user.id)
        return BookingWithDetails.model_validate(booking)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error updating booking status {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking status",
        )
