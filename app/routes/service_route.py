from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List, Optional
from app.exceptions import BookingError
from app.services.service_crud import service_crud
from app.scheduling.availability import list_available_slots
from app.scheduling.repository import BookingRepository
from app.schemas.service_schema import ServiceResponse, CategoriesResponse, SlotsResponse
from app.database import get_db
from app.logger import get_logger

service_router = APIRouter()
logger = get_logger(__name__)

# PUBLIC ENDPOINTS - Anyone can browse services and their free slots


@service_router.get(
    "/services", response_model=List[ServiceResponse], status_code=status.HTTP_200_OK
)
def get_services(
    skip: int = Query(0, ge=0, description="Number of services to skip"),
    limit: int = Query(100, ge=1, le=100, description="Number of services to retrieve"),
    q: Optional[str] = Query(None, description="Search name, description or category"),
    category: Optional[str] = Query(None, description="Filter by category ('all' for every category)"),
    price_min: Optional[float] = Query(None, ge=0, description="Minimum price filter"),
    price_max: Optional[float] = Query(None, ge=0, description="Maximum price filter"),
    sort_by: Optional[str] = Query(
        None, pattern="^(price_asc|price_desc|name)$", description="Sort order, newest first by default"
    ),
    db: Session = Depends(get_db),
):
    """Get all active services with optional filtering (public endpoint)"""
    try:
        logger.info(f"Fetching services: skip={skip}, limit={limit}, q={q}, category={category}")
        services = service_crud.get_active_services(
            db=db, skip=skip, limit=limit, q=q, category=category,
            price_min=price_min, price_max=price_max, sort_by=sort_by,
        )
        return [ServiceResponse.model_validate(service) for service in services]

    except Exception as e:
        logger.error(f"Error fetching services: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching services",
        )


@service_router.get(
    "/services/categories", response_model=CategoriesResponse, status_code=status.HTTP_200_OK
)
def get_service_categories(db: Session = Depends(get_db)):
    """Distinct categories of active services"""
    try:
        categories = service_crud.get_categories(db)
        return CategoriesResponse(categories=categories, count=len(categories))

    except Exception as e:
        logger.error(f"Error fetching service categories: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching service categories",
        )


@service_router.get(
    "/services/{service_id}",
    response_model=ServiceResponse,
    status_code=status.HTTP_200_OK,
)
def get_service(service_id: UUID, db: Session = Depends(get_db)):
    """Get service by ID (public endpoint)"""
    try:
        logger.info(f"Fetching service: {service_id}")
        service = service_crud.get_service_by_id(db, service_id)

        # Only return active services for public endpoint
        if not service or not service.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Service not found"
            )

        return ServiceResponse.model_validate(service)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching service {service_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching service",
        )


@service_router.get(
    "/services/{service_id}/slots",
    response_model=SlotsResponse,
    status_code=status.HTTP_200_OK,
)
def get_available_slots(
    service_id: UUID,
    date: str = Query(..., description="Day to list free slots for (YYYY-MM-DD, UTC)"),
    db: Session = Depends(get_db),
):
    """Free booking slots of a service on one day"""
    try:
        slots = list_available_slots(BookingRepository(db), str(service_id), date)
        return SlotsResponse(available_slots=slots)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error fetching available slots for service {service_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred.",
        )
