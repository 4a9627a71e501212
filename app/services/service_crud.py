from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import or_, func
from pydantic import ValidationError as SchemaValidationError
from typing import Dict, List, Optional, Tuple
from uuid import UUID
from app.exceptions import InternalError, NotFoundError, ValidationError
from app.models.booking_model import Booking
from app.models.service_model import Service, default_working_hours
from app.schemas.booking_schema import ACTIVE_STATUSES
from app.schemas.service_schema import ServiceCreate, ServiceUpdate, WorkingDay
from app.logger import get_logger

logger = get_logger(__name__)

SORT_ORDERS = {
    "price_asc": Service.price.asc(),
    "price_desc": Service.price.desc(),
    "name": Service.name.asc(),
}


class ServiceCRUD:
    @staticmethod
    def create_service(db: Session, service: ServiceCreate, owner_id: UUID) -> Service:
        """Create a new service, open Monday to Friday 09:00-17:00 unless hours are given"""
        working_hours = (
            {day: hours.model_dump() for day, hours in service.working_hours.items()}
            if service.working_hours is not None
            else default_working_hours()
        )
        try:
            db_service = Service(
                name=service.name,
                description=service.description,
                price=service.price,
                duration_minutes=service.duration_minutes,
                category=service.category,
                is_active=service.is_active,
                working_hours=working_hours,
                owner_id=str(owner_id),
            )
            db.add(db_service)
            db.commit()
            db.refresh(db_service)
            logger.info(f"Service created: {service.name} by provider {owner_id}")
            return db_service

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating service: {str(e)}")
            raise InternalError("Error occurred while creating service")

    @staticmethod
    def get_service_by_id(db: Session, service_id: UUID) -> Optional[Service]:
        return db.query(Service).filter(Service.id == str(service_id)).first()

    @staticmethod
    def get_active_services(
            db: Session,
            skip: int = 0,
            limit: int = 100,
            q: Optional[str] = None,
            category: Optional[str] = None,
            price_min: Optional[float] = None,
            price_max: Optional[float] = None,
            sort_by: Optional[str] = None,
    ) -> List[Service]:
        """Active services with optional search, filters and ordering (public listing)"""
        query = db.query(Service).filter(Service.is_active == True)  # noqa: E712

        if q:
            query = query.filter(
                or_(
                    Service.name.ilike(f"%{q}%"),
                    Service.description.ilike(f"%{q}%"),
                    Service.category.ilike(f"%{q}%"),
                )
            )

        if category and category != "all":
            query = query.filter(Service.category == category)

        if price_min is not None:
            query = query.filter(Service.price >= price_min)
        if price_max is not None:
            query = query.filter(Service.price <= price_max)

        order = SORT_ORDERS.get(sort_by, Service.created_at.desc())
        return query.order_by(order).offset(skip).limit(limit).all()

    @staticmethod
    def get_categories(db: Session) -> List[str]:
        rows = db.query(Service.category).filter(Service.is_active == True).distinct().all()  # noqa: E712
        return sorted(row[0] for row in rows)

    @staticmethod
    def get_services_by_owner(db: Session, owner_id: UUID) -> List[Tuple[Service, int]]:
        """Every service of a provider, inactive ones included, with its booking count"""
        return (
            db.query(Service, func.count(Booking.id))
            .outerjoin(Booking, Booking.service_id == Service.id)
            .filter(Service.owner_id == str(owner_id))
            .group_by(Service.id)
            .order_by(Service.created_at.desc())
            .all()
        )

    @staticmethod
    def _get_owned_service(db: Session, service_id: UUID, owner_id: UUID) -> Service:
        db_service = (
            db.query(Service)
            .filter(Service.id == str(service_id), Service.owner_id == str(owner_id))
            .first()
        )
        if not db_service:
            logger.warning(f"Service {service_id} not found for provider {owner_id}")
            raise NotFoundError("Service not found")
        return db_service

    @staticmethod
    def _merge_working_hours(stored: Optional[dict], changes: Dict[str, WorkingDay]) -> dict:
        # Only the fields sent for a day replace the stored ones
        merged = {day: dict(hours) for day, hours in (stored or {}).items()}
        for day, hours in changes.items():
            day_hours = {**merged.get(day, {}), **hours.model_dump(exclude_unset=True)}
            try:
                merged[day] = WorkingDay(**day_hours).model_dump()
            except SchemaValidationError as e:
                raise ValidationError(f"Invalid working hours for {day}: {e.errors()[0]['msg']}")
        return merged

    @staticmethod
    def update_service(db: Session, service_id: UUID, service_update: ServiceUpdate, owner_id: UUID) -> Service:
        """Partial update; working hours are merged per weekday.

        Changing duration_minutes only affects future bookings: existing ones
        keep the end_time stored when they were made.
        """
        db_service = ServiceCRUD._get_owned_service(db, service_id, owner_id)
        update_data = service_update.model_dump(exclude_unset=True)
        working_hours = None
        if update_data.pop("working_hours", None) is not None:
            working_hours = ServiceCRUD._merge_working_hours(db_service.working_hours, service_update.working_hours)

        try:
            if working_hours is not None:
                db_service.working_hours = working_hours

            for key, value in update_data.items():
                if value is not None:
                    setattr(db_service, key, value)

            db.commit()
            db.refresh(db_service)
            logger.info(f"Service updated: {service_id} fields={sorted(service_update.model_fields_set)}")
            return db_service

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating service {service_id}: {str(e)}")
            raise InternalError("Error occurred while updating service")

    @staticmethod
    def delete_service(db: Session, service_id: UUID, owner_id: UUID) -> Service:
        # Soft delete: bookings keep pointing at the deactivated service
        db_service = ServiceCRUD._get_owned_service(db, service_id, owner_id)

        active_bookings = (
            db.query(Booking)
            .filter(
                Booking.service_id == db_service.id,
                Booking.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .count()
        )
        if active_bookings > 0:
            logger.warning(f"Service {service_id} has {active_bookings} active booking(s), not deleting")
            raise ValidationError(f"Cannot delete service with {active_bookings} active booking(s)")

        try:
            db_service.is_active = False
            db.commit()
            db.refresh(db_service)
            logger.info(f"Service deleted: {service_id}")
            return db_service

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting service {service_id}: {str(e)}")
            raise InternalError("Error occurred while deleting service")


service_crud = ServiceCRUD()
