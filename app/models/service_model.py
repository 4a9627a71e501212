from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Integer, DateTime, JSON, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.database import Base
from app.models.user_model import utcnow
from sqlalchemy.orm import relationship

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def default_working_hours() -> dict:
    """Monday to Friday 09:00-17:00 UTC, weekends closed"""
    return {
        day: {"enabled": day not in ("saturday", "sunday"), "start": "09:00", "end": "17:00"}
        for day in WEEKDAYS
    }


class Service(Base):
    __tablename__ = "services"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    category = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    working_hours = Column(JSON, nullable=False, default=default_working_hours)
    owner_id = Column(UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    owner = relationship("User", back_populates="services")
    bookings = relationship("Booking", back_populates="service")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
    )
