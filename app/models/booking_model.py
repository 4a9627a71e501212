from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.database import Base
from app.models.user_model import utcnow
from sqlalchemy.orm import relationship

ACTIVE_BOOKING_CLAUSE = text("status <> 'cancelled'")
LIVE_START_INDEX = "uq_bookings_service_start_active"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=False), ForeignKey("services.id"), nullable=False)
    status = Column(String, default="pending", nullable=False)
    # All datetimes are naive UTC
    date = Column(DateTime, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_service_start", "service_id", "start_time"),
        # Backstop for the conflict guard: two live bookings never share a start
        Index(
            LIVE_START_INDEX,
            "service_id",
            "start_time",
            unique=True,
            postgresql_where=ACTIVE_BOOKING_CLAUSE,
            sqlite_where=ACTIVE_BOOKING_CLAUSE,
        ),
    )
