from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from enum import Enum
from app.schemas.service_schema import TIME_OF_DAY_PATTERN

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


ACTIVE_STATUSES = {BookingStatus.pending, BookingStatus.confirmed, BookingStatus.in_progress}

# completed and cancelled are terminal
ALLOWED_TRANSITIONS = {
    BookingStatus.pending: {
        BookingStatus.confirmed,
        BookingStatus.in_progress,
        BookingStatus.completed,
        BookingStatus.cancelled,
    },
    BookingStatus.confirmed: {BookingStatus.in_progress, BookingStatus.completed, BookingStatus.cancelled},
    BookingStatus.in_progress: {BookingStatus.completed, BookingStatus.cancelled},
}


class BookingCreate(BaseModel):
    service_id: UUID = Field(..., alias="serviceId", description="ID of the service being booked")
    date: str = Field(..., pattern=DATE_PATTERN, description="Day of the booking (YYYY-MM-DD, UTC)")
    start_time: str = Field(..., alias="startTime", pattern=TIME_OF_DAY_PATTERN, description="Start (HH:MM, UTC)")
    notes: Optional[str] = Field(None, max_length=500, description="Notes for the provider")

    class Config:
        populate_by_name = True


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    notes: Optional[str] = Field(None, max_length=500)


class BookingServiceInfo(BaseModel):
    id: UUID
    name: str
    price: float
    duration_minutes: int

    class Config:
        from_attributes = True


class BookingCustomerInfo(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: UUID
    user_id: UUID
    service_id: UUID
    date: datetime
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.pending
    notes: Optional[str] = None
    created_at: datetime
    service: Optional[BookingServiceInfo] = None

    class Config:
        from_attributes = True


class BookingWithDetails(BookingResponse):
    user: Optional[BookingCustomerInfo] = None


class DashboardStats(BaseModel):
    total_bookings: int
    active_bookings: int
    completed_bookings: int
    total_earnings: float


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_bookings: List[BookingWithDetails]
