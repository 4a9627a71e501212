from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime
from app.models.service_model import WEEKDAYS

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class WorkingDay(BaseModel):
    enabled: bool = False
    start: str = Field("09:00", pattern=TIME_OF_DAY_PATTERN, examples=["09:00"])
    end: str = Field("17:00", pattern=TIME_OF_DAY_PATTERN, examples=["17:00"])

    @model_validator(mode='after')
    def start_must_be_before_end(self):
        # Zero-padded HH:MM compares correctly as text
        if self.enabled and self.start >= self.end:
            raise ValueError('start must be before end on an enabled day')
        return self


def _check_weekdays(value: Optional[Dict[str, WorkingDay]]):
    if value is None:
        return value
    unknown = sorted(set(value) - set(WEEKDAYS))
    if unknown:
        raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
    return value


class ServiceBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["House Cleaning"])
    description: Optional[str] = Field(None, examples=["Comprehensive house cleaning service"])
    price: float = Field(..., ge=0, examples=[99.99])
    duration_minutes: int = Field(..., gt=0, examples=[60])
    category: str = Field(..., min_length=1, examples=["cleaning"])


class ServiceCreate(ServiceBase):
    is_active: bool = True
    working_hours: Optional[Dict[str, WorkingDay]] = None

    @field_validator('working_hours')
    @classmethod
    def weekdays_must_be_known(cls, v):
        return _check_weekdays(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration_minutes: Optional[int] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    working_hours: Optional[Dict[str, WorkingDay]] = None

    @field_validator('working_hours')
    @classmethod
    def weekdays_must_be_known(cls, v):
        return _check_weekdays(v)


class ServiceResponse(ServiceBase):
    id: UUID
    is_active: bool
    working_hours: Dict[str, WorkingDay]
    owner_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class ProviderServiceResponse(ServiceResponse):
    booking_count: int = 0


class CategoriesResponse(BaseModel):
    categories: List[str]
    count: int


class AvailableSlot(BaseModel):
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    display: str

    class Config:
        populate_by_name = True


class SlotsResponse(BaseModel):
    available_slots: List[AvailableSlot] = Field(default_factory=list, alias="availableSlots")

    class Config:
        populate_by_name = True
