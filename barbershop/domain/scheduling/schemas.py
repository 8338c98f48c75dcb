"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ...shared.validators import validate_email, validate_phone


class AppointmentCreate(BaseModel):
    """Booking request; date/time stay strings so bad formats surface as MALFORMED_INPUT"""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str
    customer_email: Optional[str] = None
    service_id: int
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Customer name is required")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_customer_phone(cls, v):
        return validate_phone(v)

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v) if v else None


class AppointmentUpdate(BaseModel):
    """Corrective edit; any date/time/service change is revalidated"""

    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    status: Optional[Literal["confirmed", "cancelled"]] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip() if v is not None else ""
        if not v:
            raise ValueError("Customer name cannot be blank")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_customer_phone(cls, v):
        if v is None:
            raise ValueError("Customer phone cannot be removed")
        return validate_phone(v)

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v):
        # An empty or null e-mail clears it
        return validate_email(v) if v else None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    service_id: int
    service_name: Optional[str] = None
    service_price: Optional[float] = None
    date: date
    time: time
    duration_minutes: int
    status: str
    notes: Optional[str] = None
    external_event_id: Optional[str] = None
    external_event_link: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class MirrorStatus(BaseModel):
    """Outcome of copying a booking to Google Calendar"""

    status: Literal["synced", "failed", "skipped"]
    code: Optional[str] = None
    message: Optional[str] = None
    retryable: bool = False


class BookingResponse(BaseModel):
    message: str
    appointment: AppointmentResponse
    mirror: MirrorStatus


class FreeSlotsResponse(BaseModel):
    date: date
    day_of_week: str
    service_id: int
    duration_minutes: int
    open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    slot_interval_minutes: int
    slots: list[str]


class SlotCheckResponse(BaseModel):
    date: date
    time: str
    service_id: int
    duration_minutes: int
    available: bool
    code: Optional[str] = None
    message: Optional[str] = None
