"""Catalog domain schemas - Pydantic models for services and business hours"""

from datetime import time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..scheduling.time_calculator import DayOfWeek, parse_time


def parse_hhmm(v):
    """Accept HH:MM strings (or time objects) for business-hours fields"""
    if v is None or isinstance(v, time):
        return v
    return parse_time(v)


class ServiceCreate(BaseModel):
    """Schema for creating a new service"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    duration_minutes: int = Field(30, gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Service name is required")
        return v


class ServiceUpdate(BaseModel):
    """Schema for updating a service; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    duration_minutes: Optional[int] = Field(None, gt=0)
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Service name cannot be blank")
        return v


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: float
    duration_minutes: int
    active: bool


class BusinessHoursCreate(BaseModel):
    day_of_week: DayOfWeek
    opening_time: time
    closing_time: time
    active: bool = True

    @field_validator("opening_time", "closing_time", mode="before")
    @classmethod
    def validate_times(cls, v):
        return parse_hhmm(v)


class BusinessHoursUpdate(BaseModel):
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    active: Optional[bool] = None

    @field_validator("opening_time", "closing_time", mode="before")
    @classmethod
    def validate_times(cls, v):
        return parse_hhmm(v)


class BusinessHoursResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    day_of_week: str
    opening_time: time
    closing_time: time
    active: bool

    @field_serializer("opening_time", "closing_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class OpenCheckResponse(BaseModel):
    date: str
    time: str
    day_of_week: str
    open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
