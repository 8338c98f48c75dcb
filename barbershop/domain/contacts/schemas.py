"""Contact domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone

ContactPreference = Literal["email", "phone", "whatsapp"]
PreferredTime = Literal["morning", "afternoon", "evening"]


class ContactCreate(BaseModel):
    """Public contact-form submission"""

    name: str = Field(..., min_length=1, max_length=255)
    email: str
    phone: str
    contact_preference: ContactPreference = "whatsapp"
    message: str = Field(..., min_length=1, max_length=5000)
    preferred_time: Optional[PreferredTime] = None
    newsletter_opt_in: bool = False

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_contact_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_contact_phone(cls, v):
        return validate_phone(v)


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    contact_preference: Optional[ContactPreference] = None
    message: Optional[str] = Field(None, min_length=1, max_length=5000)
    preferred_time: Optional[PreferredTime] = None
    newsletter_opt_in: Optional[bool] = None

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v):
        v = v.strip() if v is not None else ""
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_contact_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_contact_phone(cls, v):
        return validate_phone(v)

    @field_validator("contact_preference", "newsletter_opt_in")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    contact_preference: str
    message: str
    preferred_time: Optional[str] = None
    newsletter_opt_in: bool
    created_at: Optional[datetime] = None


class ContactStats(BaseModel):
    total: int
    newsletter_opt_in: int
    prefer_whatsapp: int
    prefer_email: int
    prefer_phone: int
    prefer_morning: int
    prefer_afternoon: int
    prefer_evening: int
