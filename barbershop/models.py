from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_CONFIRMED = "confirmed"
APPOINTMENT_CANCELLED = "cancelled"
APPOINTMENT_STATUSES = (APPOINTMENT_CONFIRMED, APPOINTMENT_CANCELLED)


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())

    appointments = relationship("Appointment", back_populates="service")


class BusinessHours(Base):
    __tablename__ = "business_hours"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(String(10), nullable=False, unique=True)  # monday .. sunday
    opening_time = Column(Time, nullable=False)
    closing_time = Column(Time, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_date_status", "date", "status"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    customer_email = Column(String(255), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    # Snapshot of the service duration when the booking was made
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=APPOINTMENT_CONFIRMED)  # confirmed, cancelled
    notes = Column(Text, nullable=True)

    # Google Calendar mirror
    external_event_id = Column(String(500), nullable=True, index=True)
    external_event_link = Column(String(1000), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="appointments")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    contact_preference = Column(String(20), nullable=False, default="whatsapp")  # email, phone, whatsapp
    message = Column(Text, nullable=False)
    preferred_time = Column(String(20), nullable=True)  # morning, afternoon, evening
    newsletter_opt_in = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())
