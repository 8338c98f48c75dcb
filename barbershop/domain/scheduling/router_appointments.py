"""Appointment router - FastAPI endpoints for booking, editing and cancelling"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...dependencies import get_booking_locks, get_calendar, get_clock, get_policy
from ...models import Appointment
from .booking_service import BookingService
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentUpdate, BookingResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_booking_service(
    db: Session = Depends(get_db),
    policy=Depends(get_policy),
    locks=Depends(get_booking_locks),
    calendar=Depends(get_calendar),
    clock=Depends(get_clock),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, policy, locks, calendar=calendar, clock=clock)


def to_response(appointment: Appointment) -> AppointmentResponse:
    service = appointment.service
    return AppointmentResponse(
        id=appointment.id,
        customer_name=appointment.customer_name,
        customer_phone=appointment.customer_phone,
        customer_email=appointment.customer_email,
        service_id=appointment.service_id,
        service_name=service.name if service else None,
        service_price=float(service.price) if service else None,
        date=appointment.date,
        time=appointment.start_time,
        duration_minutes=appointment.duration_minutes,
        status=appointment.status,
        notes=appointment.notes,
        external_event_id=appointment.external_event_id,
        external_event_link=appointment.external_event_link,
        created_at=appointment.created_at,
    )


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    status_filter: Optional[Literal["confirmed", "cancelled"]] = Query(None, alias="status"),
    service: BookingService = Depends(get_booking_service),
):
    """List appointments, newest date first"""
    return [to_response(a) for a in service.list_appointments(date, status_filter)]


@router.get("/date/{date}", response_model=list[AppointmentResponse])
async def get_appointments_by_date(
    date: str,
    service: BookingService = Depends(get_booking_service),
):
    """All appointments (any status) on one day, earliest first"""
    appointments = service.list_appointments(date)
    return [to_response(a) for a in sorted(appointments, key=lambda a: a.start_time)]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return to_response(service.get_appointment(appointment_id))


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Book an appointment"""
    appointment, mirror = await service.book(data)
    message = "Appointment booked successfully"
    if mirror.status == "failed":
        message = "Appointment booked, but the calendar could not be updated"
    return BookingResponse(message=message, appointment=to_response(appointment), mirror=mirror)


@router.put("/{appointment_id}", response_model=BookingResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Correct an appointment; moving it re-checks availability"""
    appointment, mirror = await service.update(appointment_id, data)
    return BookingResponse(
        message="Appointment updated successfully", appointment=to_response(appointment), mirror=mirror
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return to_response(await service.cancel(appointment_id))


@router.delete("/{appointment_id}", response_model=AppointmentResponse)
async def delete_appointment(
    appointment_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Appointments are never removed; DELETE cancels"""
    return to_response(await service.cancel(appointment_id))
