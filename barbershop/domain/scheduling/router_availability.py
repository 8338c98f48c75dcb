"""Availability router - free slots and single-slot checks"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...dependencies import get_calendar, get_clock, get_policy
from .availability_service import AvailabilityService, build_busy_source, rule_is_open
from .exceptions import BookingError, ErrorKind
from .schemas import FreeSlotsResponse, SlotCheckResponse
from .time_calculator import DayOfWeek, format_time, parse_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])

# Outcomes that mean "not bookable" rather than "bad request"
UNAVAILABLE_KINDS = {
    ErrorKind.PAST_DATE,
    ErrorKind.TOO_SOON,
    ErrorKind.TOO_FAR_IN_ADVANCE,
    ErrorKind.OUTSIDE_BUSINESS_HOURS,
    ErrorKind.SLOT_CONFLICT,
}


def get_availability_service(
    db: Session = Depends(get_db),
    policy=Depends(get_policy),
    calendar=Depends(get_calendar),
    clock=Depends(get_clock),
) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db, build_busy_source(db, calendar), policy, clock=clock)


@router.get("/{date}/{service_id}", response_model=FreeSlotsResponse)
async def get_free_slots(
    date: str,
    service_id: int,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Bookable start times for a service on a date"""
    try:
        day = parse_date(date)
    except ValueError as e:
        raise BookingError(ErrorKind.MALFORMED_INPUT, str(e)) from None

    slots = await availability.compute_free_slots(day, service_id)
    service = availability.get_active_service(service_id)
    rule = availability.get_rule(day)
    is_open = rule_is_open(rule)

    return FreeSlotsResponse(
        date=day,
        day_of_week=DayOfWeek.for_date(day).value,
        service_id=service_id,
        duration_minutes=service.duration_minutes,
        open=is_open,
        opening_time=format_time(rule.opening_time) if is_open else None,
        closing_time=format_time(rule.closing_time) if is_open else None,
        slot_interval_minutes=availability.policy.slot_interval_minutes,
        slots=[format_time(s) for s in slots],
    )


@router.get("/{date}/{time}/{service_id}", response_model=SlotCheckResponse)
async def check_slot(
    date: str,
    time: str,
    service_id: int,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Would a booking for this date/time/service be accepted right now?"""
    try:
        slot = await availability.validate_booking_request(date, time, service_id)
    except BookingError as e:
        if e.kind not in UNAVAILABLE_KINDS:
            raise
        service = availability.get_active_service(service_id)
        return SlotCheckResponse(
            date=parse_date(date),
            time=time,
            service_id=service_id,
            duration_minutes=service.duration_minutes,
            available=False,
            code=e.kind.value,
            message=e.message,
        )

    return SlotCheckResponse(
        date=slot.day,
        time=format_time(slot.start),
        service_id=service_id,
        duration_minutes=slot.duration_minutes,
        available=True,
    )
