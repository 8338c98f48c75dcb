"""
Availability engine

Computes free start times and accepts or rejects booking requests. The
overlap rule lives here once; where busy time comes from (local
appointments, Google Calendar, or both) is decided by the BusySource handed
in by the caller.

The module-level functions are pure and work on already-fetched data.
AvailabilityService only gathers that data (service, business-hours rule,
busy intervals) and delegates.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ... import config
from ...models import BusinessHours, Service
from ..catalog.repository import CatalogRepository
from .exceptions import BookingError, CalendarError, ErrorKind
from .repository import AppointmentRepository
from .time_calculator import (
    BusyInterval,
    DayOfWeek,
    generate_grid,
    overlaps_any,
    parse_date,
    parse_time,
    to_interval,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingPolicy:
    slot_interval_minutes: int = 30
    min_advance_hours: int = 2
    max_advance_days: int = 30
    timezone: str = "America/Sao_Paulo"

    def now(self) -> datetime:
        """Current wall-clock time at the shop, naive"""
        return datetime.now(ZoneInfo(self.timezone)).replace(tzinfo=None)


def get_scheduling_policy() -> SchedulingPolicy:
    return SchedulingPolicy(
        slot_interval_minutes=config.SLOT_INTERVAL_MINUTES,
        min_advance_hours=config.MIN_ADVANCE_BOOKING_HOURS,
        max_advance_days=config.MAX_ADVANCE_BOOKING_DAYS,
        timezone=config.BUSINESS_TIMEZONE,
    )


@dataclass(frozen=True)
class ValidatedSlot:
    day: date
    start: time
    service: Service

    @property
    def duration_minutes(self) -> int:
        return self.service.duration_minutes


# ============================================================================
# BUSY SOURCES
# ============================================================================


class BusySource(Protocol):
    async def get_busy_intervals(
        self, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[BusyInterval]: ...


class LocalBusySource:
    """Confirmed appointments in the local database"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    async def get_busy_intervals(
        self, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[BusyInterval]:
        busy = []
        for appointment in self.repo.list_confirmed_by_date(self.db, day, exclude_appointment_id):
            start, end = to_interval(day, appointment.start_time, appointment.duration_minutes)
            busy.append(BusyInterval(start, end, source="local", reference=str(appointment.id)))
        return busy


class GoogleCalendarBusySource:
    """
    Busy intervals read from Google Calendar.

    Fails closed: a timeout or API error becomes CALENDAR_UNAVAILABLE rather
    than an empty (all-free) calendar.
    """

    def __init__(self, calendar):
        self.calendar = calendar

    async def get_busy_intervals(
        self, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[BusyInterval]:
        try:
            return await self.calendar.get_busy_intervals(day)
        except CalendarError as e:
            logger.error(f"❌ Google Calendar busy lookup failed for {day}: {e}")
            raise BookingError(
                ErrorKind.CALENDAR_UNAVAILABLE,
                "The calendar could not be checked right now. Please try again shortly.",
            ) from e


class CompositeBusySource:
    """
    Union of several sources.

    When the local appointment being edited was mirrored, its own calendar
    event is dropped so an edit never conflicts with itself.
    """

    def __init__(self, *sources, ignored_references: Optional[set[str]] = None):
        self.sources = sources
        self.ignored_references = ignored_references or set()

    async def get_busy_intervals(
        self, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[BusyInterval]:
        busy = []
        for source in self.sources:
            busy.extend(await source.get_busy_intervals(day, exclude_appointment_id))
        return [b for b in busy if b.reference not in self.ignored_references or b.source == "local"]


def build_busy_source(db: Session, calendar=None, ignored_references: Optional[set[str]] = None) -> BusySource:
    """Local appointments, plus Google Calendar when the integration is enabled"""
    local = LocalBusySource(db)
    if calendar is None:
        return local
    return CompositeBusySource(
        local, GoogleCalendarBusySource(calendar), ignored_references=ignored_references
    )


# ============================================================================
# PURE RULES
# ============================================================================


def rule_is_open(rule: Optional[BusinessHours]) -> bool:
    return bool(rule and rule.active and rule.closing_time > rule.opening_time)


def earliest_bookable(now: datetime, policy: SchedulingPolicy) -> datetime:
    return now + timedelta(hours=policy.min_advance_hours)


def free_slots(
    day: date,
    rule: Optional[BusinessHours],
    duration_minutes: int,
    busy: list[BusyInterval],
    step_minutes: int,
    not_before: Optional[datetime] = None,
) -> list[time]:
    """Grid points inside business hours whose interval overlaps no busy interval"""
    if not rule_is_open(rule):
        return []

    slots = []
    for candidate in generate_grid(day, rule.opening_time, rule.closing_time, duration_minutes, step_minutes):
        start, end = to_interval(day, candidate, duration_minutes)
        if not_before is not None and start < not_before:
            continue
        if overlaps_any(start, end, busy):
            continue
        slots.append(candidate)
    return slots


def check_date_window(day: date, now: datetime, policy: SchedulingPolicy) -> None:
    """PAST_DATE / TOO_FAR_IN_ADVANCE checks shared by slot listing and booking"""
    today = now.date()
    if day < today:
        raise BookingError(ErrorKind.PAST_DATE, "Appointments cannot be booked for past dates")

    last_day = today + timedelta(days=policy.max_advance_days)
    if day > last_day:
        raise BookingError(
            ErrorKind.TOO_FAR_IN_ADVANCE,
            f"Appointments can only be booked up to {last_day.isoformat()}",
        )


def check_lead_time(day: date, start: time, now: datetime, policy: SchedulingPolicy) -> None:
    """Same-day bookings need MIN_ADVANCE_BOOKING hours of notice"""
    if day != now.date():
        return
    if datetime.combine(day, start) < earliest_bookable(now, policy):
        raise BookingError(
            ErrorKind.TOO_SOON,
            f"Same-day appointments require at least {policy.min_advance_hours} hours notice",
        )


def check_within_hours(
    day: date, start: time, duration_minutes: int, rule: Optional[BusinessHours]
) -> None:
    if not rule_is_open(rule):
        raise BookingError(ErrorKind.OUTSIDE_BUSINESS_HOURS, "The shop is closed on this day")

    slot_start, slot_end = to_interval(day, start, duration_minutes)
    open_dt = datetime.combine(day, rule.opening_time)
    close_dt = datetime.combine(day, rule.closing_time)
    if slot_start < open_dt or slot_end > close_dt:
        raise BookingError(
            ErrorKind.OUTSIDE_BUSINESS_HOURS,
            f"Appointments on this day must fit between "
            f"{rule.opening_time.strftime('%H:%M')} and {rule.closing_time.strftime('%H:%M')}",
        )


def check_no_conflict(day: date, start: time, duration_minutes: int, busy: list[BusyInterval]) -> None:
    slot_start, slot_end = to_interval(day, start, duration_minutes)
    if overlaps_any(slot_start, slot_end, busy):
        raise BookingError(
            ErrorKind.SLOT_CONFLICT,
            "This time slot is not available for the selected service",
        )


# ============================================================================
# SERVICE
# ============================================================================


class AvailabilityService:
    """Reads catalog + busy data for one request and applies the pure rules"""

    def __init__(
        self,
        db: Session,
        busy_source: BusySource,
        policy: Optional[SchedulingPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.busy_source = busy_source
        self.policy = policy or get_scheduling_policy()
        self.clock = clock or self.policy.now
        self.catalog = CatalogRepository()

    def get_active_service(self, service_id: int) -> Service:
        service = self.catalog.get_service_by_id(self.db, service_id)
        if not service or not service.active:
            raise BookingError(ErrorKind.NOT_FOUND, "Service not found or inactive")
        if not service.duration_minutes or service.duration_minutes <= 0:
            raise BookingError(ErrorKind.NOT_FOUND, "Service has no bookable duration")
        return service

    def get_rule(self, day: date) -> Optional[BusinessHours]:
        return self.catalog.get_business_hours_for_day(self.db, DayOfWeek.for_date(day))

    async def compute_free_slots(self, day: date, service_id: int) -> list[time]:
        now = self.clock()
        check_date_window(day, now, self.policy)
        service = self.get_active_service(service_id)

        rule = self.get_rule(day)
        if not rule_is_open(rule):
            logger.info(f"ℹ️ Closed on {day} ({DayOfWeek.for_date(day).value})")
            return []

        busy = await self.busy_source.get_busy_intervals(day)
        not_before = earliest_bookable(now, self.policy) if day == now.date() else None
        return free_slots(
            day,
            rule,
            service.duration_minutes,
            busy,
            self.policy.slot_interval_minutes,
            not_before=not_before,
        )

    async def is_slot_available(
        self,
        day: date,
        start: time,
        service_id: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        service = self.get_active_service(service_id)
        busy = await self.busy_source.get_busy_intervals(day, exclude_appointment_id)
        slot_start, slot_end = to_interval(day, start, service.duration_minutes)
        return not overlaps_any(slot_start, slot_end, busy)

    async def validate_booking_request(
        self,
        date_value: str,
        time_value: str,
        service_id: int,
        now: Optional[datetime] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> ValidatedSlot:
        """
        Run every pre-write check in a fixed order and stop at the first failure.

        Order: MALFORMED_INPUT, PAST_DATE, TOO_FAR_IN_ADVANCE, TOO_SOON,
        NOT_FOUND (service), OUTSIDE_BUSINESS_HOURS, SLOT_CONFLICT.
        """
        try:
            day = parse_date(date_value)
            start = parse_time(time_value)
        except ValueError as e:
            raise BookingError(ErrorKind.MALFORMED_INPUT, str(e)) from None

        now = now or self.clock()
        check_date_window(day, now, self.policy)
        check_lead_time(day, start, now, self.policy)

        service = self.get_active_service(service_id)
        check_within_hours(day, start, service.duration_minutes, self.get_rule(day))

        busy = await self.busy_source.get_busy_intervals(day, exclude_appointment_id)
        check_no_conflict(day, start, service.duration_minutes, busy)

        return ValidatedSlot(day=day, start=start, service=service)
