"""Booking service - validate, commit and mirror appointments"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...models import APPOINTMENT_CANCELLED, APPOINTMENT_CONFIRMED, Appointment
from .availability_service import AvailabilityService, SchedulingPolicy, build_busy_source
from .exceptions import BookingError, CalendarError, ErrorKind
from .locks import BookingLockRegistry
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate, MirrorStatus
from .time_calculator import format_time, parse_date

logger = logging.getLogger(__name__)

MIRROR_SKIPPED = MirrorStatus(status="skipped")


class BookingService:
    """Service layer for the appointment lifecycle"""

    def __init__(
        self,
        db: Session,
        policy: SchedulingPolicy,
        locks: BookingLockRegistry,
        calendar=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.policy = policy
        self.locks = locks
        self.calendar = calendar
        self.clock = clock
        self.repo = AppointmentRepository()

    def availability(self, ignored_references: Optional[set[str]] = None) -> AvailabilityService:
        return AvailabilityService(
            self.db,
            build_busy_source(self.db, self.calendar, ignored_references),
            self.policy,
            clock=self.clock,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_appointments(self, day: Optional[str] = None, status: Optional[str] = None) -> list[Appointment]:
        parsed_day = None
        if day:
            try:
                parsed_day = parse_date(day)
            except ValueError as e:
                raise BookingError(ErrorKind.MALFORMED_INPUT, str(e)) from None
        return self.repo.get_appointments(self.db, parsed_day, status)

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise BookingError(ErrorKind.NOT_FOUND, "Appointment not found")
        return appointment

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def book(self, data: AppointmentCreate) -> tuple[Appointment, MirrorStatus]:
        """
        Validate the request, commit it through the per-date serialization
        point, then mirror it. A failed mirror never undoes the local booking.
        """
        logger.info(f"📅 Booking request: service {data.service_id} on {data.date} at {data.time}")

        try:
            slot = await self.availability().validate_booking_request(data.date, data.time, data.service_id)
        except BookingError as e:
            logger.info(f"🚫 Booking rejected ({e.kind.value}): {e.message}")
            raise

        appointment = Appointment(
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=data.customer_email,
            service_id=slot.service.id,
            date=slot.day,
            start_time=slot.start,
            duration_minutes=slot.duration_minutes,
            status=APPOINTMENT_CONFIRMED,
            notes=data.notes,
        )
        appointment = self.repo.save_confirmed(self.db, appointment, self.locks)
        logger.info(
            f"✅ Appointment {appointment.id} confirmed: {appointment.date} "
            f"{format_time(appointment.start_time)} ({appointment.duration_minutes} min)"
        )
        self.locks.discard_before((self.clock or self.policy.now)().date())

        mirror = await self._mirror(appointment)
        return appointment, mirror

    async def update(self, appointment_id: int, data: AppointmentUpdate) -> tuple[Appointment, MirrorStatus]:
        """Corrective edit. Moving a confirmed booking re-runs full validation, ignoring itself."""
        appointment = self.get_appointment(appointment_id)

        if data.status == APPOINTMENT_CONFIRMED and appointment.status == APPOINTMENT_CANCELLED:
            raise BookingError(
                ErrorKind.INVALID_STATUS_TRANSITION,
                "A cancelled appointment cannot be confirmed again. Please book a new appointment.",
            )

        contact_updates = data.model_dump(
            include={"customer_name", "customer_phone", "customer_email", "notes"}, exclude_unset=True
        )

        reschedule = any(
            [
                data.date is not None and data.date != appointment.date.isoformat(),
                data.time is not None and data.time != format_time(appointment.start_time),
                data.service_id is not None and data.service_id != appointment.service_id,
            ]
        )

        if data.status == APPOINTMENT_CANCELLED:
            self.repo.update_appointment(self.db, appointment, **contact_updates)
            return await self.cancel(appointment_id), MIRROR_SKIPPED

        if reschedule and appointment.status == APPOINTMENT_CANCELLED:
            raise BookingError(
                ErrorKind.INVALID_STATUS_TRANSITION,
                "A cancelled appointment cannot be rescheduled",
            )

        if not reschedule:
            appointment = self.repo.update_appointment(self.db, appointment, **contact_updates)
            return appointment, MIRROR_SKIPPED

        ignored = {appointment.external_event_id} if appointment.external_event_id else None
        slot = await self.availability(ignored).validate_booking_request(
            data.date or appointment.date.isoformat(),
            data.time or format_time(appointment.start_time),
            data.service_id or appointment.service_id,
            exclude_appointment_id=appointment.id,
        )

        for key, value in contact_updates.items():
            setattr(appointment, key, value)
        appointment.date = slot.day
        appointment.start_time = slot.start
        appointment.service_id = slot.service.id
        appointment.duration_minutes = slot.duration_minutes
        appointment = self.repo.save_confirmed(self.db, appointment, self.locks)
        logger.info(f"🔁 Appointment {appointment.id} moved to {appointment.date} {format_time(appointment.start_time)}")

        mirror = await self._mirror(appointment)
        return appointment, mirror

    async def cancel(self, appointment_id: int) -> Appointment:
        """Idempotent: cancelling a cancelled appointment returns it unchanged"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status == APPOINTMENT_CANCELLED:
            return appointment

        appointment = self.repo.set_status(self.db, appointment_id, APPOINTMENT_CANCELLED)
        logger.info(f"🗑️ Appointment {appointment_id} cancelled")

        if self.calendar and appointment.external_event_id:
            try:
                await self.calendar.delete_event(appointment.external_event_id)
            except CalendarError as e:
                logger.warning(
                    f"⚠️ Could not remove calendar event {appointment.external_event_id} "
                    f"for cancelled appointment {appointment_id}: {e}"
                )
        return appointment

    async def _mirror(self, appointment: Appointment) -> MirrorStatus:
        if not self.calendar:
            return MIRROR_SKIPPED

        service_name = appointment.service.name if appointment.service else "Service"
        try:
            if appointment.external_event_id:
                ref = await self.calendar.update_event(appointment.external_event_id, appointment, service_name)
            else:
                ref = await self.calendar.create_event(appointment, service_name)
        except CalendarError as e:
            logger.error(f"❌ Appointment {appointment.id} saved locally but not mirrored: {e}")
            error = BookingError(
                ErrorKind.MIRROR_FAILED,
                "The appointment is confirmed, but it could not be added to the shop calendar.",
            )
            return MirrorStatus(
                status="failed", code=error.kind.value, message=error.message, retryable=error.retryable
            )

        self.repo.update_appointment(
            self.db, appointment, external_event_id=ref.event_id, external_event_link=ref.link
        )
        return MirrorStatus(status="synced")
