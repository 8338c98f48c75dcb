"""Appointment repository - the booking store"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session, joinedload

from ...models import APPOINTMENT_CONFIRMED, Appointment
from .exceptions import BookingError, ErrorKind
from .locks import BookingLockRegistry
from .time_calculator import intervals_overlap, to_interval

logger = logging.getLogger(__name__)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session, day: Optional[date] = None, status: Optional[str] = None
    ) -> list[Appointment]:
        query = db.query(Appointment).options(joinedload(Appointment.service))
        if day:
            query = query.filter(Appointment.date == day)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.date.desc(), Appointment.start_time.asc()).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_confirmed_by_date(
        db: Session, day: date, exclude_id: Optional[int] = None
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.date == day, Appointment.status == APPOINTMENT_CONFIRMED
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time.asc()).all()

    @staticmethod
    def save_confirmed(db: Session, appointment: Appointment, locks: BookingLockRegistry) -> Appointment:
        """
        Insert (or re-save after an edit) a confirmed appointment.

        Runs the overlap check again against committed rows while holding the
        date's lock, so two requests validated against the same free slot
        cannot both commit. On PostgreSQL a transaction-scoped advisory lock
        extends the guarantee across worker processes.

        Raises BookingError(SLOT_CONFLICT) when the slot was taken in between.
        """
        with locks.hold(appointment.date):
            if db.get_bind().dialect.name == "postgresql":
                db.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": appointment.date.toordinal()},
                )

            start, end = to_interval(
                appointment.date, appointment.start_time, appointment.duration_minutes
            )
            existing = AppointmentRepository.list_confirmed_by_date(
                db, appointment.date, exclude_id=appointment.id
            )
            for other in existing:
                other_start, other_end = to_interval(other.date, other.start_time, other.duration_minutes)
                if intervals_overlap(start, end, other_start, other_end):
                    db.rollback()
                    logger.warning(
                        f"⚠️ Slot taken at commit time: {appointment.date} {appointment.start_time} "
                        f"overlaps appointment {other.id}"
                    )
                    raise BookingError(
                        ErrorKind.SLOT_CONFLICT,
                        "This time slot is no longer available. Please choose another time.",
                    )

            db.add(appointment)
            db.commit()
            db.refresh(appointment)
            return appointment

    @staticmethod
    def set_status(db: Session, appointment_id: int, status: str) -> Appointment:
        appointment = AppointmentRepository.get_appointment_by_id(db, appointment_id)
        if not appointment:
            raise BookingError(ErrorKind.NOT_FOUND, "Appointment not found")
        if appointment.status != status:
            appointment.status = status
            db.commit()
            db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment
