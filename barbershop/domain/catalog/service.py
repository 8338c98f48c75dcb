"""Catalog service - Business logic for services and business hours"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import BusinessHours, Service
from ..scheduling.exceptions import BookingError, ErrorKind
from ..scheduling.time_calculator import DayOfWeek, format_time, parse_date, parse_time
from .repository import CatalogRepository
from .schemas import BusinessHoursCreate, BusinessHoursUpdate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


def ensure_hours_order(opening, closing, active: bool) -> None:
    if active and closing <= opening:
        raise BookingError(ErrorKind.MALFORMED_INPUT, "Closing time must be after opening time")


class CatalogService:
    """Service layer for the service catalog and weekly business hours"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def get_services(self, active_only: bool = False) -> list[Service]:
        return self.repo.get_services(self.db, active_only)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise BookingError(ErrorKind.NOT_FOUND, "Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        if self.repo.get_service_by_name(self.db, data.name):
            raise BookingError(ErrorKind.DUPLICATE_NAME, "A service with this name already exists")

        try:
            service = self.repo.create_service(
                self.db,
                name=data.name,
                description=data.description,
                price=data.price,
                duration_minutes=data.duration_minutes,
                active=True,
            )
        except IntegrityError:
            # Lost a race against a concurrent create with the same name
            self.db.rollback()
            raise BookingError(ErrorKind.DUPLICATE_NAME, "A service with this name already exists") from None

        logger.info(f"✅ Service created: {service.name} ({service.duration_minutes} min)")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)

        if data.name is not None and self.repo.get_service_by_name(self.db, data.name, exclude_id=service_id):
            raise BookingError(ErrorKind.DUPLICATE_NAME, "Another service already uses this name")

        if data.duration_minutes is not None and data.duration_minutes != service.duration_minutes:
            # Existing bookings keep the duration captured when they were made
            logger.info(
                f"⏱️ Service {service_id} duration {service.duration_minutes} -> {data.duration_minutes} min "
                f"({self.repo.count_open_appointments(self.db, service_id)} open bookings unaffected)"
            )

        try:
            return self.repo.update_service(self.db, service, **data.model_dump(exclude_unset=True))
        except IntegrityError:
            self.db.rollback()
            raise BookingError(ErrorKind.DUPLICATE_NAME, "Another service already uses this name") from None

    def deactivate_service(self, service_id: int) -> Service:
        """Services are never deleted; they stop being offered"""
        service = self.get_service(service_id)
        open_bookings = self.repo.count_open_appointments(self.db, service_id)
        service = self.repo.update_service(self.db, service, active=False)
        logger.info(f"🚫 Service {service_id} deactivated ({open_bookings} open bookings kept)")
        return service

    def toggle_service(self, service_id: int) -> Service:
        service = self.get_service(service_id)
        service.active = not service.active
        self.db.commit()
        self.db.refresh(service)
        logger.info(f"🔀 Service {service_id} active={service.active}")
        return service

    # ------------------------------------------------------------------
    # Business hours
    # ------------------------------------------------------------------

    def get_business_hours(self) -> list[BusinessHours]:
        return self.repo.get_business_hours(self.db)

    def get_rule(self, rule_id: int) -> BusinessHours:
        rule = self.repo.get_business_hours_by_id(self.db, rule_id)
        if not rule:
            raise BookingError(ErrorKind.NOT_FOUND, "Business hours not found")
        return rule

    def get_rule_for_day(self, day: str) -> BusinessHours:
        try:
            day_of_week = DayOfWeek(day.lower())
        except ValueError:
            raise BookingError(ErrorKind.MALFORMED_INPUT, f"Unknown day of week: {day}") from None

        rule = self.repo.get_business_hours_for_day(self.db, day_of_week)
        if not rule:
            raise BookingError(ErrorKind.NOT_FOUND, "No business hours configured for this day")
        return rule

    def create_rule(self, data: BusinessHoursCreate) -> BusinessHours:
        ensure_hours_order(data.opening_time, data.closing_time, data.active)

        if self.repo.get_business_hours_for_day(self.db, data.day_of_week):
            raise BookingError(ErrorKind.DUPLICATE_NAME, f"Business hours for {data.day_of_week.value} already exist")

        try:
            rule = self.repo.create_business_hours(
                self.db,
                day_of_week=data.day_of_week.value,
                opening_time=data.opening_time,
                closing_time=data.closing_time,
                active=data.active,
            )
        except IntegrityError:
            self.db.rollback()
            raise BookingError(
                ErrorKind.DUPLICATE_NAME, f"Business hours for {data.day_of_week.value} already exist"
            ) from None

        logger.info(f"🕗 Business hours created for {rule.day_of_week}")
        return rule

    def update_rule(self, rule_id: int, data: BusinessHoursUpdate) -> BusinessHours:
        rule = self.get_rule(rule_id)
        ensure_hours_order(
            data.opening_time or rule.opening_time,
            data.closing_time or rule.closing_time,
            rule.active if data.active is None else data.active,
        )
        return self.repo.update_business_hours(self.db, rule, **data.model_dump(exclude_unset=True))

    def toggle_rule(self, rule_id: int) -> BusinessHours:
        rule = self.get_rule(rule_id)
        # Re-activating a rule must still describe a real opening window
        ensure_hours_order(rule.opening_time, rule.closing_time, not rule.active)
        rule.active = not rule.active
        self.db.commit()
        self.db.refresh(rule)
        logger.info(f"🔀 Business hours {rule.day_of_week} active={rule.active}")
        return rule

    def check_open(self, date_value: str, time_value: str) -> dict:
        """Is the shop open at this instant according to the weekly rules?"""
        try:
            day = parse_date(date_value)
            at = parse_time(time_value)
        except ValueError as e:
            raise BookingError(ErrorKind.MALFORMED_INPUT, str(e)) from None

        day_of_week = DayOfWeek.for_date(day)
        rule = self.repo.get_business_hours_for_day(self.db, day_of_week)
        active = bool(rule and rule.active)

        return {
            "date": day.isoformat(),
            "time": format_time(at),
            "day_of_week": day_of_week.value,
            "open": active and rule.opening_time <= at < rule.closing_time,
            "opening_time": format_time(rule.opening_time) if active else None,
            "closing_time": format_time(rule.closing_time) if active else None,
        }
