"""Catalog repository - Database operations for services and business hours"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import APPOINTMENT_CANCELLED, Appointment, BusinessHours, Service
from ..scheduling.time_calculator import DayOfWeek


class CatalogRepository:
    """Repository for catalog database operations"""

    # Services
    @staticmethod
    def get_services(db: Session, active_only: bool = False) -> list[Service]:
        query = db.query(Service)
        if active_only:
            query = query.filter(Service.active.is_(True))
        return query.order_by(Service.name.asc()).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_service_by_name(
        db: Session, name: str, exclude_id: Optional[int] = None
    ) -> Optional[Service]:
        """Name lookup across active and inactive services"""
        query = db.query(Service).filter(Service.name == name)
        if exclude_id is not None:
            query = query.filter(Service.id != exclude_id)
        return query.first()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def count_open_appointments(db: Session, service_id: int) -> int:
        """Non-cancelled bookings referencing a service"""
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.service_id == service_id, Appointment.status != APPOINTMENT_CANCELLED)
            .scalar()
        )

    # Business hours
    @staticmethod
    def get_business_hours(db: Session) -> list[BusinessHours]:
        rules = db.query(BusinessHours).all()
        return sorted(rules, key=lambda r: DayOfWeek(r.day_of_week).order)

    @staticmethod
    def get_business_hours_by_id(db: Session, rule_id: int) -> Optional[BusinessHours]:
        return db.query(BusinessHours).filter(BusinessHours.id == rule_id).first()

    @staticmethod
    def get_business_hours_for_day(db: Session, day: DayOfWeek) -> Optional[BusinessHours]:
        return db.query(BusinessHours).filter(BusinessHours.day_of_week == day.value).first()

    @staticmethod
    def create_business_hours(db: Session, **rule_data) -> BusinessHours:
        rule = BusinessHours(**rule_data)
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def update_business_hours(db: Session, rule: BusinessHours, **updates) -> BusinessHours:
        for key, value in updates.items():
            if value is not None and hasattr(rule, key):
                setattr(rule, key, value)

        db.commit()
        db.refresh(rule)
        return rule
