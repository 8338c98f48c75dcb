"""Shared test fixtures and helpers."""

import os

# Settings are read at import time; pin them before the package is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SEED_DEFAULT_DATA"] = "false"
os.environ["GOOGLE_CALENDAR_ENABLED"] = "false"
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from barbershop import models_google_calendar  # noqa: F401
from barbershop.database import Base, get_db
from barbershop.domain.scheduling.availability_service import SchedulingPolicy
from barbershop.domain.scheduling.exceptions import CalendarError
from barbershop.domain.scheduling.locks import BookingLockRegistry
from barbershop.main import app
from barbershop.models import APPOINTMENT_CONFIRMED, Appointment, BusinessHours, Service
from barbershop.rate_limiter import reset_rate_limits
from barbershop.seed import seed_default_data
from barbershop.services.google_calendar_service import ExternalEventRef

# Monday 2025-06-02, 09:00 shop time
FIXED_NOW = datetime(2025, 6, 2, 9, 0)
TODAY = FIXED_NOW.date()
NEXT_MONDAY = date(2025, 6, 9)
NEXT_SUNDAY = date(2025, 6, 8)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    seed_default_data(session)
    yield session
    session.close()


@pytest.fixture
def policy() -> SchedulingPolicy:
    return SchedulingPolicy(
        slot_interval_minutes=30,
        min_advance_hours=2,
        max_advance_days=30,
        timezone="America/Sao_Paulo",
    )


@pytest.fixture
def locks() -> BookingLockRegistry:
    return BookingLockRegistry()


@pytest.fixture
def client(db, policy):
    app.dependency_overrides[get_db] = lambda: db
    app.state.scheduling_policy = policy
    app.state.booking_locks = BookingLockRegistry()
    app.state.calendar = None
    app.state.clock = fixed_clock
    reset_rate_limits()

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.calendar = None


def get_service(db: Session, name: str) -> Service:
    return db.query(Service).filter(Service.name == name).one()


def set_hours(db: Session, day_of_week: str, opening: time, closing: time, active: bool = True) -> BusinessHours:
    rule = db.query(BusinessHours).filter(BusinessHours.day_of_week == day_of_week).one()
    rule.opening_time = opening
    rule.closing_time = closing
    rule.active = active
    db.commit()
    return rule


def add_appointment(
    db: Session,
    service: Service,
    day: date,
    start: time,
    status: str = APPOINTMENT_CONFIRMED,
    duration_minutes: Optional[int] = None,
) -> Appointment:
    appointment = Appointment(
        customer_name="Existing Customer",
        customer_phone="11987654321",
        service_id=service.id,
        date=day,
        start_time=start,
        duration_minutes=duration_minutes or service.duration_minutes,
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def booking_payload(service_id: int, day: date = NEXT_MONDAY, at: str = "10:00", **overrides) -> dict:
    payload = {
        "customer_name": "João Silva",
        "customer_phone": "(11) 98765-4321",
        "customer_email": "joao@example.com",
        "service_id": service_id,
        "date": day.isoformat(),
        "time": at,
    }
    payload.update(overrides)
    return payload


class FakeCalendar:
    """In-memory stand-in for GoogleCalendarService"""

    def __init__(self, busy=None, fail_create: bool = False, fail_busy: bool = False):
        self.busy = busy or []
        self.fail_create = fail_create
        self.fail_busy = fail_busy
        self.created = []
        self.updated = []
        self.deleted = []

    async def get_busy_intervals(self, day: date):
        if self.fail_busy:
            raise CalendarError("Google Calendar request timed out", timed_out=True)
        return [b for b in self.busy if b.start.date() == day]

    async def create_event(self, appointment, service_name):
        if self.fail_create:
            raise CalendarError("Google API responded with status 500")
        self.created.append(appointment.id)
        event_id = f"evt-{appointment.id}"
        return ExternalEventRef(event_id=event_id, link=f"https://calendar.google.com/event?eid={event_id}")

    async def update_event(self, event_id, appointment, service_name):
        self.updated.append(event_id)
        return ExternalEventRef(event_id=event_id, link=f"https://calendar.google.com/event?eid={event_id}")

    async def delete_event(self, event_id):
        self.deleted.append(event_id)


def days_from_today(days: int) -> date:
    return TODAY + timedelta(days=days)
