"""
Default catalog for a fresh database.

Run on startup when SEED_DEFAULT_DATA is true, or by hand:

    python -m barbershop.seed
"""

import logging
from datetime import time
from decimal import Decimal

from sqlalchemy.orm import Session

from .models import BusinessHours, Service

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {"name": "Haircut", "description": "Classic or modern haircut", "price": Decimal("40.00"), "duration_minutes": 30},
    {"name": "Beard", "description": "Beard trim and shaping", "price": Decimal("40.00"), "duration_minutes": 30},
    {"name": "Haircut + Beard", "description": "Haircut with beard trim", "price": Decimal("70.00"), "duration_minutes": 60},
    {"name": "Eyebrows", "description": "Eyebrow cleanup", "price": Decimal("7.00"), "duration_minutes": 15},
    {
        "name": "Haircut + Beard + Eyebrows",
        "description": "The full package",
        "price": Decimal("85.00"),
        "duration_minutes": 75,
    },
]

WORKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

DEFAULT_BUSINESS_HOURS = [
    {"day_of_week": day, "opening_time": time(8, 0), "closing_time": time(20, 0), "active": True} for day in WORKDAYS
] + [{"day_of_week": "sunday", "opening_time": time(8, 0), "closing_time": time(20, 0), "active": False}]


def seed_default_data(db: Session) -> dict:
    """Insert missing default services and business-hours rules. Existing rows are left alone."""
    created = {"services": 0, "business_hours": 0}

    existing_names = {name for (name,) in db.query(Service.name).all()}
    for service_data in DEFAULT_SERVICES:
        if service_data["name"] not in existing_names:
            db.add(Service(active=True, **service_data))
            created["services"] += 1

    existing_days = {day for (day,) in db.query(BusinessHours.day_of_week).all()}
    for rule_data in DEFAULT_BUSINESS_HOURS:
        if rule_data["day_of_week"] not in existing_days:
            db.add(BusinessHours(**rule_data))
            created["business_hours"] += 1

    db.commit()
    if created["services"] or created["business_hours"]:
        logger.info(
            f"🌱 Seeded {created['services']} services and {created['business_hours']} business-hours rules"
        )
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    from . import models_google_calendar  # noqa: F401
    from .database import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine, checkfirst=True)
    session = SessionLocal()
    try:
        seed_default_data(session)
    finally:
        session.close()
