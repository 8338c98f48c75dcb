"""
Google Calendar Integration Routes
Handles the OAuth connection of the shop calendar and read-only calendar views
"""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_calendar, get_policy
from ..domain.catalog.repository import CatalogRepository
from ..domain.scheduling.availability_service import SchedulingPolicy
from ..domain.scheduling.exceptions import BookingError, CalendarError, ErrorKind
from ..domain.scheduling.time_calculator import parse_date
from ..services.google_calendar_service import GoogleCalendarService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google-calendar", tags=["google-calendar"])


class CallbackRequest(BaseModel):
    code: str


def require_calendar(calendar=Depends(get_calendar)) -> GoogleCalendarService:
    if calendar is None:
        raise HTTPException(status_code=503, detail="Google Calendar integration is disabled")
    return calendar


@router.get("/status")
async def get_google_calendar_status(calendar=Depends(get_calendar), db: Session = Depends(get_db)):
    """Get Google Calendar connection status"""
    if calendar is None:
        return {"enabled": False, "connected": False, "user_email": None, "calendar_id": None}
    return {"enabled": True, **calendar.get_status(db)}


@router.get("/connect")
async def initiate_google_calendar_oauth(calendar: GoogleCalendarService = Depends(require_calendar)):
    """Initiate Google Calendar OAuth flow"""
    if not calendar.client_id or not calendar.client_secret:
        raise HTTPException(status_code=500, detail="Google Calendar not configured")

    auth_url = calendar.build_authorization_url(state=secrets.token_urlsafe(16))
    logger.info("Google Calendar OAuth initiated")
    return {"authorization_url": auth_url}


@router.post("/callback")
async def handle_google_calendar_callback(
    data: CallbackRequest,
    calendar: GoogleCalendarService = Depends(require_calendar),
    db: Session = Depends(get_db),
):
    """Handle Google Calendar OAuth callback"""
    if not data.code.strip():
        raise HTTPException(status_code=400, detail="No authorization code provided")

    try:
        integration = await calendar.exchange_code(data.code, db)
    except CalendarError as e:
        logger.error(f"Token exchange failed: {e}")
        raise HTTPException(status_code=400, detail="Failed to exchange authorization code") from None

    return {
        "success": True,
        "message": "Google Calendar connected successfully",
        "user_email": integration.google_user_email,
    }


@router.delete("/disconnect")
async def disconnect_google_calendar(
    calendar: GoogleCalendarService = Depends(require_calendar),
    db: Session = Depends(get_db),
):
    """Disconnect Google Calendar integration"""
    if not calendar.disconnect(db):
        raise HTTPException(status_code=404, detail="Google Calendar not connected")
    return {"success": True, "message": "Google Calendar disconnected"}


@router.get("/events/{date}")
async def get_calendar_events(date: str, calendar: GoogleCalendarService = Depends(require_calendar)):
    """Events on the shop calendar for one day"""
    try:
        day = parse_date(date)
    except ValueError as e:
        raise BookingError(ErrorKind.MALFORMED_INPUT, str(e)) from None

    try:
        events = await calendar.list_events(day)
    except CalendarError as e:
        raise BookingError(ErrorKind.CALENDAR_UNAVAILABLE, f"Google Calendar unavailable: {e}") from None

    return {
        "date": day.isoformat(),
        "events": [
            {
                "id": event.get("id"),
                "summary": event.get("summary"),
                "start": event.get("start"),
                "end": event.get("end"),
                "status": event.get("status"),
                "link": event.get("htmlLink"),
            }
            for event in events
        ],
    }


@router.get("/config")
async def get_booking_config(
    calendar=Depends(get_calendar),
    policy: SchedulingPolicy = Depends(get_policy),
    db: Session = Depends(get_db),
):
    """Booking policy the front end needs to render the calendar"""
    services = CatalogRepository.get_services(db, active_only=True)
    return {
        "google_calendar_enabled": calendar is not None,
        "timezone": policy.timezone,
        "slot_interval_minutes": policy.slot_interval_minutes,
        "min_advance_booking_hours": policy.min_advance_hours,
        "max_advance_booking_days": policy.max_advance_days,
        "service_durations": {s.name: s.duration_minutes for s in services},
    }
