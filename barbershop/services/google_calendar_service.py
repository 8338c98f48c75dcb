"""
Google Calendar Service
Mirrors appointments into the shop calendar and reads busy time back from it
"""
import base64
import hashlib
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Optional
from urllib.parse import quote, urlencode
from zoneinfo import ZoneInfo

import httpx
from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import Session

from ..domain.scheduling.exceptions import CalendarError
from ..domain.scheduling.time_calculator import BusyInterval, clamp_to_day, to_interval
from ..models import Appointment
from ..models_google_calendar import GoogleCalendarIntegration

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]


@dataclass(frozen=True)
class ExternalEventRef:
    event_id: str
    link: Optional[str] = None


def build_cipher(secret_key: str) -> Fernet:
    """Fernet cipher keyed from SECRET_KEY"""
    digest = hashlib.sha256(secret_key.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def parse_google_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GoogleCalendarService:
    """
    Adapter over the Google Calendar v3 REST API.

    Built once at startup and shared by every request. OAuth tokens live
    encrypted in the google_calendar_integrations table; session_factory is
    used to read and refresh them.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: Optional[str],
        secret_key: str,
        calendar_id: str = "primary",
        timezone: str = "America/Sao_Paulo",
        reminder_offsets: Optional[list[tuple[str, int]]] = None,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.session_factory = session_factory
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.cipher = build_cipher(secret_key)
        self.calendar_id = calendar_id
        self.timezone = timezone
        self.tz = ZoneInfo(timezone)
        self.reminder_offsets = reminder_offsets or []
        self.timeout_seconds = timeout_seconds
        self.http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def aclose(self) -> None:
        await self.http.aclose()

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str, db: Session) -> GoogleCalendarIntegration:
        """Swap an authorization code for tokens and store them encrypted"""
        response = await self._send(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        tokens = response.json()
        access_token = tokens.get("access_token")
        refresh_token = tokens.get("refresh_token")
        if not access_token or not refresh_token:
            raise CalendarError("Google did not return both access and refresh tokens")

        user_email = None
        try:
            userinfo = await self._send(
                "GET", GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
            )
            user_email = userinfo.json().get("email")
        except CalendarError as e:
            logger.warning(f"⚠️ Could not read Google account e-mail: {e}")

        integration = db.query(GoogleCalendarIntegration).first()
        if not integration:
            integration = GoogleCalendarIntegration()
            db.add(integration)

        integration.access_token = self.cipher.encrypt(access_token.encode()).decode()
        integration.refresh_token = self.cipher.encrypt(refresh_token.encode()).decode()
        integration.token_expires_at = datetime.utcnow() + timedelta(
            seconds=int(tokens.get("expires_in", 3600))
        )
        integration.google_user_email = user_email
        integration.google_calendar_id = self.calendar_id
        db.commit()
        db.refresh(integration)

        logger.info(f"✅ Google Calendar connected for {user_email or 'unknown account'}")
        return integration

    async def get_valid_access_token(self, db: Session) -> str:
        """
        Get a valid access token, refreshing if it expires within 5 minutes.
        Raises CalendarError when the calendar is not connected or refresh fails.
        """
        integration = db.query(GoogleCalendarIntegration).first()
        if not integration:
            raise CalendarError("Google Calendar is not connected")

        try:
            if integration.token_expires_at > datetime.utcnow() + timedelta(minutes=5):
                return self.cipher.decrypt(integration.access_token.encode()).decode()

            logger.info("🔄 Google Calendar token expired, refreshing...")
            refresh_token = self.cipher.decrypt(integration.refresh_token.encode()).decode()
        except InvalidToken:
            raise CalendarError("Stored Google Calendar tokens cannot be decrypted") from None

        response = await self._send(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
        tokens = response.json()
        new_access_token = tokens.get("access_token")
        if not new_access_token:
            raise CalendarError("No access token in refresh response")

        integration.access_token = self.cipher.encrypt(new_access_token.encode()).decode()
        integration.token_expires_at = datetime.utcnow() + timedelta(
            seconds=int(tokens.get("expires_in", 3600))
        )
        db.commit()

        logger.info("✅ Google Calendar token refreshed successfully")
        return new_access_token

    def get_status(self, db: Session) -> dict[str, Any]:
        integration = db.query(GoogleCalendarIntegration).first()
        if not integration:
            return {"connected": False, "user_email": None, "calendar_id": None}
        return {
            "connected": True,
            "user_email": integration.google_user_email,
            "calendar_id": integration.google_calendar_id or self.calendar_id,
        }

    def disconnect(self, db: Session) -> bool:
        integration = db.query(GoogleCalendarIntegration).first()
        if not integration:
            return False
        db.delete(integration)
        db.commit()
        logger.info("🔌 Google Calendar disconnected")
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def list_events(self, day: date) -> list[dict[str, Any]]:
        """All single (expanded) events overlapping the given local day"""
        day_start = datetime.combine(day, time.min, tzinfo=self.tz)
        day_end = day_start + timedelta(days=1)
        response = await self._calendar_request(
            "GET",
            "/events",
            params={
                "timeMin": day_start.isoformat(),
                "timeMax": day_end.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
                "timeZone": self.timezone,
            },
        )
        return response.json().get("items", [])

    async def get_busy_intervals(self, day: date) -> list[BusyInterval]:
        busy = []
        for event in await self.list_events(day):
            if event.get("status") == "cancelled" or event.get("transparency") == "transparent":
                continue

            start_info = event.get("start", {})
            end_info = event.get("end", {})
            if "dateTime" in start_info and "dateTime" in end_info:
                start = parse_google_datetime(start_info["dateTime"]).astimezone(self.tz).replace(tzinfo=None)
                end = parse_google_datetime(end_info["dateTime"]).astimezone(self.tz).replace(tzinfo=None)
            elif "date" in start_info and "date" in end_info:
                # All-day event: end date is exclusive
                start = datetime.combine(date.fromisoformat(start_info["date"]), time.min)
                end = datetime.combine(date.fromisoformat(end_info["date"]), time.min)
            else:
                logger.debug(f"Skipping event without usable times: {event.get('id')}")
                continue

            clamped = clamp_to_day(day, start, end)
            if clamped:
                busy.append(BusyInterval(clamped[0], clamped[1], source="google", reference=event.get("id")))
        return busy

    def build_event_body(self, appointment: Appointment, service_name: str) -> dict[str, Any]:
        start, end = to_interval(appointment.date, appointment.start_time, appointment.duration_minutes)

        description = (
            f"Customer: {appointment.customer_name}\n"
            f"Phone: {appointment.customer_phone}\n"
            f"Service: {service_name}"
        )
        if appointment.customer_email:
            description += f"\nE-mail: {appointment.customer_email}"
        if appointment.notes:
            description += f"\n\nNotes: {appointment.notes}"

        event_data = {
            "summary": f"Appointment - {service_name}",
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone},
        }
        if self.reminder_offsets:
            event_data["reminders"] = {
                "useDefault": False,
                "overrides": [
                    {"method": channel, "minutes": minutes} for channel, minutes in self.reminder_offsets
                ],
            }
        return event_data

    async def create_event(self, appointment: Appointment, service_name: str) -> ExternalEventRef:
        response = await self._calendar_request(
            "POST", "/events", json=self.build_event_body(appointment, service_name)
        )
        event = response.json()
        event_id = event.get("id")
        if not event_id:
            raise CalendarError("Google Calendar returned an event without an id")

        logger.info(f"✅ Google Calendar event created: {event_id}")
        return ExternalEventRef(event_id=event_id, link=event.get("htmlLink"))

    async def update_event(
        self, event_id: str, appointment: Appointment, service_name: str
    ) -> ExternalEventRef:
        response = await self._calendar_request(
            "PUT",
            f"/events/{quote(event_id, safe='')}",
            json=self.build_event_body(appointment, service_name),
        )
        event = response.json()

        logger.info(f"✅ Google Calendar event updated: {event_id}")
        return ExternalEventRef(event_id=event.get("id", event_id), link=event.get("htmlLink"))

    async def delete_event(self, event_id: str) -> None:
        await self._calendar_request("DELETE", f"/events/{quote(event_id, safe='')}")
        logger.info(f"✅ Google Calendar event deleted: {event_id}")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _calendar_request(self, method: str, path: str, **kwargs) -> httpx.Response:
        db = self.session_factory()
        try:
            access_token = await self.get_valid_access_token(db)
        finally:
            db.close()

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {access_token}"
        calendar_id = quote(self.calendar_id, safe="")
        return await self._send(
            method, f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}{path}", headers=headers, **kwargs
        )

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, timeout=self.timeout_seconds, **kwargs)
        except httpx.TimeoutException as e:
            raise CalendarError(f"Google Calendar request timed out: {method} {url}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise CalendarError(f"Google Calendar request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"❌ Google API {method} {url} -> {response.status_code}: {response.text[:300]}")
            raise CalendarError(f"Google API responded with status {response.status_code}")
        return response
