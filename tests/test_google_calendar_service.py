import json
from datetime import datetime, time, timedelta

import httpx
import pytest

from barbershop.domain.scheduling.exceptions import CalendarError
from barbershop.models import Appointment
from barbershop.models_google_calendar import GoogleCalendarIntegration
from barbershop.services.google_calendar_service import (
    GOOGLE_CALENDAR_API,
    GOOGLE_TOKEN_URL,
    GoogleCalendarService,
)
from conftest import NEXT_MONDAY

EVENTS_URL = f"{GOOGLE_CALENDAR_API}/calendars/primary/events"


class GoogleStub:
    """Routes requests to canned responses and records them"""

    def __init__(self):
        self.requests = []
        self.events = []
        self.fail_with = None
        self.timeout = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"error": {"message": "backend error"}})

        url = str(request.url)
        if url == GOOGLE_TOKEN_URL:
            return httpx.Response(200, json={"access_token": "fresh-token", "expires_in": 3600})
        if url.startswith(EVENTS_URL) and request.method == "GET":
            return httpx.Response(200, json={"items": self.events})
        if url == EVENTS_URL and request.method == "POST":
            return httpx.Response(200, json={"id": "evt-123", "htmlLink": "https://calendar.google.com/e/123"})
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture
def google():
    return GoogleStub()


@pytest.fixture
def calendar(session_factory, google):
    service = GoogleCalendarService(
        session_factory=session_factory,
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:3000/auth/google-calendar",
        secret_key="test-secret-key",
        timezone="America/Sao_Paulo",
        reminder_offsets=[("email", 1440), ("popup", 60)],
        timeout_seconds=2,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(google)),
    )
    return service


def connect(db, calendar, expires_in: timedelta = timedelta(hours=1)) -> GoogleCalendarIntegration:
    integration = GoogleCalendarIntegration(
        access_token=calendar.cipher.encrypt(b"stored-token").decode(),
        refresh_token=calendar.cipher.encrypt(b"refresh-token").decode(),
        token_expires_at=datetime.utcnow() + expires_in,
        google_user_email="shop@example.com",
        google_calendar_id="primary",
    )
    db.add(integration)
    db.commit()
    return integration


def make_appointment(**overrides) -> Appointment:
    data = {
        "id": 7,
        "customer_name": "João Silva",
        "customer_phone": "11987654321",
        "customer_email": "joao@example.com",
        "service_id": 1,
        "date": NEXT_MONDAY,
        "start_time": time(10, 0),
        "duration_minutes": 30,
        "notes": "First visit",
    }
    data.update(overrides)
    return Appointment(**data)


class TestTokens:
    @pytest.mark.asyncio
    async def test_valid_token_is_used_without_refresh(self, db, calendar, google):
        connect(db, calendar)

        assert await calendar.get_valid_access_token(db) == "stored-token"
        assert google.requests == []

    @pytest.mark.asyncio
    async def test_token_close_to_expiry_is_refreshed(self, db, calendar, google):
        integration = connect(db, calendar, expires_in=timedelta(minutes=2))

        token = await calendar.get_valid_access_token(db)

        assert token == "fresh-token"
        assert str(google.requests[0].url) == GOOGLE_TOKEN_URL
        db.refresh(integration)
        assert calendar.cipher.decrypt(integration.access_token.encode()) == b"fresh-token"
        assert integration.token_expires_at > datetime.utcnow() + timedelta(minutes=50)

    @pytest.mark.asyncio
    async def test_not_connected(self, db, calendar):
        with pytest.raises(CalendarError):
            await calendar.get_valid_access_token(db)

    def test_status_and_disconnect(self, db, calendar):
        assert calendar.get_status(db)["connected"] is False
        connect(db, calendar)

        assert calendar.get_status(db) == {
            "connected": True,
            "user_email": "shop@example.com",
            "calendar_id": "primary",
        }
        assert calendar.disconnect(db) is True
        assert calendar.disconnect(db) is False

    def test_authorization_url(self, calendar):
        url = calendar.build_authorization_url(state="abc")

        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert "client_id=client-id" in url
        assert "access_type=offline" in url
        assert "state=abc" in url


class TestBusyIntervals:
    @pytest.mark.asyncio
    async def test_events_become_local_busy_intervals(self, db, calendar, google):
        connect(db, calendar)
        google.events = [
            # 13:00Z is 10:00 in São Paulo
            {"id": "a", "start": {"dateTime": "2025-06-09T13:00:00Z"}, "end": {"dateTime": "2025-06-09T14:00:00Z"}},
            {
                "id": "b",
                "start": {"dateTime": "2025-06-09T15:30:00-03:00"},
                "end": {"dateTime": "2025-06-09T16:00:00-03:00"},
            },
            {
                "id": "cancelled",
                "status": "cancelled",
                "start": {"dateTime": "2025-06-09T09:00:00-03:00"},
                "end": {"dateTime": "2025-06-09T10:00:00-03:00"},
            },
            {
                "id": "free",
                "transparency": "transparent",
                "start": {"dateTime": "2025-06-09T17:00:00-03:00"},
                "end": {"dateTime": "2025-06-09T18:00:00-03:00"},
            },
        ]

        busy = await calendar.get_busy_intervals(NEXT_MONDAY)

        assert [(b.reference, b.start.time(), b.end.time()) for b in busy] == [
            ("a", time(10, 0), time(11, 0)),
            ("b", time(15, 30), time(16, 0)),
        ]
        assert all(b.source == "google" for b in busy)

        params = google.requests[0].url.params
        assert params["singleEvents"] == "true"
        assert params["timeZone"] == "America/Sao_Paulo"
        assert google.requests[0].headers["Authorization"] == "Bearer stored-token"

    @pytest.mark.asyncio
    async def test_all_day_event_blocks_the_whole_day(self, db, calendar, google):
        connect(db, calendar)
        google.events = [{"id": "holiday", "start": {"date": "2025-06-09"}, "end": {"date": "2025-06-10"}}]

        busy = await calendar.get_busy_intervals(NEXT_MONDAY)

        assert busy[0].start == datetime(2025, 6, 9, 0, 0)
        assert busy[0].end == datetime(2025, 6, 10, 0, 0)

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self, db, calendar, google):
        connect(db, calendar)
        google.timeout = True

        with pytest.raises(CalendarError) as exc:
            await calendar.get_busy_intervals(NEXT_MONDAY)
        assert exc.value.timed_out

    @pytest.mark.asyncio
    async def test_api_error_is_reported(self, db, calendar, google):
        connect(db, calendar)
        google.fail_with = 500

        with pytest.raises(CalendarError) as exc:
            await calendar.get_busy_intervals(NEXT_MONDAY)
        assert not exc.value.timed_out


class TestEvents:
    def test_event_body(self, calendar):
        body = calendar.build_event_body(make_appointment(), "Haircut")

        assert body["summary"] == "Appointment - Haircut"
        assert "João Silva" in body["description"]
        assert "Notes: First visit" in body["description"]
        assert body["start"] == {"dateTime": "2025-06-09T10:00:00", "timeZone": "America/Sao_Paulo"}
        assert body["end"] == {"dateTime": "2025-06-09T10:30:00", "timeZone": "America/Sao_Paulo"}
        assert body["reminders"] == {
            "useDefault": False,
            "overrides": [{"method": "email", "minutes": 1440}, {"method": "popup", "minutes": 60}],
        }

    @pytest.mark.asyncio
    async def test_create_event(self, db, calendar, google):
        connect(db, calendar)

        ref = await calendar.create_event(make_appointment(), "Haircut")

        assert ref.event_id == "evt-123"
        assert ref.link == "https://calendar.google.com/e/123"
        sent = json.loads(google.requests[0].content)
        assert sent["summary"] == "Appointment - Haircut"

    @pytest.mark.asyncio
    async def test_delete_event(self, db, calendar, google):
        connect(db, calendar)

        await calendar.delete_event("evt-123")

        assert google.requests[0].method == "DELETE"
        assert str(google.requests[0].url) == f"{EVENTS_URL}/evt-123"
