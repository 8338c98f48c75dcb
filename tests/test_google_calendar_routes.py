import httpx

from barbershop.main import app
from barbershop.services.google_calendar_service import GoogleCalendarService
from conftest import NEXT_MONDAY


def calendar_with(session_factory, handler, client_id="client-id") -> GoogleCalendarService:
    return GoogleCalendarService(
        session_factory=session_factory,
        client_id=client_id,
        client_secret="client-secret" if client_id else None,
        redirect_uri="http://localhost:3000/auth/google-calendar",
        secret_key="test-secret-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestDisabled:
    def test_status(self, client):
        response = client.get("/api/google-calendar/status")

        assert response.status_code == 200
        assert response.json()["enabled"] is False
        assert response.json()["connected"] is False

    def test_connect_requires_integration(self, client):
        assert client.get("/api/google-calendar/connect").status_code == 503

    def test_booking_config(self, client):
        body = client.get("/api/google-calendar/config").json()

        assert body["google_calendar_enabled"] is False
        assert body["timezone"] == "America/Sao_Paulo"
        assert body["slot_interval_minutes"] == 30
        assert body["service_durations"]["Haircut + Beard"] == 60


class TestEnabled:
    def test_connect_returns_authorization_url(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable)

        response = client.get("/api/google-calendar/connect")

        assert response.status_code == 200
        assert "client_id=client-id" in response.json()["authorization_url"]

    def test_connect_without_credentials(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable, client_id=None)

        assert client.get("/api/google-calendar/connect").status_code == 500

    def test_disconnect_when_not_connected(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable)

        assert client.delete("/api/google-calendar/disconnect").status_code == 404

    def test_events_when_not_connected(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable)

        response = client.get(f"/api/google-calendar/events/{NEXT_MONDAY.isoformat()}")

        assert response.status_code == 503
        assert response.json()["code"] == "CALENDAR_UNAVAILABLE"

    def test_events_bad_date(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable)

        response = client.get("/api/google-calendar/events/tomorrow")

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_INPUT"

    def test_callback_failure(self, client, session_factory):
        app.state.calendar = calendar_with(session_factory, unreachable)

        response = client.post("/api/google-calendar/callback", json={"code": "bad-code"})

        assert response.status_code == 400
