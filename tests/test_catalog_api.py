from barbershop.models import BusinessHours
from conftest import NEXT_MONDAY, NEXT_SUNDAY, booking_payload, get_service


class TestServices:
    def test_seeded_catalog(self, client):
        response = client.get("/api/services")

        assert response.status_code == 200
        durations = {s["name"]: s["duration_minutes"] for s in response.json()}
        assert durations == {
            "Beard": 30,
            "Eyebrows": 15,
            "Haircut": 30,
            "Haircut + Beard": 60,
            "Haircut + Beard + Eyebrows": 75,
        }

    def test_create_with_default_duration(self, client):
        response = client.post("/api/services", json={"name": "Hot Towel Shave", "price": 35})

        assert response.status_code == 201
        assert response.json()["duration_minutes"] == 30
        assert response.json()["active"] is True

    def test_duplicate_name(self, client):
        response = client.post("/api/services", json={"name": "Haircut", "price": 50})

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_NAME"

    def test_rename_onto_existing_name(self, client, db):
        beard = get_service(db, "Beard")

        response = client.put(f"/api/services/{beard.id}", json={"name": "Haircut"})

        assert response.status_code == 409

    def test_price_must_be_positive(self, client):
        response = client.post("/api/services", json={"name": "Free Trim", "price": 0})

        assert response.status_code == 422

    def test_duration_must_be_positive(self, client):
        response = client.post("/api/services", json={"name": "Instant", "price": 10, "duration_minutes": 0})

        assert response.status_code == 422

    def test_update(self, client, db):
        beard = get_service(db, "Beard")

        response = client.put(f"/api/services/{beard.id}", json={"price": 45.5, "duration_minutes": 40})

        assert response.status_code == 200
        assert response.json()["price"] == 45.5
        assert response.json()["duration_minutes"] == 40

    def test_delete_deactivates(self, client, db):
        eyebrows = get_service(db, "Eyebrows")

        response = client.delete(f"/api/services/{eyebrows.id}")

        assert response.status_code == 200
        assert response.json()["active"] is False
        assert client.get(f"/api/services/{eyebrows.id}").status_code == 200
        active_names = [s["name"] for s in client.get("/api/services/active").json()]
        assert "Eyebrows" not in active_names

    def test_inactive_service_cannot_be_booked(self, client, db):
        eyebrows = get_service(db, "Eyebrows")
        client.delete(f"/api/services/{eyebrows.id}")

        response = client.post("/api/appointments", json=booking_payload(eyebrows.id))

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_toggle(self, client, db):
        beard = get_service(db, "Beard")

        off = client.patch(f"/api/services/{beard.id}/toggle").json()
        on = client.patch(f"/api/services/{beard.id}/toggle").json()

        assert off["active"] is False
        assert on["active"] is True

    def test_unknown_service(self, client):
        assert client.get("/api/services/9999").status_code == 404


class TestBusinessHours:
    def test_week_is_listed_monday_first(self, client):
        rules = client.get("/api/business-hours").json()

        assert [r["day_of_week"] for r in rules] == [
            "monday",
            "tuesday",
            "wednesday",
            "thursday",
            "friday",
            "saturday",
            "sunday",
        ]
        assert rules[0]["opening_time"] == "08:00"
        assert rules[0]["closing_time"] == "20:00"
        assert rules[-1]["active"] is False

    def test_by_day(self, client):
        response = client.get("/api/business-hours/day/Saturday")

        assert response.status_code == 200
        assert response.json()["active"] is True

    def test_unknown_day(self, client):
        response = client.get("/api/business-hours/day/funday")

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_INPUT"

    def test_one_rule_per_day(self, client):
        response = client.post(
            "/api/business-hours",
            json={"day_of_week": "monday", "opening_time": "09:00", "closing_time": "17:00"},
        )

        assert response.status_code == 409

    def test_create_for_missing_day(self, client, db):
        db.query(BusinessHours).filter(BusinessHours.day_of_week == "sunday").delete()
        db.commit()

        response = client.post(
            "/api/business-hours",
            json={"day_of_week": "sunday", "opening_time": "09:00", "closing_time": "13:00"},
        )

        assert response.status_code == 201
        assert response.json()["opening_time"] == "09:00"

    def test_closing_must_follow_opening(self, client):
        monday = client.get("/api/business-hours/day/monday").json()

        response = client.put(
            f"/api/business-hours/{monday['id']}",
            json={"opening_time": "18:00", "closing_time": "09:00"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_INPUT"

    def test_bad_time_format(self, client):
        monday = client.get("/api/business-hours/day/monday").json()

        response = client.put(f"/api/business-hours/{monday['id']}", json={"closing_time": "6pm"})

        assert response.status_code == 422

    def test_shorter_hours_shrink_availability(self, client, db):
        monday = client.get("/api/business-hours/day/monday").json()
        client.put(f"/api/business-hours/{monday['id']}", json={"closing_time": "18:00"})

        slots = client.get(f"/api/availability/{NEXT_MONDAY.isoformat()}/{get_service(db, 'Haircut').id}").json()

        assert slots["slots"][-1] == "17:30"
        assert len(slots["slots"]) == 20

    def test_toggle_closes_the_day(self, client, db):
        monday = client.get("/api/business-hours/day/monday").json()

        response = client.patch(f"/api/business-hours/{monday['id']}/toggle")

        assert response.json()["active"] is False
        slots = client.get(f"/api/availability/{NEXT_MONDAY.isoformat()}/{get_service(db, 'Haircut').id}").json()
        assert slots["slots"] == []

    def test_open_check(self, client):
        day = NEXT_MONDAY.isoformat()

        assert client.get(f"/api/business-hours/check/{day}/08:00").json()["open"] is True
        assert client.get(f"/api/business-hours/check/{day}/19:59").json()["open"] is True
        assert client.get(f"/api/business-hours/check/{day}/20:00").json()["open"] is False
        assert client.get(f"/api/business-hours/check/{NEXT_SUNDAY.isoformat()}/10:00").json()["open"] is False
