def contact_payload(**overrides):
    payload = {
        "name": "Carlos Souza",
        "email": "Carlos@Example.com",
        "phone": "+55 11 91234-5678",
        "message": "Do you take walk-ins on Saturday?",
    }
    payload.update(overrides)
    return payload


def test_create_contact_with_defaults(client):
    response = client.post("/api/contacts", json=contact_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "carlos@example.com"
    assert body["phone"] == "+5511912345678"
    assert body["contact_preference"] == "whatsapp"
    assert body["preferred_time"] is None
    assert body["newsletter_opt_in"] is False


def test_required_fields(client):
    response = client.post("/api/contacts", json=contact_payload(message="  "))

    assert response.status_code == 422


def test_invalid_email(client):
    response = client.post("/api/contacts", json=contact_payload(email="not-an-email"))

    assert response.status_code == 422


def test_unknown_preference(client):
    response = client.post("/api/contacts", json=contact_payload(contact_preference="pigeon"))

    assert response.status_code == 422


def test_update_and_delete(client):
    contact = client.post("/api/contacts", json=contact_payload()).json()

    updated = client.put(f"/api/contacts/{contact['id']}", json={"preferred_time": "evening"})
    deleted = client.delete(f"/api/contacts/{contact['id']}")

    assert updated.json()["preferred_time"] == "evening"
    assert updated.json()["name"] == "Carlos Souza"
    assert deleted.status_code == 200
    assert client.get(f"/api/contacts/{contact['id']}").status_code == 404


def test_list_newest_first(client):
    first = client.post("/api/contacts", json=contact_payload(name="First")).json()
    second = client.post("/api/contacts", json=contact_payload(name="Second")).json()

    ids = [c["id"] for c in client.get("/api/contacts").json()]

    assert ids == [second["id"], first["id"]]


def test_stats_overview(client):
    client.post("/api/contacts", json=contact_payload(newsletter_opt_in=True, preferred_time="morning"))
    client.post("/api/contacts", json=contact_payload(contact_preference="email", preferred_time="morning"))
    client.post("/api/contacts", json=contact_payload(contact_preference="phone", preferred_time="evening"))

    stats = client.get("/api/contacts/stats/overview").json()

    assert stats == {
        "total": 3,
        "newsletter_opt_in": 1,
        "prefer_whatsapp": 1,
        "prefer_email": 1,
        "prefer_phone": 1,
        "prefer_morning": 2,
        "prefer_afternoon": 0,
        "prefer_evening": 1,
    }


def test_stats_on_empty_table(client):
    stats = client.get("/api/contacts/stats/overview").json()

    assert stats["total"] == 0
    assert stats["prefer_whatsapp"] == 0


def test_update_rejects_blank_required_fields(client):
    contact = client.post("/api/contacts", json=contact_payload()).json()

    blank_name = client.put(f"/api/contacts/{contact['id']}", json={"name": "  "})
    empty_email = client.put(f"/api/contacts/{contact['id']}", json={"email": ""})
    null_phone = client.put(f"/api/contacts/{contact['id']}", json={"phone": None})

    assert blank_name.status_code == 422
    assert empty_email.status_code == 422
    assert null_phone.status_code == 422
    stored = client.get(f"/api/contacts/{contact['id']}").json()
    assert stored["name"] == "Carlos Souza"
    assert stored["email"] == "carlos@example.com"


def test_update_strips_name(client):
    contact = client.post("/api/contacts", json=contact_payload()).json()

    response = client.put(f"/api/contacts/{contact['id']}", json={"name": "  Carlos S.  "})

    assert response.json()["name"] == "Carlos S."


def test_update_can_clear_preferred_time(client):
    contact = client.post("/api/contacts", json=contact_payload(preferred_time="morning")).json()

    response = client.put(f"/api/contacts/{contact['id']}", json={"preferred_time": None})

    assert response.status_code == 200
    assert response.json()["preferred_time"] is None
