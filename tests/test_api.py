from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from nativeflow import config, models
from nativeflow.main import app
from nativeflow.utils import create_jwt

BOOKING = {
    "name": "Jane Doe",
    "email": "jane@x.com",
    "phone": "6045551234",
    "address": "1 Main St",
    "service_type": "Drain Cleaning",
    "preferred_date": "2025-01-02",
    "preferred_time": "9:00 AM",
}


def test_guest_booking_is_pending_and_alerts_owner(client, sent_emails):
    response = client.post("/appointments", json=BOOKING)

    assert response.status_code == 201
    body = response.json()
    assert body["user_id"] is None
    assert body["status"] == "pending"
    assert [e["subject"] for e in sent_emails] == ["New Appointment Request - Drain Cleaning"]


def test_signed_in_booking_shows_in_my_appointments(client, auth_headers):
    headers = auth_headers("u1")
    created = client.post("/appointments", json=BOOKING, headers=headers).json()
    client.post("/appointments", json={**BOOKING, "name": "Someone Else"}, headers=auth_headers("u2"))

    response = client.get("/appointments/me", headers=headers)

    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [created["id"]]
    assert created["user_id"] == "u1"


def test_my_appointments_empty(client, auth_headers):
    response = client.get("/appointments/me", headers=auth_headers("u1"))
    assert response.status_code == 200
    assert response.json() == []


def test_my_appointments_needs_a_valid_token(client):
    assert client.get("/appointments/me").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/appointments/me", headers=bad).status_code == 401


def signed_with(key, **claims):
    claims.setdefault("exp", datetime.now(timezone.utc) + timedelta(minutes=5))
    return {"Authorization": f"Bearer {jwt.encode(claims, key, algorithm='HS256')}"}


def test_token_signed_with_another_key_is_rejected(client, auth_headers):
    client.post("/appointments", json=BOOKING, headers=auth_headers("victim"))

    forged = signed_with("dev-secret-change-me", sub="victim")
    assert client.get("/appointments/me", headers=forged).status_code == 401


def test_no_secret_key_means_no_bearer_tokens(client, auth_headers, monkeypatch):
    client.post("/appointments", json=BOOKING, headers=auth_headers("victim"))
    monkeypatch.setattr(config, "SECRET_KEY", None)

    forged = signed_with("dev-secret-change-me", sub="victim")
    assert client.get("/appointments/me", headers=forged).status_code == 401
    with pytest.raises(RuntimeError):
        create_jwt({"sub": "victim"})


def test_app_refuses_to_start_without_secret_key(monkeypatch):
    monkeypatch.setattr(config, "SECRET_KEY", None)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        with TestClient(app):
            pass


def test_booking_with_missing_field_is_rejected(client, sent_emails):
    response = client.post("/appointments", json={**BOOKING, "phone": ""})
    assert response.status_code == 422
    assert sent_emails == []


def test_status_change_is_for_admins(client, auth_headers, session_factory):
    db = session_factory()
    db.add(models.Profile(user_id="boss", email="boss@x.com", role="admin"))
    db.commit()
    db.close()

    owner = auth_headers("u1")
    appt = client.post("/appointments", json=BOOKING, headers=owner).json()

    denied = client.patch(f"/appointments/{appt['id']}/status", json={"status": "cancelled"}, headers=owner)
    assert denied.status_code == 403

    ok = client.patch(f"/appointments/{appt['id']}/status", json={"status": "confirmed"}, headers=auth_headers("boss"))
    assert ok.status_code == 200
    assert ok.json()["status"] == "confirmed"

    missing = client.patch("/appointments/nope/status", json={"status": "confirmed"}, headers=auth_headers("boss"))
    assert missing.status_code == 404


def test_profile_lifecycle(client, auth_headers):
    headers = auth_headers("u1", "u1@x.com")

    assert client.get("/profiles/me", headers=headers).status_code == 404
    assert client.get("/profiles/me", headers=headers).status_code == 404

    created = client.put("/profiles/me", json={"full_name": "Una One"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["email"] == "u1@x.com"
    assert created.json()["role"] == "client"

    updated = client.put("/profiles/me", json={"full_name": "Una One", "phone": "604"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["id"] == created.json()["id"]

    fetched = client.get("/profiles/me", headers=headers)
    assert fetched.json()["phone"] == "604"


def test_profile_update_without_email_claim_keeps_address(client, auth_headers):
    created = client.put("/profiles/me", json={"full_name": "Una One"}, headers=auth_headers("u1", "u1@x.com"))
    assert created.status_code == 201

    no_email = signed_with(config.SECRET_KEY, sub="u1")
    updated = client.put("/profiles/me", json={"phone": "604"}, headers=no_email)

    assert updated.status_code == 200
    assert updated.json()["email"] == "u1@x.com"
    assert updated.json()["phone"] == "604"


def test_first_profile_save_needs_an_email(client):
    no_email = signed_with(config.SECRET_KEY, sub="u1")
    response = client.put("/profiles/me", json={"full_name": "Una One"}, headers=no_email)
    assert response.status_code == 422


def test_profile_role_is_not_client_editable(client, auth_headers):
    response = client.put("/profiles/me", json={"role": "admin"}, headers=auth_headers("u1"))
    assert response.status_code == 422


def test_testimonials_are_public_and_approved_only(client, session_factory):
    db = session_factory()
    db.add_all([
        models.Testimonial(name="Ann", testimonial="Quick fix", rating=5, is_approved=True,
                           created_at=datetime(2025, 1, 1)),
        models.Testimonial(name="Ben", testimonial="Friendly", rating=4, is_approved=True,
                           created_at=datetime(2025, 2, 1)),
        models.Testimonial(name="Cat", testimonial="Pending review", rating=2, is_approved=False),
    ])
    db.commit()
    db.close()

    response = client.get("/testimonials")

    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["Ben", "Ann"]


def test_contact_message(client, sent_emails):
    response = client.post("/contact", json={"name": "Bob", "email": "b@x.com", "message": "Leak!"})

    assert response.status_code == 201
    assert response.json()["is_read"] is False
    assert sent_emails[0]["subject"] == "New Contact Message"


def test_contact_rejects_bad_email(client, sent_emails):
    response = client.post("/contact", json={"name": "Bob", "email": "bob", "message": "Leak!"})
    assert response.status_code == 422
    assert sent_emails == []
