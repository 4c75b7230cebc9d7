"""
Tests for the public booking form and the guest chat scenario
"""
import asyncio

from fastapi import status
from slowapi import Limiter
from slowapi.util import get_remote_address


def test_guest_chat_scenario(client, model_profile):
    r = client.post("/api/bookings/guest", json={
        "username": "model1", "name": "Jane", "email": "jane@x.com",
    })
    assert r.status_code == status.HTTP_201_CREATED
    booking = r.json()["data"]
    assert booking["user_id"] == model_profile["_id"]
    assert booking["status"] == "pending"

    url = f"/api/bookings/{booking['id']}/guest-messages"
    r = client.post(url, json={"email": "JANE@X.COM", "body": "hi"})
    assert r.status_code == status.HTTP_201_CREATED
    sent = r.json()["data"]

    r = client.get(url, params={"email": "jane@x.com"})
    assert r.status_code == status.HTTP_200_OK
    assert sent["id"] in [m["id"] for m in r.json()["data"]]

    r = client.get(url, params={"email": "wrong@x.com"})
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_guest_booking_visible_to_model(client, model_profile, model_headers):
    client.post("/api/bookings/guest", json={"username": "model1", "name": "Jane", "email": "jane@x.com"})
    r = client.get("/api/bookings", headers=model_headers)
    assert [b["name"] for b in r.json()["data"]] == ["Jane"]


def test_guest_username_is_case_insensitive(client, model_profile):
    r = client.post("/api/bookings/guest", json={"username": "  MODEL1 ", "name": "Jane", "email": "jane@x.com"})
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["data"]["user_id"] == model_profile["_id"]


def test_guest_email_is_stored_lowercase(client, model_profile):
    r = client.post("/api/bookings/guest", json={"username": "model1", "name": "Jane", "email": " Jane@X.com "})
    assert r.json()["data"]["email"] == "jane@x.com"


def test_guest_model_id_is_used_directly(client):
    r = client.post("/api/bookings/guest", json={"model_id": "user-xyz", "name": "Jane", "email": "jane@x.com"})
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["data"]["user_id"] == "user-xyz"


def test_guest_unknown_username(client, mock_db):
    r = client.post("/api/bookings/guest", json={"username": "ghost", "name": "Jane", "email": "jane@x.com"})
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["message"] == "Model not found"
    assert asyncio.run(mock_db.bookings.count_documents({})) == 0


def test_guest_owner_required(client):
    r = client.post("/api/bookings/guest", json={"name": "Jane", "email": "jane@x.com"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["message"] == "model_id or username is required"


def test_guest_validation_before_owner_lookup(client):
    r = client.post("/api/bookings/guest", json={"username": "ghost", "name": "Jane", "email": "not-an-email"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["message"] == "Invalid email format"


def test_guest_rejects_unknown_status(client, model_profile):
    r = client.post("/api/bookings/guest", json={
        "username": "model1", "name": "Jane", "email": "jane@x.com", "status": "vip",
    })
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_guest_booking_is_rate_limited(client, model_profile, monkeypatch):
    from modelfolio.main import app
    from modelfolio.routers import bookings

    monkeypatch.setattr(bookings.settings, "guest_rate_limit", "2/minute")
    app.state.limiter = Limiter(key_func=get_remote_address)
    try:
        body = {"username": "model1", "name": "Jane", "email": "jane@x.com"}
        codes = [client.post("/api/bookings/guest", json=body).status_code for _ in range(3)]
    finally:
        app.state.limiter = None
    assert codes == [201, 201, 429]
