"""
Tests for the booking chat: model thread (token) and guest thread (email claim)
"""
from fastapi import status
from slowapi import Limiter
from slowapi.util import get_remote_address


def _booking(client, headers, email="jane@x.com"):
    r = client.post("/api/bookings", json={"name": "Jane", "email": email}, headers=headers)
    return r.json()["data"]


def test_model_sends_and_reads(client, model_headers, model_user):
    booking = _booking(client, model_headers)

    r = client.post(f"/api/bookings/{booking['id']}/messages", json={"body": "  See you Monday  "},
                    headers=model_headers)
    assert r.status_code == status.HTTP_201_CREATED
    msg = r.json()["data"]
    assert msg["body"] == "See you Monday"
    assert msg["sender_type"] == "model"
    assert msg["sender_id"] == model_user["id"]
    assert msg["booking_id"] == booking["id"]

    r = client.get(f"/api/bookings/{booking['id']}/messages", headers=model_headers)
    assert r.status_code == status.HTTP_200_OK
    assert [m["id"] for m in r.json()["data"]] == [msg["id"]]


def test_model_thread_requires_ownership(client, model_headers, other_headers):
    booking = _booking(client, model_headers)

    r = client.get(f"/api/bookings/{booking['id']}/messages", headers=other_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    r = client.post(f"/api/bookings/{booking['id']}/messages", json={"body": "hi"}, headers=other_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_model_thread_requires_token(client, model_headers):
    booking = _booking(client, model_headers)
    r = client.get(f"/api/bookings/{booking['id']}/messages")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_empty_body_rejected(client, model_headers):
    booking = _booking(client, model_headers)
    for body in ({"body": "   "}, {}):
        r = client.post(f"/api/bookings/{booking['id']}/messages", json=body, headers=model_headers)
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["message"] == "Message body is required"


def test_guest_email_match_ignores_case_and_spaces(client, model_headers):
    booking = _booking(client, model_headers, email="a@b.com")

    r = client.post(f"/api/bookings/{booking['id']}/guest-messages",
                    json={"email": "  A@B.com ", "body": "hello"})
    assert r.status_code == status.HTTP_201_CREATED
    msg = r.json()["data"]
    assert msg["sender_type"] == "client"
    assert msg["sender_id"] is None

    r = client.get(f"/api/bookings/{booking['id']}/guest-messages", params={"email": " A@B.COM"})
    assert r.status_code == status.HTTP_200_OK
    assert [m["id"] for m in r.json()["data"]] == [msg["id"]]


def test_guest_email_mismatch_is_forbidden(client, model_headers, mock_db):
    booking = _booking(client, model_headers)

    r = client.get(f"/api/bookings/{booking['id']}/guest-messages", params={"email": "wrong@x.com"})
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json()["message"] == "Email does not match this booking"

    r = client.post(f"/api/bookings/{booking['id']}/guest-messages",
                    json={"email": "wrong@x.com", "body": "let me in"})
    assert r.status_code == status.HTTP_403_FORBIDDEN

    r = client.get(f"/api/bookings/{booking['id']}/messages", headers=model_headers)
    assert r.json()["data"] == []


def test_guest_unknown_booking_is_not_found(client):
    r = client.get("/api/bookings/65f000000000000000000000/guest-messages", params={"email": "jane@x.com"})
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["message"] == "Booking not found"


def test_guest_email_required(client, model_headers):
    booking = _booking(client, model_headers)

    r = client.get(f"/api/bookings/{booking['id']}/guest-messages")
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["message"] == "Email is required"

    r = client.post(f"/api/bookings/{booking['id']}/guest-messages", json={"body": "hi"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["message"] == "Email is required"


def test_guest_thread_needs_no_token(client, model_headers):
    booking = _booking(client, model_headers)
    r = client.post(f"/api/bookings/{booking['id']}/guest-messages",
                    json={"email": "jane@x.com", "body": "hi"},
                    headers={"Authorization": "Bearer garbage"})
    assert r.status_code == status.HTTP_201_CREATED


def test_both_senders_share_one_ordered_thread(client, model_headers):
    booking = _booking(client, model_headers)
    model_url = f"/api/bookings/{booking['id']}/messages"
    guest_url = f"/api/bookings/{booking['id']}/guest-messages"

    client.post(guest_url, json={"email": "jane@x.com", "body": "one"})
    client.post(model_url, json={"body": "two"}, headers=model_headers)
    client.post(guest_url, json={"email": "jane@x.com", "body": "three"})
    client.post(model_url, json={"body": "four"}, headers=model_headers)

    as_model = client.get(model_url, headers=model_headers).json()["data"]
    as_guest = client.get(guest_url, params={"email": "jane@x.com"}).json()["data"]

    assert [m["body"] for m in as_model] == ["one", "two", "three", "four"]
    assert [m["sender_type"] for m in as_model] == ["client", "model", "client", "model"]
    assert as_guest == as_model


def test_messages_do_not_leak_across_bookings(client, model_headers):
    a = _booking(client, model_headers)
    b = _booking(client, model_headers)
    client.post(f"/api/bookings/{a['id']}/messages", json={"body": "for a"}, headers=model_headers)

    r = client.get(f"/api/bookings/{b['id']}/messages", headers=model_headers)
    assert r.json()["data"] == []


def test_guest_empty_body_rejected(client, model_headers):
    booking = _booking(client, model_headers)
    url = f"/api/bookings/{booking['id']}/guest-messages"
    for body in ({"email": "jane@x.com", "body": "   "}, {"email": "jane@x.com"}):
        r = client.post(url, json=body)
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["message"] == "Message body is required"

    r = client.get(url, params={"email": "jane@x.com"})
    assert r.json()["data"] == []


def test_guest_messages_are_rate_limited_per_address(client, model_headers, monkeypatch):
    from modelfolio.main import app
    from modelfolio.routers import messages

    a = _booking(client, model_headers)
    b = _booking(client, model_headers)
    monkeypatch.setattr(messages.settings, "guest_rate_limit", "2/minute")
    app.state.limiter = Limiter(key_func=get_remote_address)
    try:
        body = {"email": "jane@x.com", "body": "hi"}
        codes = [
            client.post(f"/api/bookings/{a['id']}/guest-messages", json=body).status_code,
            client.post(f"/api/bookings/{a['id']}/guest-messages", json=body).status_code,
            # another booking id does not reset the caller's budget
            client.post(f"/api/bookings/{b['id']}/guest-messages", json=body).status_code,
        ]
    finally:
        app.state.limiter = None
    assert codes == [201, 201, 429]

    r = client.get(f"/api/bookings/{b['id']}/messages", headers=model_headers)
    assert r.json()["data"] == []
