from datetime import datetime, timedelta

import pytest

from models.audit_log import AuditLog
from models.booking import CANCELLED, Booking
from models.slot import TimeSlot
from services.bookings import complete_booking, create_booking
from utils.roles import BUSINESS, CUSTOMER


def _booking_payload(world):
    return {
        "business_id": world.business.id,
        "service_id": world.service.id,
        "timeslot_id": world.slot.id,
        "customer_notes": "window seat",
    }


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_register_login_me(client):
    resp = client.post("/auth/register", json={
        "email": "New@Example.com", "password": "password123", "full_name": "Nia New", "role": "business",
    })
    assert resp.status_code == 201

    resp = client.post("/auth/login", json={"email": "new@example.com", "password": "password123"})
    assert resp.status_code == 200

    me = client.get("/auth/me").get_json()
    assert me["email"] == "new@example.com"
    assert me["roles"] == [BUSINESS]


def test_register_rejects_admin_role(client):
    resp = client.post("/auth/register", json={"email": "x@example.com", "password": "password123", "role": "ADMIN"})
    assert resp.status_code == 400


def test_login_with_wrong_password(client, world):
    resp = client.post("/auth/login", json={"email": world.customer.email, "password": "wrong-password"})
    assert resp.status_code == 401


def test_book_then_conflict(client, world, login, make_user):
    headers = login(world.customer)
    resp = client.post("/bookings", json=_booking_payload(world), headers=headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["booking"]["status"] == "booked"
    assert body["booking"]["total_price"] == "50000.00"
    assert body["booking"]["customer_name"] == "Cara Customer"
    assert body["payment"]["status"] == "pending"

    other = make_user(CUSTOMER)
    headers = login(other)
    resp = client.post("/bookings", json=_booking_payload(world), headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "SlotUnavailable"
    assert AuditLog.query.filter_by(action="BOOKING_FAIL_SLOT_UNAVAILABLE", user_id=other.id).count() == 1
    assert Booking.query.count() == 1


def test_booking_requires_login(client, world):
    resp = client.post("/bookings", json=_booking_payload(world))
    assert resp.status_code == 401


def test_booking_requires_csrf_header(client, world, login):
    login(world.customer)
    resp = client.post("/bookings", json=_booking_payload(world))
    assert resp.status_code == 403
    assert TimeSlot.query.get(world.slot.id).is_booked is False


def test_booking_with_missing_field(client, world, login):
    headers = login(world.customer)
    payload = _booking_payload(world)
    del payload["timeslot_id"]
    resp = client.post("/bookings", json=payload, headers=headers)
    assert resp.status_code == 400


def test_booking_with_malformed_id(client, world, login):
    headers = login(world.customer)
    payload = dict(_booking_payload(world), service_id="abc")
    resp = client.post("/bookings", json=payload, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "ValidationError"


@pytest.mark.parametrize("field, value", [
    ("timeslot_id", 10**20),
    ("timeslot_id", float("inf")),
    ("business_id", -1),
    ("customer_notes", {"a": 1}),
])
def test_booking_with_out_of_range_input(client, world, login, field, value):
    headers = login(world.customer)
    payload = dict(_booking_payload(world), **{field: value})
    resp = client.post("/bookings", json=payload, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "ValidationError"
    assert TimeSlot.query.get(world.slot.id).is_booked is False


def test_cancel_and_view(client, world, login, make_user):
    booking = create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id).booking

    login(make_user(CUSTOMER))
    assert client.get(f"/bookings/{booking.id}").status_code == 404

    headers = login(world.customer)
    resp = client.get(f"/bookings/{booking.id}")
    assert resp.status_code == 200
    assert resp.get_json()["booking"]["id"] == booking.id

    resp = client.put(f"/bookings/{booking.id}/cancel", json={"reason": "travel"}, headers=headers)
    assert resp.status_code == 200
    assert Booking.query.get(booking.id).status == CANCELLED

    resp = client.put(f"/bookings/{booking.id}/cancel", json={}, headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "AlreadyCancelled"


def test_customer_cannot_complete(client, world, login):
    booking = create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id).booking
    headers = login(world.customer)
    resp = client.put(f"/bookings/{booking.id}/complete", headers=headers)
    assert resp.status_code == 403


def test_owner_completes_and_customer_reviews(client, world, login):
    booking = create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id).booking

    headers = login(world.owner)
    assert client.put(f"/bookings/{booking.id}/complete", headers=headers).status_code == 200

    headers = login(world.customer)
    resp = client.post("/reviews", json={"booking_id": booking.id, "rating": 5, "comment": "great"}, headers=headers)
    assert resp.status_code == 201
    assert resp.get_json()["review"]["customer_name"] == "Cara Customer"

    resp = client.post("/reviews", json={"booking_id": booking.id, "rating": 4}, headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "DuplicateReview"

    listing = client.get(f"/reviews/business/{world.business.id}?limit=500").get_json()
    assert listing["pagination"] == {"page": 1, "limit": 50, "total": 1}

    business = client.get(f"/businesses/{world.business.id}").get_json()
    assert business["rating"] == "5.00"
    assert business["total_reviews"] == 1


def test_review_before_completion_is_not_found(client, world, login):
    booking = create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id).booking
    headers = login(world.customer)
    resp = client.post("/reviews", json={"booking_id": booking.id, "rating": 5}, headers=headers)
    assert resp.status_code == 404


def test_owner_publishes_slots(client, world, login):
    headers = login(world.owner)
    start = datetime(2030, 5, 1, 9, 0)
    resp = client.post("/timeslots", json={
        "service_id": world.service.id,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(minutes=30)).isoformat(),
    }, headers=headers)
    assert resp.status_code == 201

    resp = client.post("/timeslots", json={
        "service_id": world.service.id,
        "start_time": (start + timedelta(minutes=15)).isoformat(),
        "end_time": (start + timedelta(minutes=45)).isoformat(),
    }, headers=headers)
    assert resp.status_code == 409

    resp = client.get(f"/timeslots/{world.service.id}?date=2030-05-01")
    assert [s["start_time"] for s in resp.get_json()["time_slots"]] == ["2030-05-01T09:00:00"]


def test_stranger_cannot_publish_slots(client, world, login, make_user):
    headers = login(make_user(BUSINESS))
    resp = client.post("/timeslots", json={
        "service_id": world.service.id,
        "start_time": "2030-05-01T09:00:00",
        "end_time": "2030-05-01T09:30:00",
    }, headers=headers)
    assert resp.status_code == 404


def test_owner_lists_business_bookings(client, world, login):
    booking = create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id).booking
    complete_booking(booking.id, world.owner.id)

    login(world.owner)
    resp = client.get(f"/businesses/{world.business.id}/bookings?status=completed")
    assert resp.status_code == 200
    assert [b["id"] for b in resp.get_json()["bookings"]] == [booking.id]


def test_admin_lists_all_bookings(client, world, login):
    create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id)
    login(world.admin)
    resp = client.get("/admin/bookings")
    assert resp.status_code == 200
    assert len(resp.get_json()["bookings"]) == 1

    login(world.customer)
    assert client.get("/admin/bookings").status_code == 403
