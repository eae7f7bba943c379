from decimal import Decimal

import pytest

from models import db
from models.service import Service
from services.businesses import list_businesses
from utils.roles import BUSINESS


@pytest.fixture
def listed(make_user, make_business):
    """Create an owner + business with the given attributes."""
    def _make(name, approved=True, category="beauty", city="Kathmandu", description=None, rating="0.00"):
        business = make_business(make_user(BUSINESS), name=name)
        business.is_approved = approved
        business.category = category
        business.city = city
        business.description = description
        business.rating = Decimal(rating)
        db.session.commit()
        return business

    return _make


def test_only_approved_businesses_are_listed(world, listed):
    shown = listed("Shown Spa")
    listed("Pending Spa", approved=False)

    rows, total = list_businesses()
    assert [b.id for b in rows] == [shown.id]
    assert total == 1


def test_filters_are_case_insensitive(world, listed):
    barber = listed("Sharp Cuts", category="Barber", city="Pokhara", description="Classic fades")
    listed("Nail Bar", category="beauty", city="Pokhara")

    assert [b.id for b in list_businesses(category="barber")[0]] == [barber.id]
    assert {b.name for b in list_businesses(city="POKHARA")[0]} == {"Sharp Cuts", "Nail Bar"}
    assert [b.id for b in list_businesses(search="FADES")[0]] == [barber.id]
    assert [b.id for b in list_businesses(search="sharp")[0]] == [barber.id]


def test_best_rated_first_and_paginated(world, listed):
    low = listed("Low", rating="3.10")
    high = listed("High", rating="4.90")
    mid = listed("Mid", rating="4.20")

    rows, total = list_businesses(page=1, limit=2)
    assert [b.id for b in rows] == [high.id, mid.id]
    assert total == 3
    assert [b.id for b in list_businesses(page=2, limit=2)[0]] == [low.id]


def test_browse_route_reflects_admin_approval(client, world, login):
    assert client.get("/businesses").get_json()["pagination"]["total"] == 0

    headers = login(world.admin)
    resp = client.post(f"/admin/businesses/{world.business.id}/approve", json={"approved": True}, headers=headers)
    assert resp.status_code == 200

    body = client.get("/businesses?category=BEAUTY&limit=500").get_json()
    assert [b["name"] for b in body["businesses"]] == ["Glow Salon"]
    assert body["pagination"] == {"page": 1, "limit": 50, "total": 1}


def test_my_profile_includes_inactive_services(client, world, login, make_service):
    retired = make_service(world.business, name="Perm")
    retired.is_active = False
    db.session.commit()

    login(world.owner)
    body = client.get("/businesses/my/profile").get_json()
    assert body["id"] == world.business.id
    assert [s["name"] for s in body["services"]] == ["Haircut", "Perm"]


def test_my_profile_without_business(client, world, login, make_user):
    login(make_user(BUSINESS))
    assert client.get("/businesses/my/profile").status_code == 404


def test_delete_service_is_soft(client, world, login):
    headers = login(world.owner)
    resp = client.delete(f"/businesses/services/{world.service.id}", headers=headers)
    assert resp.status_code == 200

    service = Service.query.get(world.service.id)
    assert service is not None
    assert service.is_active is False

    public = client.get(f"/businesses/{world.business.id}").get_json()
    assert public["services"] == []
    assert client.get(f"/timeslots/{world.service.id}?date=2024-01-10").get_json()["time_slots"] == []


def test_delete_service_of_other_business(client, world, login, make_user):
    headers = login(make_user(BUSINESS))
    resp = client.delete(f"/businesses/services/{world.service.id}", headers=headers)
    assert resp.status_code == 404
    assert Service.query.get(world.service.id).is_active is True
