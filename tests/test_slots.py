from datetime import date, datetime, timedelta

import pytest

from models import db
from models.slot import TimeSlot
from services.bookings import create_booking
from services.errors import ServiceNotFound, SlotBooked, SlotNotFound, SlotOverlap, ValidationError
from services.pricing import update_service
from services.slots import (
    claim_slot,
    create_slot,
    create_slots_bulk,
    delete_slot,
    intervals_overlap,
    list_free_slots,
)
from utils.roles import BUSINESS

T = datetime(2030, 3, 4)


def at(hour, minute=0, day=T):
    return day.replace(hour=hour, minute=minute)


def test_overlapping_slot_is_rejected(world):
    create_slot(world.owner.id, world.service.id, at(10, 15), at(10, 45))

    with pytest.raises(SlotOverlap):
        create_slot(world.owner.id, world.service.id, at(10, 0), at(10, 30))

    assert TimeSlot.query.filter_by(service_id=world.service.id).count() == 2  # fixture slot + 10:15


def test_touching_slots_do_not_overlap(world):
    create_slot(world.owner.id, world.service.id, at(10, 0), at(10, 30))
    after = create_slot(world.owner.id, world.service.id, at(10, 30), at(11, 0))
    before = create_slot(world.owner.id, world.service.id, at(9, 30), at(10, 0))

    assert after.id and before.id


def test_slot_containing_existing_slot_is_rejected(world):
    create_slot(world.owner.id, world.service.id, at(10, 15), at(10, 45))
    with pytest.raises(SlotOverlap):
        create_slot(world.owner.id, world.service.id, at(10, 0), at(11, 0))


def test_same_window_on_other_service_is_allowed(world, make_service):
    other = make_service(world.business, name="Beard trim")
    create_slot(world.owner.id, world.service.id, at(10, 0), at(10, 30))
    assert create_slot(world.owner.id, other.id, at(10, 0), at(10, 30)).service_id == other.id


def test_intervals_overlap_helper():
    assert intervals_overlap(at(10), at(11), at(10, 30), at(12))
    assert not intervals_overlap(at(10), at(11), at(11), at(12))
    assert not intervals_overlap(at(11), at(12), at(10), at(11))


def test_end_must_follow_start(world):
    with pytest.raises(ValidationError):
        create_slot(world.owner.id, world.service.id, at(10, 30), at(10, 30))


def test_cannot_publish_on_someone_elses_service(world, make_user):
    stranger = make_user(BUSINESS)
    with pytest.raises(ServiceNotFound):
        create_slot(stranger.id, world.service.id, at(10), at(11))


def test_bulk_create_is_all_or_nothing(world):
    create_slot(world.owner.id, world.service.id, at(12), at(12, 30))
    before = TimeSlot.query.count()

    with pytest.raises(SlotOverlap):
        create_slots_bulk(world.owner.id, world.service.id, [
            (at(9), at(9, 30)),
            (at(12, 15), at(12, 45)),
        ])

    assert TimeSlot.query.count() == before


def test_bulk_create_rejects_overlap_within_batch(world):
    with pytest.raises(SlotOverlap):
        create_slots_bulk(world.owner.id, world.service.id, [
            (at(9), at(10)),
            (at(9, 30), at(10, 30)),
        ])


def test_bulk_create(world):
    slots = create_slots_bulk(world.owner.id, world.service.id, [
        (at(9), at(9, 30)),
        (at(9, 30), at(10)),
    ])
    assert [s.start_time for s in slots] == [at(9), at(9, 30)]


def test_list_free_slots_defaults_to_future_only(world, make_slot):
    now = datetime(2030, 1, 1, 12, 0)
    later = make_slot(world.service, start=datetime(2030, 1, 2, 9, 0))
    soon = make_slot(world.service, start=datetime(2030, 1, 1, 13, 0))
    make_slot(world.service, start=datetime(2030, 1, 1, 11, 0))  # already started

    slots = list_free_slots(world.service.id, now=now)

    assert [s.id for s in slots] == [soon.id, later.id]


def test_list_free_slots_by_date_and_range(world, make_slot):
    d1 = make_slot(world.service, start=datetime(2030, 5, 1, 9, 0))
    d1_late = make_slot(world.service, start=datetime(2030, 5, 1, 23, 30))
    d2 = make_slot(world.service, start=datetime(2030, 5, 2, 9, 0))
    make_slot(world.service, start=datetime(2030, 5, 3, 9, 0))

    assert [s.id for s in list_free_slots(world.service.id, date=date(2030, 5, 1))] == [d1.id, d1_late.id]

    in_range = list_free_slots(world.service.id, start_date=date(2030, 5, 1), end_date=date(2030, 5, 2))
    assert [s.id for s in in_range] == [d1.id, d1_late.id, d2.id]


def test_list_free_slots_skips_booked(world):
    create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id)
    assert list_free_slots(world.service.id, date=date(2024, 1, 10)) == []


def test_list_free_slots_hides_inactive_service(world):
    day = date(2024, 1, 10)
    assert [s.id for s in list_free_slots(world.service.id, date=day)] == [world.slot.id]

    update_service(world.owner.id, world.service.id, is_active=False)
    assert list_free_slots(world.service.id, date=day) == []

    update_service(world.owner.id, world.service.id, is_active=True)
    assert [s.id for s in list_free_slots(world.service.id, date=day)] == [world.slot.id]


def test_delete_unbooked_slot(world):
    slot_id = world.slot.id
    delete_slot(world.owner.id, slot_id)
    assert TimeSlot.query.get(slot_id) is None


def test_delete_booked_slot_is_rejected(world):
    create_booking(world.customer.id, world.business.id, world.service.id, world.slot.id)
    with pytest.raises(SlotBooked):
        delete_slot(world.owner.id, world.slot.id)
    assert TimeSlot.query.get(world.slot.id) is not None


def test_delete_slot_of_other_business_is_not_found(world, make_user):
    stranger = make_user(BUSINESS)
    with pytest.raises(SlotNotFound):
        delete_slot(stranger.id, world.slot.id)


def test_claim_after_stale_read_fails(world):
    # Both racers observed the slot as free before either wrote
    first_view = TimeSlot.query.get(world.slot.id)
    assert first_view.is_booked is False

    assert claim_slot(world.slot.id, world.service.id) is True
    assert claim_slot(world.slot.id, world.service.id) is False
    db.session.rollback()


def test_claim_rejects_slot_of_other_service(world, make_service):
    other = make_service(world.business, name="Colour")
    assert claim_slot(world.slot.id, other.id) is False
    db.session.rollback()
