"""Slot store: publishing, listing and claiming bookable time windows."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, or_, update

from models import db
from models.business import Business
from models.service import Service
from models.slot import TimeSlot
from services.errors import (
    ServiceNotFound,
    SlotBooked,
    SlotNotFound,
    SlotOverlap,
    ValidationError,
)

logger = logging.getLogger(__name__)


def intervals_overlap(a_start, a_end, b_start, b_end):
    """Half-open interval test; windows that only touch do not overlap."""
    return (
        (b_start <= a_start < b_end)
        or (b_start < a_end <= b_end)
        or (a_start <= b_start and b_end <= a_end)
    )


def _overlap_query(service_id, start_time, end_time):
    return TimeSlot.query.filter(
        TimeSlot.service_id == service_id,
        or_(
            and_(TimeSlot.start_time <= start_time, TimeSlot.end_time > start_time),
            and_(TimeSlot.start_time < end_time, TimeSlot.end_time >= end_time),
            and_(TimeSlot.start_time >= start_time, TimeSlot.end_time <= end_time),
        ),
    )


def _owned_service(actor_id, service_id):
    # Row lock serialises concurrent publishers on the same service
    service = (
        Service.query
        .join(Business, Service.business_id == Business.id)
        .filter(Service.id == service_id, Business.owner_user_id == actor_id)
        .with_for_update(of=Service)
        .first()
    )
    if not service:
        raise ServiceNotFound()
    return service


def _check_window(start_time, end_time):
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time")


def create_slot(actor_id, service_id, start_time, end_time):
    _check_window(start_time, end_time)
    try:
        service = _owned_service(actor_id, service_id)
        if _overlap_query(service.id, start_time, end_time).first():
            raise SlotOverlap()

        slot = TimeSlot(service_id=service.id, start_time=start_time, end_time=end_time)
        db.session.add(slot)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Slot %s published for service %s (%s - %s)", slot.id, service_id, start_time, end_time)
    return slot


def create_slots_bulk(actor_id, service_id, windows):
    """Publish several windows at once; either all are created or none."""
    if not windows:
        raise ValidationError("At least one time slot is required")
    for start_time, end_time in windows:
        _check_window(start_time, end_time)

    try:
        service = _owned_service(actor_id, service_id)
        accepted = []
        for start_time, end_time in windows:
            if _overlap_query(service.id, start_time, end_time).first():
                raise SlotOverlap()
            if any(intervals_overlap(start_time, end_time, s, e) for s, e in accepted):
                raise SlotOverlap("Time slots in the request overlap each other")
            accepted.append((start_time, end_time))

        slots = [TimeSlot(service_id=service.id, start_time=s, end_time=e) for s, e in accepted]
        db.session.add_all(slots)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("%d slots published for service %s", len(slots), service_id)
    return slots


def list_free_slots(service_id, date=None, start_date=None, end_date=None, now=None):
    q = (
        TimeSlot.query
        .join(Service, TimeSlot.service_id == Service.id)
        .filter(
            TimeSlot.service_id == service_id,
            TimeSlot.is_booked.is_(False),
            Service.is_active.is_(True),
        )
    )

    if date:
        start = datetime(date.year, date.month, date.day)
        q = q.filter(TimeSlot.start_time >= start, TimeSlot.start_time < start + timedelta(days=1))
    elif start_date and end_date:
        start = datetime(start_date.year, start_date.month, start_date.day)
        end = datetime(end_date.year, end_date.month, end_date.day) + timedelta(days=1)
        q = q.filter(TimeSlot.start_time >= start, TimeSlot.start_time < end)
    else:
        # Default to future slots only
        q = q.filter(TimeSlot.start_time > (now or datetime.utcnow()))

    return q.order_by(TimeSlot.start_time.asc()).all()


def delete_slot(actor_id, slot_id):
    try:
        slot = (
            TimeSlot.query
            .join(Service, TimeSlot.service_id == Service.id)
            .join(Business, Service.business_id == Business.id)
            .filter(TimeSlot.id == slot_id, Business.owner_user_id == actor_id)
            .with_for_update(of=TimeSlot)
            .first()
        )
        if not slot:
            raise SlotNotFound()
        if slot.is_booked:
            raise SlotBooked()

        db.session.delete(slot)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Slot %s deleted by user %s", slot_id, actor_id)


def claim_slot(slot_id, service_id):
    """Flip is_booked false -> true in one statement.

    Returns False when the slot is missing, belongs to another service or is
    already booked. Must run inside the caller's transaction.
    """
    result = db.session.execute(
        update(TimeSlot)
        .where(
            TimeSlot.id == slot_id,
            TimeSlot.service_id == service_id,
            TimeSlot.is_booked.is_(False),
        )
        .values(is_booked=True, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_slot(slot_id):
    db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id)
        .values(is_booked=False, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
