"""Booking transaction coordinator.

Creates, cancels and completes bookings, keeping the slot flag, the
booking row and its payment record consistent inside one transaction.
"""
import logging
from collections import namedtuple
from datetime import datetime, timedelta

from models import db
from models.booking import BOOKED, CANCELLED, COMPLETED, TERMINAL_STATUSES, Booking
from models.business import Business
from models.slot import TimeSlot
from models.user import User
from services.errors import (
    AccessDenied,
    AlreadyCancelled,
    BookingNotCancellable,
    BookingNotCompletable,
    BookingNotFound,
    BusinessNotFound,
    NotFound,
    SlotUnavailable,
    ValidationError,
)
from services.notifications import notify_booking_cancelled, notify_booking_confirmed
from services.payments import create_pending_payment, mark_refunded
from services.pricing import get_service_for_booking
from services.slots import claim_slot, release_slot
from utils.parsing import positive_int
from utils.roles import ADMIN

logger = logging.getLogger(__name__)

BookingResult = namedtuple("BookingResult", ["booking", "payment", "details"])


def booking_details(booking):
    """Denormalised view joining customer, business, service and slot."""
    customer = booking.customer
    business = booking.business
    service = booking.service
    slot = booking.timeslot
    return {
        "id": booking.id,
        "status": booking.status,
        "total_price": booking.total_price,
        "customer_notes": booking.customer_notes,
        "created_at": booking.created_at,
        "customer_id": booking.customer_id,
        "customer_name": customer.full_name if customer else None,
        "customer_email": customer.email if customer else None,
        "business_id": booking.business_id,
        "business_name": business.name if business else None,
        "service_id": booking.service_id,
        "service_name": service.name if service else None,
        "timeslot_id": booking.timeslot_id,
        "start_time": slot.start_time if slot else None,
        "end_time": slot.end_time if slot else None,
    }


def create_booking(customer_id, business_id, service_id, timeslot_id, notes=None):
    customer_id = positive_int(customer_id, "customer ID")
    business_id = positive_int(business_id, "business ID")
    service_id = positive_int(service_id, "service ID")
    timeslot_id = positive_int(timeslot_id, "time slot ID")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("customer_notes must be text")
    notes = (notes or "").strip() or None

    try:
        if not User.query.get(customer_id):
            raise NotFound("Customer not found")
        if not Business.query.get(business_id):
            raise BusinessNotFound()
        service = get_service_for_booking(service_id, business_id)

        if not claim_slot(timeslot_id, service.id):
            logger.warning("Slot %s unavailable for customer %s", timeslot_id, customer_id)
            raise SlotUnavailable()

        booking = Booking(
            customer_id=customer_id,
            business_id=business_id,
            service_id=service.id,
            timeslot_id=timeslot_id,
            status=BOOKED,
            customer_notes=notes,
            total_price=service.price,
        )
        db.session.add(booking)
        db.session.flush()

        payment = create_pending_payment(booking)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s created on slot %s for customer %s", booking.id, timeslot_id, customer_id)
    details = booking_details(booking)
    notify_booking_confirmed(booking.id)
    return BookingResult(booking, payment, details)


def cancel_booking(booking_id, actor_id, actor_role, reason=None):
    try:
        booking = Booking.query.filter_by(id=booking_id).with_for_update().first()
        if not booking:
            raise BookingNotFound()

        owner_id = booking.business.owner_user_id if booking.business else None
        if actor_id not in (booking.customer_id, owner_id) and actor_role != ADMIN:
            raise AccessDenied()

        if booking.status == CANCELLED:
            raise AlreadyCancelled()
        if booking.status in TERMINAL_STATUSES:
            raise BookingNotCancellable()

        booking.status = CANCELLED
        booking.cancelled_at = datetime.utcnow()
        booking.cancel_reason = reason
        release_slot(booking.timeslot_id)
        mark_refunded(booking.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s cancelled by user %s (%s)", booking.id, actor_id, actor_role)
    notify_booking_cancelled(booking.id)
    return booking


def complete_booking(booking_id, business_user_id):
    try:
        # Not owned and not existing look the same to the caller
        booking = (
            Booking.query
            .join(Business, Booking.business_id == Business.id)
            .filter(Booking.id == booking_id, Business.owner_user_id == business_user_id)
            .with_for_update(of=Booking)
            .first()
        )
        if not booking:
            raise BookingNotFound()
        if booking.status in TERMINAL_STATUSES:
            raise BookingNotCompletable(f"Booking is already {booking.status}")

        booking.status = COMPLETED
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s completed by business user %s", booking.id, business_user_id)
    return booking


def get_booking_for_actor(booking_id, actor_id, actor_role):
    booking = Booking.query.get(booking_id)
    if not booking:
        raise BookingNotFound()
    owner_id = booking.business.owner_user_id if booking.business else None
    if actor_id not in (booking.customer_id, owner_id) and actor_role != ADMIN:
        raise BookingNotFound()

    details = booking_details(booking)
    payment = booking.payment
    details.update(
        customer_phone=booking.customer.phone_number if booking.customer else None,
        business_address=booking.business.address if booking.business else None,
        contact_info=booking.business.contact_info if booking.business else None,
        service_description=booking.service.description if booking.service else None,
        duration=booking.service.duration if booking.service else None,
        payment_status=payment.status if payment else None,
        payment_method=payment.payment_method if payment else None,
    )
    return details


def list_customer_bookings(customer_id, status=None):
    q = (
        Booking.query
        .join(TimeSlot, Booking.timeslot_id == TimeSlot.id)
        .filter(Booking.customer_id == customer_id)
    )
    if status:
        q = q.filter(Booking.status == status)
    rows = q.order_by(TimeSlot.start_time.desc()).all()
    return [booking_details(b) for b in rows]


def list_business_bookings(owner_user_id, business_id, status=None, date=None):
    business = Business.query.filter_by(id=business_id, owner_user_id=owner_user_id).first()
    if not business:
        raise AccessDenied()

    q = (
        Booking.query
        .join(TimeSlot, Booking.timeslot_id == TimeSlot.id)
        .filter(Booking.business_id == business.id)
    )
    if status:
        q = q.filter(Booking.status == status)
    if date:
        start = datetime(date.year, date.month, date.day)
        q = q.filter(TimeSlot.start_time >= start, TimeSlot.start_time < start + timedelta(days=1))

    out = []
    for b in q.order_by(TimeSlot.start_time.desc()).all():
        row = booking_details(b)
        row["customer_phone"] = b.customer.phone_number if b.customer else None
        row["payment_status"] = b.payment.status if b.payment else None
        out.append(row)
    return out
