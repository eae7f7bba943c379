"""Payment record store.

One row per booking. Card processing lives at Stripe; this module only
persists what the booking flow and the webhook tell it.
"""
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import stripe
from flask import current_app
from sqlalchemy import update

from models import db
from models.booking import BOOKED, CANCELLED, CONFIRMED, Booking
from models.payment import COMPLETED, FAILED, PENDING, REFUNDED, Payment
from services.errors import BookingNotFound, PaymentConflict, PaymentProviderError

logger = logging.getLogger(__name__)


def to_minor_units(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_pending_payment(booking):
    """Insert the pending payment row inside the booking transaction."""
    payment = Payment(
        booking_id=booking.id,
        amount=booking.total_price,
        currency=current_app.config.get("DEFAULT_CURRENCY", "usd"),
        status=PENDING,
        provider="STRIPE",
    )
    db.session.add(payment)
    db.session.flush()
    return payment


def mark_refunded(booking_id):
    # Unconditional: there is no real refund processing behind this status
    db.session.execute(
        update(Payment)
        .where(Payment.booking_id == booking_id)
        .values(status=REFUNDED, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )


def _reusable_intent(payment_intent_id):
    """The booking's current intent unless Stripe has cancelled it.

    Success events are matched through ``booking.payment_reference``, so a
    live intent stays the referenced one.
    """
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except Exception:
        logger.exception("Could not retrieve PaymentIntent %s", payment_intent_id)
        raise PaymentProviderError() from None
    if intent["status"] == "canceled":
        return None
    return intent


def initialize_payment(booking_id, customer_id):
    """Create a Stripe PaymentIntent for the booking and remember its id."""
    booking = Booking.query.filter_by(id=booking_id, customer_id=customer_id).first()
    if not booking:
        raise BookingNotFound()
    if booking.status == CANCELLED:
        raise PaymentConflict("Booking is cancelled")
    if booking.payment is not None and booking.payment.status == COMPLETED:
        raise PaymentConflict("Booking already paid")

    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not stripe.api_key:
        raise PaymentProviderError("Stripe secret key missing (STRIPE_SECRET_KEY)")

    if booking.payment_reference:
        existing = _reusable_intent(booking.payment_reference)
        if existing is not None:
            logger.info("Reusing PaymentIntent %s for booking %s", existing["id"], booking.id)
            return {"client_secret": existing["client_secret"], "payment_intent_id": existing["id"]}

    currency = booking.payment.currency if booking.payment is not None else current_app.config.get("DEFAULT_CURRENCY", "usd")
    try:
        intent = stripe.PaymentIntent.create(
            amount=to_minor_units(booking.total_price),
            currency=currency,
            metadata={"booking_id": str(booking.id), "customer_id": str(customer_id)},
        )
    except Exception:
        logger.exception("PaymentIntent creation failed for booking %s", booking.id)
        raise PaymentProviderError() from None

    try:
        booking.payment_reference = intent["id"]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("PaymentIntent %s created for booking %s", intent["id"], booking.id)
    return {"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]}


def record_payment_succeeded(payment_intent_id, currency=None, amount_minor=None, method="stripe"):
    """Apply a "payment succeeded" event. Safe to call repeatedly.

    Returns ``(payment, changed)``; ``payment`` is None for an unknown intent.
    """
    try:
        booking = Booking.query.filter_by(payment_reference=payment_intent_id).with_for_update().first()
        if not booking:
            db.session.rollback()
            logger.warning("Payment succeeded for unknown intent %s", payment_intent_id)
            return None, False

        payment = Payment.query.filter_by(booking_id=booking.id).with_for_update().first()
        if payment is not None and payment.status == COMPLETED and payment.transaction_id == payment_intent_id:
            db.session.rollback()
            logger.info("Duplicate payment event for booking %s ignored", booking.id)
            return payment, False

        if booking.status == CANCELLED:
            db.session.rollback()
            logger.warning("Payment %s arrived for cancelled booking %s", payment_intent_id, booking.id)
            return payment, False

        if payment is None:
            payment = Payment(
                booking_id=booking.id,
                amount=booking.total_price,
                currency=(currency or current_app.config.get("DEFAULT_CURRENCY", "usd")).lower(),
                provider="STRIPE",
            )
            db.session.add(payment)

        if amount_minor is not None and amount_minor != to_minor_units(payment.amount):
            logger.warning(
                "Booking %s paid %s minor units, expected %s",
                booking.id, amount_minor, to_minor_units(payment.amount),
            )

        payment.status = COMPLETED
        payment.transaction_id = payment_intent_id
        payment.payment_method = method
        payment.paid_at = datetime.utcnow()
        if booking.status == BOOKED:
            booking.status = CONFIRMED

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Payment %s completed for booking %s", payment.id, booking.id)
    return payment, True


def record_payment_failed(payment_intent_id):
    try:
        booking = Booking.query.filter_by(payment_reference=payment_intent_id).first()
        payment = (
            Payment.query.filter_by(booking_id=booking.id).with_for_update().first()
            if booking else None
        )
        if payment is None or payment.status != PENDING:
            db.session.rollback()
            return False

        payment.status = FAILED
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.warning("Payment for booking %s failed (intent %s)", booking.id, payment_intent_id)
    return True
