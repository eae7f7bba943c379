"""Booking emails, sent by the Celery worker.

Tasks take the booking id and re-read the booking, so what goes out
reflects the committed row rather than a snapshot taken by the caller.
"""
import logging

from celery import shared_task

from models.booking import Booking
from services.bookings import booking_details
from services.notifications import SEND_BOOKING_CANCELLED, SEND_BOOKING_CONFIRMED
from utils.emailer import MISSING_RECIPIENT, NOT_CONFIGURED, send_email

logger = logging.getLogger(__name__)

# retrying cannot fix these
PERMANENT_ERRORS = {NOT_CONFIGURED, MISSING_RECIPIENT}


class EmailDeliveryError(Exception):
    pass


def _fmt(value):
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def confirmation_body(details):
    return (
        f"Dear {details.get('customer_name') or 'customer'},\n\n"
        "Your appointment has been successfully booked.\n\n"
        f"Business: {details.get('business_name')}\n"
        f"Service: {details.get('service_name')}\n"
        f"Date & Time: {_fmt(details.get('start_time'))} - {_fmt(details.get('end_time'))}\n"
        f"Total: {details.get('total_price')}\n\n"
        "If you need to cancel or reschedule, please log in to your account.\n"
    )


def cancellation_body(details):
    return (
        f"Dear {details.get('customer_name') or 'customer'},\n\n"
        "Your appointment has been cancelled.\n\n"
        f"Business: {details.get('business_name')}\n"
        f"Service: {details.get('service_name')}\n"
        f"Was scheduled for: {_fmt(details.get('start_time'))}\n\n"
        "You can book a new appointment anytime through our platform.\n"
    )


def _send_booking_email(task, booking_id, subject, render):
    booking = Booking.query.get(booking_id)
    if not booking:
        logger.error("Booking %s not found, %r email dropped", booking_id, subject)
        return {"status": "error", "booking_id": booking_id}

    details = booking_details(booking)
    try:
        sent, error = send_email(details.get("customer_email"), subject, render(details))
        if not sent and error not in PERMANENT_ERRORS:
            raise EmailDeliveryError(error)
    except Exception as exc:
        logger.warning("%r email for booking %s failed (attempt %d): %s",
                       subject, booking_id, task.request.retries + 1, exc)
        raise task.retry(exc=exc, countdown=60 * (2 ** task.request.retries))

    if not sent:
        logger.warning("%r email for booking %s not sent: %s", subject, booking_id, error)
    return {"status": "sent" if sent else "skipped", "booking_id": booking_id}


@shared_task(name=SEND_BOOKING_CONFIRMED, bind=True, max_retries=3, ignore_result=True)
def send_booking_confirmed(self, booking_id):
    return _send_booking_email(self, booking_id, "Booking Confirmation", confirmation_body)


@shared_task(name=SEND_BOOKING_CANCELLED, bind=True, max_retries=3, ignore_result=True)
def send_booking_cancelled(self, booking_id):
    return _send_booking_email(self, booking_id, "Booking Cancelled", cancellation_body)
