"""Queue booking emails after the booking transaction has committed.

The Celery tasks live in ``tasks.email``; here they are only looked up by
name, so the booking core does not import the worker side. An enqueue
failure (broker down, unknown task) is logged and swallowed: the booking
already stands.
"""
import logging

from flask import current_app

logger = logging.getLogger(__name__)

SEND_BOOKING_CONFIRMED = "tasks.email.send_booking_confirmed"
SEND_BOOKING_CANCELLED = "tasks.email.send_booking_cancelled"


def enqueue_task(task_name, *args, **options):
    celery_app = current_app.extensions["celery"]
    return celery_app.tasks[task_name].apply_async(args=args, **options)


def _enqueue_booking_email(task_name, booking_id):
    try:
        enqueue_task(task_name, booking_id)
    except Exception:
        logger.exception("Could not queue %s for booking %s", task_name, booking_id)
        return False
    return True


def notify_booking_confirmed(booking_id):
    return _enqueue_booking_email(SEND_BOOKING_CONFIRMED, booking_id)


def notify_booking_cancelled(booking_id):
    return _enqueue_booking_email(SEND_BOOKING_CANCELLED, booking_id)
