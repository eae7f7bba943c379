from flask import Blueprint, request, jsonify, g

from security.rbac import require_roles
from services.bookings import (
    cancel_booking,
    complete_booking,
    create_booking,
    get_booking_for_actor,
    list_customer_bookings,
)
from services.errors import SlotUnavailable
from utils.audit import log_event
from utils.auth_context import current_actor, login_required
from utils.roles import BUSINESS
from utils.serializers import payment_json, to_json

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


# ---------- CUSTOMERS: book slot (double-booking safe) ----------
@booking_bp.post("")
@login_required
def book_slot():
    data = request.get_json(silent=True) or {}
    for field in ("business_id", "service_id", "timeslot_id"):
        if data.get(field) in (None, ""):
            return jsonify(error=f"{field} required"), 400

    try:
        result = create_booking(
            g.user.id,
            data.get("business_id"),
            data.get("service_id"),
            data.get("timeslot_id"),
            notes=data.get("customer_notes"),
        )
    except SlotUnavailable:
        log_event("BOOKING_FAIL_SLOT_UNAVAILABLE", user_id=g.user.id, entity="slot",
                  entity_id=data.get("timeslot_id"))
        raise

    log_event("BOOKING_CREATE", user_id=g.user.id, entity="booking", entity_id=result.booking.id,
              metadata={"timeslot_id": result.booking.timeslot_id})
    return jsonify(
        message="Booking created successfully",
        booking=to_json(result.details),
        payment=payment_json(result.payment),
    ), 201


@booking_bp.get("/me")
@login_required
def my_bookings():
    status = request.args.get("status")
    rows = list_customer_bookings(g.user.id, status=status)
    return jsonify(bookings=[to_json(r) for r in rows]), 200


@booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    actor_id, actor_role = current_actor()
    details = get_booking_for_actor(booking_id, actor_id, actor_role)
    return jsonify(booking=to_json(details)), 200


# ---------- customer, owning business or admin ----------
@booking_bp.put("/<int:booking_id>/cancel")
@login_required
def cancel(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip()[:120] or None

    actor_id, actor_role = current_actor()
    booking = cancel_booking(booking_id, actor_id, actor_role, reason=reason)

    log_event("BOOKING_CANCEL", user_id=actor_id, entity="booking", entity_id=booking.id,
              metadata={"reason": reason, "role": actor_role})
    return jsonify(message="Booking cancelled successfully"), 200


@booking_bp.put("/<int:booking_id>/complete")
@require_roles(BUSINESS)
def complete(booking_id: int):
    booking = complete_booking(booking_id, g.user.id)

    log_event("BOOKING_COMPLETE", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(message="Booking marked as completed"), 200
