from flask import Blueprint, request, jsonify, g

from services.payments import initialize_payment
from utils.audit import log_event
from utils.auth_context import login_required
from utils.parsing import positive_int

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


@payments_bp.post("/initialize")
@login_required
def start_payment():
    data = request.get_json(silent=True) or {}
    booking_id = positive_int(data.get("booking_id"), "booking ID")

    intent = initialize_payment(booking_id, g.user.id)

    log_event("PAYMENT_INTENT_CREATED", user_id=g.user.id, entity="booking", entity_id=booking_id,
              metadata={"payment_intent_id": intent["payment_intent_id"]})
    return jsonify(
        success=True,
        clientSecret=intent["client_secret"],
        paymentIntentId=intent["payment_intent_id"],
    ), 200
