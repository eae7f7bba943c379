import logging

import stripe
from flask import Blueprint, current_app, request, jsonify

from services.notifications import notify_booking_confirmed
from services.payments import record_payment_failed, record_payment_succeeded
from utils.audit import log_event

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except Exception:
        logger.warning("Rejected Stripe webhook with invalid signature")
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event["type"]
    intent = event["data"]["object"]

    if event_type == "payment_intent.succeeded":
        payment, changed = record_payment_succeeded(
            intent["id"],
            currency=intent["currency"],
            amount_minor=intent["amount"],
        )
        if changed:
            log_event("PAYMENT_PAID", user_id=None, entity="payment", entity_id=payment.id,
                      metadata={"payment_intent_id": intent["id"], "booking_id": payment.booking_id})
            notify_booking_confirmed(payment.booking_id)
    elif event_type == "payment_intent.payment_failed":
        if record_payment_failed(intent["id"]):
            log_event("PAYMENT_FAILED", user_id=None, entity="payment_intent", entity_id=intent["id"])
    else:
        logger.info("Ignoring Stripe event %s", event_type)

    return jsonify(received=True), 200
