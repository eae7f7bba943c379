from datetime import date, datetime
from decimal import Decimal


def iso(value):
    return value.isoformat() if value else None


def money(value):
    return str(value) if value is not None else None


def to_json(row):
    """Make a booking/detail dict JSON friendly (ISO datetimes, string money)."""
    out = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date)):
            out[key] = value.isoformat()
        elif isinstance(value, Decimal):
            out[key] = str(value)
        else:
            out[key] = value
    return out


def slot_json(slot):
    return {
        "id": slot.id,
        "service_id": slot.service_id,
        "start_time": iso(slot.start_time),
        "end_time": iso(slot.end_time),
        "is_booked": slot.is_booked,
    }


def payment_json(payment):
    if payment is None:
        return None
    return {
        "id": payment.id,
        "booking_id": payment.booking_id,
        "amount": money(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "transaction_id": payment.transaction_id,
        "paid_at": iso(payment.paid_at),
        "created_at": iso(payment.created_at),
    }


def review_json(review):
    return {
        "id": review.id,
        "booking_id": review.booking_id,
        "business_id": review.business_id,
        "rating": review.rating,
        "comment": review.comment,
        "customer_name": review.customer.full_name if review.customer else None,
        "created_at": iso(review.created_at),
    }


def business_json(business):
    return {
        "id": business.id,
        "name": business.name,
        "description": business.description,
        "category": business.category,
        "city": business.city,
        "address": business.address,
        "is_approved": business.is_approved,
        "rating": money(business.rating),
        "total_reviews": business.total_reviews,
    }


def service_json(service):
    return {
        "id": service.id,
        "business_id": service.business_id,
        "name": service.name,
        "description": service.description,
        "price": money(service.price),
        "duration": service.duration,
        "is_active": service.is_active,
    }
