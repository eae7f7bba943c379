from datetime import datetime
from models.db import db

BOOKED = "booked"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no-show"

STATUSES = (BOOKED, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)
TERMINAL_STATUSES = (COMPLETED, CANCELLED, NO_SHOW)

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    timeslot_id = db.Column(db.Integer, db.ForeignKey("time_slots.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=BOOKED)
    customer_notes = db.Column(db.Text, nullable=True)

    # Captured from the service at booking time, never re-derived
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    # Stripe PaymentIntent id, set when payment is initialised
    payment_reference = db.Column(db.String(255), nullable=True, unique=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)

    customer = db.relationship("User")
    business = db.relationship("Business")
    service = db.relationship("Service")
    timeslot = db.relationship("TimeSlot")
    payment = db.relationship("Payment", uselist=False, back_populates="booking")

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('booked', 'confirmed', 'completed', 'cancelled', 'no-show')",
            name="ck_bookings_status",
        ),
    )
