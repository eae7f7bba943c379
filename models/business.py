from datetime import datetime
from decimal import Decimal
from models.db import db

class Business(db.Model):
    __tablename__ = "businesses"

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(100), nullable=True)
    category = db.Column(db.String(100), nullable=False)
    contact_info = db.Column(db.String(255), nullable=True)

    is_approved = db.Column(db.Boolean, default=False, nullable=False)

    # Derived from the reviews table, never edited directly
    rating = db.Column(db.Numeric(3, 2), default=Decimal("0.00"), nullable=False)
    total_reviews = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = db.relationship("User")
