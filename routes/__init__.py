from flask import Blueprint, jsonify

from .auth import auth_bp
from .businesses import business_bp
from .timeslots import timeslot_bp
from .booking import booking_bp
from .reviews import review_bp
from .payments import payments_bp
from .stripe_webhook import webhook_bp
from .admin import admin_bp

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    return jsonify(status="OK"), 200
