from flask import Blueprint, jsonify, g, request, current_app

from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from models.business import Business
from security.rbac import require_roles
from services.bookings import booking_details
from utils.audit import log_event
from utils.roles import ADMIN
from utils.serializers import business_json, iso, to_json

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _limit():
    cap = current_app.config.get("ADMIN_LIST_LIMIT", 200)
    limit = request.args.get("limit", type=int) or cap
    return max(1, min(limit, cap))


@admin_bp.get("/bookings")
@require_roles(ADMIN)
def list_all_bookings():
    status = request.args.get("status")
    q = Booking.query
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.created_at.desc()).limit(_limit()).all()
    return jsonify(bookings=[to_json(booking_details(b)) for b in rows]), 200


@admin_bp.post("/businesses/<int:business_id>/approve")
@require_roles(ADMIN)
def approve_business(business_id: int):
    data = request.get_json(silent=True) or {}
    approved = data.get("approved", True)
    if not isinstance(approved, bool):
        return jsonify(error="approved must be a boolean"), 400

    business = Business.query.get(business_id)
    if not business:
        return jsonify(error="Business not found"), 404

    business.is_approved = approved
    db.session.commit()

    log_event("ADMIN_BUSINESS_APPROVAL", user_id=g.user.id, entity="business", entity_id=business.id,
              metadata={"approved": approved})
    return jsonify(business_json(business)), 200


@admin_bp.get("/audit-logs")
@require_roles(ADMIN)
def list_audit_logs():
    action = request.args.get("action")
    user_id = request.args.get("user_id", type=int)

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(_limit()).all()
    return jsonify([
        {
            "id": r.id,
            "created_at": iso(r.timestamp),
            "user_id": r.user_id,
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "ip": r.ip,
            "metadata": r.metadata_json,
        }
        for r in rows
    ]), 200
