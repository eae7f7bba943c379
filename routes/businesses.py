from flask import Blueprint, request, jsonify, g, current_app

from models import db
from models.business import Business
from models.service import Service
from security.rbac import require_roles
from services.bookings import list_business_bookings
from services.businesses import list_businesses
from services.pricing import update_service
from utils.audit import log_event
from utils.parsing import parse_date, parse_price, positive_int
from utils.roles import BUSINESS
from utils.serializers import business_json, service_json, to_json

business_bp = Blueprint("business", __name__, url_prefix="/businesses")


def _own_business():
    return Business.query.filter_by(owner_user_id=g.user.id).first()


# ---------- PUBLIC: discovery ----------
@business_bp.get("")
def browse_businesses():
    page = max(request.args.get("page", default=1, type=int) or 1, 1)
    max_limit = current_app.config.get("BUSINESSES_PAGE_SIZE_MAX", 50)
    limit = max(1, min(request.args.get("limit", default=10, type=int) or 10, max_limit))

    rows, total = list_businesses(
        category=request.args.get("category"),
        city=request.args.get("city"),
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return jsonify(
        businesses=[business_json(b) for b in rows],
        pagination={"page": page, "limit": limit, "total": total},
    ), 200


@business_bp.post("")
@require_roles(BUSINESS)
def create_business():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    category = (data.get("category") or "").strip()
    if not name or not category:
        return jsonify(error="name and category are required"), 400
    if _own_business():
        return jsonify(error="Business profile already exists"), 409

    business = Business(
        owner_user_id=g.user.id,
        name=name,
        category=category,
        description=(data.get("description") or "").strip() or None,
        address=(data.get("address") or "").strip() or None,
        city=(data.get("city") or "").strip() or None,
        contact_info=(data.get("contact_info") or "").strip() or None,
    )
    db.session.add(business)
    db.session.commit()

    log_event("BUSINESS_CREATE", user_id=g.user.id, entity="business", entity_id=business.id)
    return jsonify(business_json(business)), 201


@business_bp.get("/<int:business_id>")
def get_business(business_id: int):
    business = Business.query.get(business_id)
    if not business:
        return jsonify(error="Business not found"), 404
    services = (
        Service.query
        .filter_by(business_id=business.id, is_active=True)
        .order_by(Service.price.asc())
        .all()
    )
    out = business_json(business)
    out["services"] = [service_json(s) for s in services]
    return jsonify(out), 200


@business_bp.get("/my/profile")
@require_roles(BUSINESS)
def my_business():
    business = _own_business()
    if not business:
        return jsonify(error="Business profile not found"), 404
    # owners also see their deactivated services
    services = Service.query.filter_by(business_id=business.id).order_by(Service.id.asc()).all()
    out = business_json(business)
    out["services"] = [service_json(s) for s in services]
    return jsonify(out), 200


@business_bp.post("/services")
@require_roles(BUSINESS)
def create_service():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify(error="Service name is required"), 400
    price = parse_price(data.get("price"))
    duration = positive_int(data.get("duration"), "duration")

    business = _own_business()
    if not business:
        return jsonify(error="Business profile not found. Please create a business profile first."), 404

    service = Service(
        business_id=business.id,
        name=name,
        description=(data.get("description") or "").strip() or None,
        price=price,
        duration=duration,
    )
    db.session.add(service)
    db.session.commit()

    log_event("SERVICE_CREATE", user_id=g.user.id, entity="service", entity_id=service.id)
    return jsonify(service_json(service)), 201


@business_bp.patch("/services/<int:service_id>")
@require_roles(BUSINESS)
def patch_service(service_id: int):
    data = request.get_json(silent=True) or {}
    price = parse_price(data["price"]) if "price" in data else None
    name = (data.get("name") or "").strip() or None
    is_active = data.get("is_active")
    if is_active is not None and not isinstance(is_active, bool):
        return jsonify(error="is_active must be a boolean"), 400

    service = update_service(
        g.user.id,
        service_id,
        price=price,
        name=name,
        description=data.get("description"),
        is_active=is_active,
    )

    log_event("SERVICE_UPDATE", user_id=g.user.id, entity="service", entity_id=service.id,
              metadata={k: data[k] for k in ("price", "name", "is_active") if k in data})
    return jsonify(service_json(service)), 200


@business_bp.delete("/services/<int:service_id>")
@require_roles(BUSINESS)
def remove_service(service_id: int):
    # soft delete: bookings keep pointing at the row, free slots stop being listed
    service = update_service(g.user.id, service_id, is_active=False)

    log_event("SERVICE_DEACTIVATE", user_id=g.user.id, entity="service", entity_id=service.id)
    return jsonify(message="Service deleted successfully"), 200

@business_bp.get("/<int:business_id>/bookings")
@require_roles(BUSINESS)
def business_bookings(business_id: int):
    status = request.args.get("status")
    day = parse_date(request.args.get("date"))
    rows = list_business_bookings(g.user.id, business_id, status=status, date=day)
    return jsonify(bookings=[to_json(r) for r in rows]), 200
