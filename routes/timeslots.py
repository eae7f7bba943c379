from flask import Blueprint, request, jsonify, g

from security.rbac import require_roles
from services.slots import create_slot, create_slots_bulk, delete_slot, list_free_slots
from utils.audit import log_event
from utils.parsing import parse_date, parse_iso, positive_int
from utils.roles import BUSINESS
from utils.serializers import slot_json

timeslot_bp = Blueprint("timeslot", __name__, url_prefix="/timeslots")


# ---------- PUBLIC: free slots for a service ----------
@timeslot_bp.get("/<int:service_id>")
def free_slots(service_id: int):
    day = parse_date(request.args.get("date"))
    start_date = parse_date(request.args.get("start_date"), "start_date")
    end_date = parse_date(request.args.get("end_date"), "end_date")

    slots = list_free_slots(service_id, date=day, start_date=start_date, end_date=end_date)
    return jsonify(time_slots=[slot_json(s) for s in slots]), 200


# ---------- BUSINESS: publish availability ----------
@timeslot_bp.post("")
@require_roles(BUSINESS)
def publish_slot():
    data = request.get_json(silent=True) or {}
    service_id = positive_int(data.get("service_id"), "service ID")
    start_time = parse_iso(data.get("start_time"), "start_time")
    end_time = parse_iso(data.get("end_time"), "end_time")

    slot = create_slot(g.user.id, service_id, start_time, end_time)

    log_event("SLOT_CREATE", user_id=g.user.id, entity="slot", entity_id=slot.id)
    return jsonify(message="Time slot created successfully", time_slot=slot_json(slot)), 201


@timeslot_bp.post("/bulk")
@require_roles(BUSINESS)
def publish_slots_bulk():
    data = request.get_json(silent=True) or {}
    service_id = positive_int(data.get("service_id"), "service ID")
    raw_slots = data.get("slots")
    if not isinstance(raw_slots, list) or not raw_slots:
        return jsonify(error="At least one time slot is required"), 400

    windows = []
    for item in raw_slots:
        if not isinstance(item, dict):
            return jsonify(error="Each slot needs start_time and end_time"), 400
        windows.append((parse_iso(item.get("start_time"), "start_time"),
                        parse_iso(item.get("end_time"), "end_time")))

    slots = create_slots_bulk(g.user.id, service_id, windows)

    log_event("SLOT_BULK_CREATE", user_id=g.user.id, entity="service", entity_id=service_id,
              metadata={"count": len(slots)})
    return jsonify(message=f"{len(slots)} time slots created successfully",
                   time_slots=[slot_json(s) for s in slots]), 201


@timeslot_bp.delete("/<int:slot_id>")
@require_roles(BUSINESS)
def remove_slot(slot_id: int):
    delete_slot(g.user.id, slot_id)

    log_event("SLOT_DELETE", user_id=g.user.id, entity="slot", entity_id=slot_id)
    return jsonify(message="Time slot deleted successfully"), 200
