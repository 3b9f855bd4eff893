from flask import Blueprint, request, jsonify, g

from reservations import catalog, ledger
from routes.serializers import booking_to_dict, slot_to_dict
from utils.auth_context import login_required
from utils.audit import log_event
from utils.clock import utc_now

slots_bp = Blueprint("slots", __name__, url_prefix="/slots")


# ---------- OWNERS: register slots ----------
@slots_bp.post("")
@login_required
def create_slot():
    data = request.get_json(silent=True) or {}
    try:
        slot = catalog.create_slot(
            g.actor_id,
            data.get("number"),
            category=data.get("category"),
            rate_per_hour=data.get("rate_per_hour"),
            description=data.get("description"),
            now=utc_now(),
        )
    except ValueError as exc:
        return jsonify(error=str(exc), code="BadRequest"), 400

    log_event("SLOT_CREATE", actor_id=g.actor_id, entity="slot", entity_id=slot.id,
              metadata={"quote_required": slot.quote_required})
    return jsonify(slot_to_dict(slot)), 201


@slots_bp.get("")
@login_required
def list_slots():
    # ?owner=me lists the caller's own slots, inactive ones included
    mine = request.args.get("owner") == "me"
    rows = catalog.list_slots(owner_id=g.actor_id if mine else None, include_inactive=mine)
    return jsonify([slot_to_dict(s) for s in rows]), 200


@slots_bp.get("/<int:slot_id>")
@login_required
def get_slot(slot_id: int):
    return jsonify(slot_to_dict(ledger.get_slot(slot_id))), 200


# ---------- OWNERS: edit terms (blocked while bookings are live) ----------
@slots_bp.get("/<int:slot_id>/editable")
@login_required
def slot_editable(slot_id: int):
    count = ledger.check_slot_editable(slot_id, utc_now())
    return jsonify(slot_id=slot_id, active_bookings=count, editable=(count == 0)), 200


@slots_bp.patch("/<int:slot_id>")
@login_required
def update_slot(slot_id: int):
    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify(error="No changes supplied", code="BadRequest"), 400

    try:
        slot = catalog.update_slot_terms(slot_id, g.actor_id, data, utc_now())
    except ValueError as exc:
        return jsonify(error=str(exc), code="BadRequest"), 400

    log_event("SLOT_UPDATE", actor_id=g.actor_id, entity="slot", entity_id=slot.id,
              metadata={"fields": sorted(data)})
    return jsonify(slot_to_dict(slot)), 200


@slots_bp.post("/<int:slot_id>/deactivate")
@login_required
def deactivate_slot(slot_id: int):
    slot = catalog.set_slot_status(slot_id, g.actor_id, False, utc_now())

    log_event("SLOT_DEACTIVATE", actor_id=g.actor_id, entity="slot", entity_id=slot_id)
    return jsonify(slot_to_dict(slot)), 200


@slots_bp.post("/<int:slot_id>/activate")
@login_required
def activate_slot(slot_id: int):
    slot = catalog.set_slot_status(slot_id, g.actor_id, True, utc_now())

    log_event("SLOT_ACTIVATE", actor_id=g.actor_id, entity="slot", entity_id=slot_id)
    return jsonify(slot_to_dict(slot)), 200


# ---------- OWNERS: bookings on my slot ----------
@slots_bp.get("/<int:slot_id>/bookings")
@login_required
def slot_bookings(slot_id: int):
    now = utc_now()
    rows = ledger.bookings_for_slot(slot_id, g.actor_id)
    return jsonify([booking_to_dict(b, now) for b in rows]), 200
