from flask import Blueprint, request, jsonify, g

from reservations import ledger
from reservations.errors import BookingError, SlotConflict
from routes.serializers import booking_to_dict
from utils.auth_context import login_required
from utils.audit import log_event
from utils.clock import utc_now, parse_iso

booking_bp = Blueprint("booking", __name__)


@booking_bp.app_errorhandler(BookingError)
def _booking_error(err: BookingError):
    return jsonify(err.to_dict()), err.http_status


def _reason(data):
    return (data.get("reason") or "").strip() or None


# ---------- RENTERS: book slot (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
@login_required
def create_booking():
    data = request.get_json(silent=True) or {}
    slot_id = data.get("slot_id")
    start_time = data.get("start_time")
    end_time = data.get("end_time")
    note = (data.get("note") or "").strip() or None

    if slot_id is None or not start_time or not end_time:
        return jsonify(error="slot_id, start_time, end_time are required", code="BadRequest"), 400

    try:
        slot_id = int(slot_id)
    except (TypeError, ValueError):
        return jsonify(error="slot_id must be an integer", code="BadRequest"), 400

    try:
        st = parse_iso(start_time)
        et = parse_iso(end_time)
    except ValueError:
        return jsonify(error="Invalid datetime format. Use ISO e.g. 2026-01-20T18:00:00", code="BadRequest"), 400

    now = utc_now()
    try:
        booking = ledger.create_booking(slot_id, g.actor_id, st, et, now, note=note)
    except SlotConflict:
        log_event("BOOKING_FAIL_SLOT_TAKEN", actor_id=g.actor_id, entity="slot", entity_id=slot_id,
                  metadata={"start_time": st.isoformat(), "end_time": et.isoformat()})
        raise

    log_event("BOOKING_CREATE", actor_id=g.actor_id, entity="booking", entity_id=booking.id,
              metadata={"slot_id": booking.slot_id, "quote_required": booking.quote_required})
    return jsonify(booking_to_dict(booking, now)), 201


# ---------- RENTERS: view my bookings ----------
@booking_bp.get("/bookings/me")
@login_required
def my_bookings():
    # optional: status filter (stored status)
    status = (request.args.get("status") or "").strip().upper() or None
    now = utc_now()
    rows = ledger.bookings_for_renter(g.actor_id, status=status)
    return jsonify([booking_to_dict(b, now) for b in rows]), 200


@booking_bp.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = ledger.get_booking(booking_id)
    # visible to the renter and, read-only, to the slot owner
    if g.actor_id not in (booking.renter_id, booking.slot.owner_id):
        return jsonify(error="Booking not found", code="BookingNotFound"), 404
    return jsonify(booking_to_dict(booking, utc_now())), 200


# ---------- OWNERS: approve a pending booking ----------
@booking_bp.post("/bookings/<int:booking_id>/confirm")
@login_required
def confirm_booking(booking_id: int):
    now = utc_now()
    booking = ledger.confirm_booking(booking_id, g.actor_id, now)

    log_event("BOOKING_CONFIRM", actor_id=g.actor_id, entity="booking", entity_id=booking.id)
    return jsonify(booking_to_dict(booking, now)), 200


# ---------- RENTERS: cancel booking (grace window) ----------
@booking_bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = _reason(data)

    now = utc_now()
    booking = ledger.cancel_booking(booking_id, g.actor_id, now, reason=reason)

    log_event("BOOKING_CANCEL", actor_id=g.actor_id, entity="booking", entity_id=booking.id,
              metadata={"reason": reason})
    return jsonify(booking_to_dict(booking, now)), 200


# ---------- OWNERS: withdraw a renter's booking ----------
@booking_bp.post("/bookings/<int:booking_id>/owner_cancel")
@login_required
def owner_cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = _reason(data)

    now = utc_now()
    booking = ledger.owner_cancel_booking(booking_id, g.actor_id, now, reason=reason)

    log_event("OWNER_BOOKING_CANCEL", actor_id=g.actor_id, entity="booking", entity_id=booking.id,
              metadata={"reason": booking.cancel_reason})
    return jsonify(booking_to_dict(booking, now)), 200
