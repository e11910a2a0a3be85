from flask import Blueprint, request, jsonify, g

from models import db
from scheduling import ledger, materializer, templates
from scheduling.errors import ValidationError
from security.rbac import has_role, require_roles
from utils.audit import log_event

schedule_bp = Blueprint("schedule", __name__)


def template_json(t):
    return {
        "id": t.id,
        "doctorId": t.provider_id,
        "dayOfWeek": t.day_of_week,
        "startTime": t.start_time,
        "endTime": t.end_time,
        "slotDuration": t.slot_duration_minutes,
        "isActive": t.is_active,
        "maxAppointmentsPerSlot": t.max_bookings_per_slot,
        "hospitalId": t.facility_id,
        "updatedAt": t.updated_at.isoformat() if t.updated_at else None,
    }


def slot_json(s, full=False):
    out = {
        "slotId": s.id,
        "startTime": s.start_time.isoformat(),
        "endTime": s.end_time.isoformat(),
    }
    if full:
        out.update({
            "doctorId": s.provider_id,
            "date": s.date.isoformat(),
            "isBooked": s.is_booked,
            "isBlocked": s.is_blocked,
            "bookedCount": s.booked_count,
            "maxBookings": s.max_bookings,
            "remaining": s.remaining,
            "hospitalId": s.facility_id,
        })
    return out


def _forbid_foreign_provider(provider_id):
    # Doctors manage only their own schedule
    if has_role("DOCTOR") and g.actor.id != provider_id:
        return jsonify(error="Forbidden"), 403
    return None


# ---------- ADMIN/DOCTOR: recurring weekly templates ----------
@schedule_bp.post("/doctor-schedule")
@require_roles("ADMIN", "DOCTOR")
def upsert_schedule():
    data = request.get_json(silent=True) or {}
    missing = [f for f in ("doctorId", "dayOfWeek", "startTime", "endTime", "slotDuration") if data.get(f) in (None, "")]
    if missing:
        return jsonify(error=f"Missing required fields: {', '.join(missing)}"), 400

    denied = _forbid_foreign_provider(data.get("doctorId"))
    if denied:
        return denied

    template = templates.upsert_template(
        provider_id=data.get("doctorId"),
        day_of_week=data.get("dayOfWeek"),
        start_time=data.get("startTime"),
        end_time=data.get("endTime"),
        slot_duration_minutes=data.get("slotDuration"),
        max_bookings_per_slot=data.get("maxAppointmentsPerSlot"),
        is_active=data.get("isActive"),
        facility_id=data.get("hospitalId"),
    )
    db.session.commit()

    log_event("SCHEDULE_UPSERT", entity="schedule", entity_id=template.id,
              provider_id=template.provider_id, facility_id=template.facility_id)
    return jsonify(template_json(template)), 201


@schedule_bp.get("/doctor-schedule")
def list_schedules():
    rows = templates.list_templates(facility_id=request.args.get("hospitalId"))
    return jsonify([template_json(t) for t in rows]), 200


@schedule_bp.get("/doctor-schedule/<doctor_id>")
def provider_schedules(doctor_id: str):
    rows = templates.list_templates(provider_id=doctor_id)
    return jsonify([template_json(t) for t in rows]), 200


@schedule_bp.delete("/doctor-schedule/<int:template_id>")
@require_roles("ADMIN", "DOCTOR")
def delete_schedule(template_id: int):
    template = templates.get_template(template_id)
    denied = _forbid_foreign_provider(template.provider_id)
    if denied:
        return denied

    provider_id = template.provider_id
    templates.delete_template(template_id)
    db.session.commit()

    log_event("SCHEDULE_DELETE", entity="schedule", entity_id=template_id, provider_id=provider_id)
    return jsonify(message="Schedule deleted successfully"), 200


# ---------- PATIENTS: bookable slots ----------
@schedule_bp.get("/slots/available")
def available_slots():
    doctor_id = request.args.get("doctorId")
    date_str = request.args.get("date")
    if not doctor_id or not date_str:
        raise ValidationError("doctorId and date are required")

    slots = ledger.available_slots(doctor_id, date_str, request.args.get("hospitalId"))
    db.session.commit()  # persists materialized slots and reconciled counters
    return jsonify([slot_json(s) for s in slots]), 200


# ---------- ADMIN/DOCTOR: materialize a date range ----------
@schedule_bp.post("/slots/generate")
@require_roles("ADMIN", "DOCTOR")
def generate_slots():
    data = request.get_json(silent=True) or {}
    missing = [f for f in ("doctorId", "startDate", "endDate") if not data.get(f)]
    if missing:
        return jsonify(error=f"Missing required fields: {', '.join(missing)}"), 400

    denied = _forbid_foreign_provider(data.get("doctorId"))
    if denied:
        return denied

    slots = materializer.materialize_for_range(
        data.get("doctorId"), data.get("startDate"), data.get("endDate"), data.get("hospitalId")
    )
    db.session.commit()

    log_event("SLOTS_GENERATE", entity="slot", provider_id=data.get("doctorId"),
              metadata={"start": data.get("startDate"), "end": data.get("endDate"), "count": len(slots)})
    return jsonify(message="Slots generated successfully", count=len(slots),
                   slots=[slot_json(s, full=True) for s in slots]), 200


# ---------- ADMIN/DOCTOR: manual unavailability ----------
def _toggle_block(slot_id: int, blocked: bool):
    slot = ledger.get_slot(slot_id)
    denied = _forbid_foreign_provider(slot.provider_id)
    if denied:
        return denied

    slot = ledger.block_slot(slot_id) if blocked else ledger.unblock_slot(slot_id)
    db.session.commit()

    log_event("SLOT_BLOCK" if blocked else "SLOT_UNBLOCK", entity="slot", entity_id=slot.id,
              provider_id=slot.provider_id, facility_id=slot.facility_id)
    return jsonify(slot_json(slot, full=True)), 200


@schedule_bp.post("/slots/<int:slot_id>/block")
@require_roles("ADMIN", "DOCTOR")
def block_slot(slot_id: int):
    return _toggle_block(slot_id, True)


@schedule_bp.post("/slots/<int:slot_id>/unblock")
@require_roles("ADMIN", "DOCTOR")
def unblock_slot(slot_id: int):
    return _toggle_block(slot_id, False)


# ---------- DOCTOR app: all slots with occupancy ----------
@schedule_bp.get("/slots/doctor/<doctor_id>")
def doctor_slots(doctor_id: str):
    slots = ledger.provider_slots(
        doctor_id,
        day=request.args.get("date"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
    )
    db.session.commit()
    return jsonify([slot_json(s, full=True) for s in slots]), 200
