from flask import Blueprint, request, jsonify

from scheduling import lifecycle
from scheduling.errors import ValidationError

appointments_bp = Blueprint("appointments", __name__, url_prefix="/appointments")


def appointment_json(a):
    return {
        "id": a.id,
        "hospitalId": a.facility_id,
        "doctorId": a.provider_id,
        "patientId": a.subject_id,
        "scheduledAt": a.scheduled_at.isoformat(),
        "status": a.status,
        "patientName": a.patient_name,
        "age": a.age,
        "address": a.address,
        "issue": a.issue,
        "channel": a.channel,
        "slotId": a.slot_id,
        "cancellationReason": a.cancellation_reason,
        "rescheduleReason": a.reschedule_reason,
        "createdAt": a.created_at.isoformat() if a.created_at else None,
        "updatedAt": a.updated_at.isoformat() if a.updated_at else None,
    }


def _appointment_input(data: dict) -> dict:
    # Accept the patient app's field names alongside the canonical ones
    aliases = {"hospitalId": "facilityId", "doctorId": "providerId", "patientId": "subjectId"}
    out = dict(data)
    for alias, canonical in aliases.items():
        if out.get(canonical) in (None, "") and out.get(alias) not in (None, ""):
            out[canonical] = out[alias]
    return out


@appointments_bp.post("")
def create_appointment():
    data = _appointment_input(request.get_json(silent=True) or {})
    appointment = lifecycle.create_appointment(data)
    return jsonify(appointment_json(appointment)), 201


@appointments_bp.get("")
def list_appointments():
    rows = lifecycle.list_appointments(
        provider_id=request.args.get("doctorId"),
        subject_id=request.args.get("patientId"),
        facility_id=request.args.get("hospitalId"),
        status=request.args.get("status"),
    )
    return jsonify([appointment_json(a) for a in rows]), 200


@appointments_bp.get("/<int:appointment_id>")
def get_appointment(appointment_id: int):
    return jsonify(appointment_json(lifecycle.get_appointment(appointment_id))), 200


@appointments_bp.patch("/<int:appointment_id>/status")
def update_status(appointment_id: int):
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        raise ValidationError("status is required")
    appointment = lifecycle.update_status(
        appointment_id, data.get("status"), data.get("cancellationReason") or data.get("reason")
    )
    return jsonify(appointment_json(appointment)), 200


@appointments_bp.patch("/<int:appointment_id>/reschedule")
def reschedule(appointment_id: int):
    data = request.get_json(silent=True) or {}
    if not data.get("scheduledAt"):
        raise ValidationError("scheduledAt is required")
    appointment = lifecycle.reschedule(
        appointment_id, data.get("scheduledAt"), data.get("rescheduleReason") or data.get("reason")
    )
    return jsonify(appointment_json(appointment)), 200


@appointments_bp.patch("/<int:appointment_id>/cancel")
def cancel(appointment_id: int):
    data = request.get_json(silent=True) or {}
    appointment = lifecycle.cancel(appointment_id, data.get("cancellationReason"))
    return jsonify(appointment_json(appointment)), 200


@appointments_bp.delete("/<int:appointment_id>")
def delete_appointment(appointment_id: int):
    lifecycle.delete_appointment(appointment_id)
    return jsonify(message="Appointment deleted successfully", appointmentId=appointment_id), 200
