"""
Appointment Lifecycle

    PENDING ──confirm──> CONFIRMED ──complete──> COMPLETED
       │                     │
       └──────cancel─────────┴──────────────────> CANCELLED

Reschedule keeps the status and moves ``scheduled_at``.

Each transition is one commit: the slot adjustment and the appointment write
succeed or roll back together. Slot work is advisory: when it fails the
appointment still goes through, without a slot. Events are emitted after the
commit.
"""

import logging
from datetime import datetime
from typing import List, Optional

from flask import current_app

from models import db
from models.appointment import (
    Appointment,
    APPOINTMENT_STATUSES,
    CANCELLED,
    CHANNELS,
    COMPLETED,
    CONFIRMED,
    PENDING,
)
from models.slot import Slot
from scheduling import events
from scheduling.coordinator import try_release, try_reserve
from scheduling.errors import InvalidStateTransition, NotFound, ValidationError
from scheduling.timeparse import parse_instant, require_provider_id
from utils import clock

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("facilityId", "providerId", "subjectId", "scheduledAt", "patientName", "age", "address", "issue")

# status -> statuses it may move to
TRANSITIONS = {
    PENDING: (CONFIRMED, CANCELLED),
    CONFIRMED: (COMPLETED, CANCELLED),
    COMPLETED: (),
    CANCELLED: (),
}


def _clean_str(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def _require_today_or_future(instant: datetime, verb: str = "scheduled"):
    # Same-day bookings are allowed at any time of day
    if instant.date() < clock.today():
        raise ValidationError(
            f"Appointment cannot be {verb} in the past. Please select today or a future date."
        )


def _check_transition(appointment: Appointment, target: str):
    if target not in TRANSITIONS.get(appointment.status, ()):
        raise InvalidStateTransition(
            f"Cannot change appointment from {appointment.status} to {target}",
            current_status=appointment.status,
            requested_status=target,
        )


def _commit():
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _release_charged_slot(appointment: Appointment) -> Optional[Slot]:
    """Give back the slot this appointment holds, if any."""
    if appointment.slot_id is None:
        return None
    slot = db.session.get(Slot, appointment.slot_id)
    if slot is None:
        return None
    return try_release(appointment.provider_id, slot.start_time)


def get_appointment(appointment_id: int) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    return appointment


def list_appointments(
    provider_id: Optional[str] = None,
    subject_id: Optional[str] = None,
    facility_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    q = Appointment.query
    if provider_id:
        q = q.filter_by(provider_id=provider_id)
    if subject_id:
        q = q.filter_by(subject_id=subject_id)
    if facility_id:
        q = q.filter_by(facility_id=facility_id)
    if status:
        q = q.filter_by(status=status)
    limit = current_app.config.get("APPOINTMENT_LIST_LIMIT", 100)
    return q.order_by(Appointment.scheduled_at.asc()).limit(limit).all()


def create_appointment(data: dict) -> Appointment:
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    scheduled_at = parse_instant(data.get("scheduledAt"))
    _require_today_or_future(scheduled_at)

    max_age = current_app.config.get("PATIENT_MAX_AGE", 150)
    try:
        age = int(data.get("age"))
    except (TypeError, ValueError):
        age = -1
    if age < 0 or age > max_age:
        raise ValidationError(f"Invalid age. Must be between 0 and {max_age}")

    provider_id = require_provider_id(data.get("providerId"))
    facility_id = _clean_str(data, "facilityId", "Facility")
    subject_id = _clean_str(data, "subjectId", "Patient")
    patient_name = _clean_str(data, "patientName", "Patient name")
    address = _clean_str(data, "address", "Address")
    issue = _clean_str(data, "issue", "Issue description")

    channel = (data.get("channel") or "PHYSICAL").strip().upper()
    if channel not in CHANNELS:
        raise ValidationError(f"Invalid channel. Must be one of: {', '.join(CHANNELS)}")

    reservation = try_reserve(provider_id, scheduled_at, facility_id)

    appointment = Appointment(
        facility_id=facility_id,
        provider_id=provider_id,
        subject_id=subject_id,
        scheduled_at=scheduled_at,
        status=PENDING,
        patient_name=patient_name,
        age=age,
        address=address,
        issue=issue,
        channel=channel,
        slot_id=reservation.slot_id,
    )
    db.session.add(appointment)
    _commit()

    events.emit(events.appointment_created, appointment, slot=reservation.slot)
    if reservation.ok:
        events.emit(events.slot_booked, reservation.slot, appointment=appointment)
    return appointment


def confirm(appointment_id: int) -> Appointment:
    appointment = get_appointment(appointment_id)
    _check_transition(appointment, CONFIRMED)

    appointment.status = CONFIRMED
    appointment.confirmed_at = clock.now()
    _commit()

    events.emit(events.appointment_confirmed, appointment)
    return appointment


def complete(appointment_id: int) -> Appointment:
    # The slot stays consumed: a completed visit still used its capacity
    appointment = get_appointment(appointment_id)
    _check_transition(appointment, COMPLETED)

    appointment.status = COMPLETED
    appointment.completed_at = clock.now()
    _commit()

    events.emit(events.appointment_completed, appointment)
    return appointment


def cancel(appointment_id: int, reason) -> Appointment:
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("Cancellation reason is required")

    appointment = get_appointment(appointment_id)
    _check_transition(appointment, CANCELLED)

    released = _release_charged_slot(appointment)
    appointment.status = CANCELLED
    appointment.cancellation_reason = reason.strip()
    appointment.cancelled_at = clock.now()
    _commit()

    events.emit(events.appointment_cancelled, appointment, reason=appointment.cancellation_reason)
    if released is not None:
        events.emit(events.slot_released, released, appointment=appointment)
    return appointment


def reschedule(appointment_id: int, scheduled_at, reason: Optional[str] = None) -> Appointment:
    new_time = parse_instant(scheduled_at)
    _require_today_or_future(new_time, "rescheduled")

    appointment = get_appointment(appointment_id)
    if appointment.is_terminal:
        raise InvalidStateTransition(
            f"Cannot reschedule a {appointment.status} appointment",
            current_status=appointment.status,
        )

    previous_time = appointment.scheduled_at
    released = _release_charged_slot(appointment)
    reservation = try_reserve(
        appointment.provider_id,
        new_time,
        appointment.facility_id,
        exclude_appointment_id=appointment.id,
    )

    appointment.scheduled_at = new_time
    appointment.slot_id = reservation.slot_id
    if isinstance(reason, str) and reason.strip():
        appointment.reschedule_reason = reason.strip()
    _commit()

    events.emit(events.appointment_rescheduled, appointment, previous_time=previous_time, slot=reservation.slot)
    if released is not None:
        events.emit(events.slot_released, released, appointment=appointment)
    if reservation.ok:
        events.emit(events.slot_booked, reservation.slot, appointment=appointment)
    return appointment


def update_status(appointment_id: int, status, reason: Optional[str] = None) -> Appointment:
    target = (status or "").strip().upper() if isinstance(status, str) else ""
    if target == CONFIRMED:
        return confirm(appointment_id)
    if target == COMPLETED:
        return complete(appointment_id)
    if target == CANCELLED:
        return cancel(appointment_id, reason)

    appointment = get_appointment(appointment_id)
    if target in APPOINTMENT_STATUSES:
        message = f"Cannot change appointment from {appointment.status} to {target}"
    else:
        message = f"Invalid status. Must be one of: {', '.join(APPOINTMENT_STATUSES)}"
    raise InvalidStateTransition(message, current_status=appointment.status, requested_status=status)


def delete_appointment(appointment_id: int) -> None:
    appointment = get_appointment(appointment_id)
    if appointment.status not in (PENDING, CANCELLED):
        raise InvalidStateTransition(
            "Cannot delete appointment. Only PENDING or CANCELLED appointments can be deleted. "
            f"Current status: {appointment.status}",
            current_status=appointment.status,
        )

    released = _release_charged_slot(appointment) if appointment.status == PENDING else None
    deleted_id = appointment.id
    snapshot = {
        "provider_id": appointment.provider_id,
        "subject_id": appointment.subject_id,
        "facility_id": appointment.facility_id,
    }
    db.session.delete(appointment)
    _commit()

    events.emit(events.appointment_deleted, deleted_id, **snapshot)
    if released is not None:
        events.emit(events.slot_released, released, appointment=None)
