import json
from flask import g, has_request_context, request
from models import db
from models.audit_log import AuditLog
from scheduling import events

def log_event(action: str, entity=None, entity_id=None, metadata=None,
              provider_id=None, subject_id=None, facility_id=None, actor_id=None):
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")
        actor = getattr(g, "actor", None)
        if actor_id is None and actor is not None:
            actor_id = actor.id

    row = AuditLog(
        actor_id=actor_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        provider_id=provider_id,
        subject_id=subject_id,
        facility_id=facility_id,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return row


def recent_activity(limit: int = 50, provider_id=None, facility_id=None):
    q = AuditLog.query
    if provider_id:
        q = q.filter_by(provider_id=provider_id)
    if facility_id:
        q = q.filter_by(facility_id=facility_id)
    return q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()


# ---------- activity feed receivers ----------

def _appointment_event(action, metadata_keys=()):
    def receiver(appointment, **payload):
        metadata = {"status": appointment.status, "scheduled_at": appointment.scheduled_at, "slot_id": appointment.slot_id}
        for key in metadata_keys:
            if payload.get(key) is not None:
                metadata[key] = payload[key]
        log_event(
            action,
            entity="appointment",
            entity_id=appointment.id,
            provider_id=appointment.provider_id,
            subject_id=appointment.subject_id,
            facility_id=appointment.facility_id,
            metadata=metadata,
        )
    return receiver


def _slot_event(action):
    def receiver(slot, appointment=None, **payload):
        log_event(
            action,
            entity="slot",
            entity_id=slot.id,
            provider_id=slot.provider_id,
            facility_id=slot.facility_id,
            metadata={
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "booked_count": slot.booked_count,
                "appointment_id": appointment.id if appointment is not None else None,
            },
        )
    return receiver


def _appointment_deleted(appointment_id, **snapshot):
    log_event(
        "APPOINTMENT_DELETED",
        entity="appointment",
        entity_id=appointment_id,
        provider_id=snapshot.get("provider_id"),
        subject_id=snapshot.get("subject_id"),
        facility_id=snapshot.get("facility_id"),
    )


ACTIVITY_RECEIVERS = [
    (events.appointment_created, _appointment_event("APPOINTMENT_CREATED")),
    (events.appointment_confirmed, _appointment_event("APPOINTMENT_CONFIRMED")),
    (events.appointment_completed, _appointment_event("APPOINTMENT_COMPLETED")),
    (events.appointment_cancelled, _appointment_event("APPOINTMENT_CANCELLED", ("reason",))),
    (events.appointment_rescheduled, _appointment_event("APPOINTMENT_RESCHEDULED", ("previous_time",))),
    (events.appointment_deleted, _appointment_deleted),
    (events.slot_booked, _slot_event("SLOT_BOOKED")),
    (events.slot_released, _slot_event("SLOT_RELEASED")),
]


def register_activity_recorders():
    # Strong references: the receivers are closures with no other owner
    for signal, receiver in ACTIVITY_RECEIVERS:
        signal.connect(receiver, weak=False)
