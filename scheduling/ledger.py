"""
Slot Ledger

Owns the materialized slots of each provider. ``Slot.booked_count`` is a
cache; the live appointments overlapping a slot are the source of truth, and
every capacity decision reconciles against them first.
"""

from datetime import timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy import func, or_, update

from models import db
from models.appointment import Appointment, LIVE_STATUSES
from models.slot import Slot
from scheduling.errors import NotFound, ValidationError
from scheduling.materializer import materialize_for_date
from scheduling.timeparse import parse_date, require_provider_id
from utils import clock


def reconcile(slot: Slot, exclude_appointment_id: Optional[int] = None) -> int:
    """Count live appointments whose scheduled time falls in [slot.start_time, slot.end_time)."""
    q = db.session.query(func.count(Appointment.id)).filter(
        Appointment.provider_id == slot.provider_id,
        Appointment.scheduled_at >= slot.start_time,
        Appointment.scheduled_at < slot.end_time,
        Appointment.status.in_(LIVE_STATUSES),
    )
    if exclude_appointment_id is not None:
        q = q.filter(Appointment.id != exclude_appointment_id)
    return q.scalar() or 0


def sync_booked_count(slot: Slot, occupancy: int) -> bool:
    """
    Compare-and-swap the cached counter to ``occupancy``, capped at capacity.
    Loses silently if a concurrent writer changed the counter first.
    """
    target = min(occupancy, slot.max_bookings)
    if slot.booked_count == target:
        return False
    result = db.session.execute(
        update(Slot)
        .where(Slot.id == slot.id, Slot.booked_count == slot.booked_count)
        .values(booked_count=target)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(slot)
    return result.rowcount == 1


def facility_filter(facility_id: Optional[str]):
    # Slots without a facility serve every facility
    return or_(Slot.facility_id == facility_id, Slot.facility_id.is_(None))


def get_slot(slot_id: int) -> Slot:
    slot = db.session.get(Slot, slot_id)
    if not slot:
        raise NotFound("Slot not found")
    return slot


def available_slots(provider_id: str, day, facility_id: Optional[str] = None) -> List[Slot]:
    """
    Bookable slots for ``day``: materialized, not blocked, not started, and
    with reconciled occupancy below capacity. Ordered by start time.
    """
    provider_id = require_provider_id(provider_id)
    day = parse_date(day)
    materialize_for_date(provider_id, day, facility_id)

    q = Slot.query.filter(
        Slot.provider_id == provider_id,
        Slot.date == day,
        Slot.is_blocked.is_(False),
        Slot.start_time >= clock.now(),
    )
    if facility_id:
        q = q.filter(facility_filter(facility_id))

    out = []
    for slot in q.order_by(Slot.start_time.asc()).all():
        occupancy = reconcile(slot)
        sync_booked_count(slot, occupancy)
        if occupancy < slot.max_bookings:
            out.append(slot)
    return out


def provider_slots(provider_id: str, day=None, start_date=None, end_date=None) -> List[Slot]:
    """
    Every materialized slot in the window, blocked and full ones included, with
    the cached counter brought back in line with live appointments.
    Defaults to today through the configured number of days ahead.
    """
    provider_id = require_provider_id(provider_id)
    if day is not None:
        first = last = parse_date(day)
    elif start_date is not None and end_date is not None:
        first = parse_date(start_date, "startDate")
        last = parse_date(end_date, "endDate")
        if first > last:
            raise ValidationError("startDate must be before endDate")
    else:
        first = clock.today()
        last = first + timedelta(days=current_app.config.get("PROVIDER_SLOTS_DEFAULT_DAYS", 7))

    slots = (
        Slot.query
        .filter(Slot.provider_id == provider_id, Slot.date >= first, Slot.date <= last)
        .order_by(Slot.start_time.asc())
        .all()
    )
    for slot in slots:
        sync_booked_count(slot, reconcile(slot))
    return slots


def _set_blocked(slot_id: int, blocked: bool) -> Slot:
    slot = get_slot(slot_id)
    slot.is_blocked = blocked
    db.session.flush()
    return slot


def block_slot(slot_id: int) -> Slot:
    """Mark the provider unavailable for this slot. Occupancy is left untouched."""
    return _set_blocked(slot_id, True)


def unblock_slot(slot_id: int) -> Slot:
    return _set_blocked(slot_id, False)
