"""
Booking Coordinator

reserve() and release() adjust slot occupancy on behalf of appointments.
Both run inside the caller's transaction and never commit.

Over-booking is prevented by the database, not by a read-then-write:
    1. lock the slot row (SELECT ... FOR UPDATE; SQLite already holds the
       database write lock from BEGIN IMMEDIATE)
    2. reconcile the cached counter against live appointments (CAS)
    3. UPDATE slots SET booked_count = booked_count + 1
       WHERE id = :id AND NOT is_blocked AND booked_count < max_bookings
Zero affected rows means another request took the last place first.

There is no hold state: the counter is reconciled down to live appointments,
so a reservation only sticks when its appointment commits with it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update

from models import db
from models.slot import Slot
from scheduling.ledger import facility_filter, reconcile, sync_booked_count
from scheduling.materializer import materialize_for_date
from scheduling.timeparse import parse_instant, require_provider_id

logger = logging.getLogger(__name__)

RESERVED = "RESERVED"
UNAVAILABLE = "UNAVAILABLE"
FAILED = "FAILED"


@dataclass(frozen=True)
class Reservation:
    """Outcome of an advisory reservation attempt."""

    outcome: str
    slot: Optional[Slot] = None
    reason: Optional[str] = None

    @classmethod
    def reserved(cls, slot: Slot) -> "Reservation":
        return cls(RESERVED, slot=slot)

    @classmethod
    def unavailable(cls, reason: str = "No free slot at requested time") -> "Reservation":
        return cls(UNAVAILABLE, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "Reservation":
        return cls(FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.outcome == RESERVED

    @property
    def slot_id(self) -> Optional[int]:
        return self.slot.id if self.slot is not None else None


def covering_slot_query(provider_id: str, instant: datetime, facility_id: Optional[str] = None):
    """Unblocked slots covering ``instant``, row-locked until the caller commits."""
    q = Slot.query.filter(
        Slot.provider_id == provider_id,
        Slot.start_time <= instant,
        Slot.end_time > instant,
        Slot.is_blocked.is_(False),
    )
    if facility_id:
        q = q.filter(facility_filter(facility_id))
    # Latest start wins if a template change left overlapping slots
    return q.order_by(Slot.start_time.desc()).with_for_update().populate_existing()


def _covering_slot(provider_id: str, instant: datetime, facility_id: Optional[str]) -> Optional[Slot]:
    return covering_slot_query(provider_id, instant, facility_id).first()


def reserve(
    provider_id: str,
    instant,
    facility_id: Optional[str] = None,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Slot]:
    """
    Charge one place in the slot covering ``instant``.

    Returns the updated slot, or None when no unblocked slot covers the
    instant or it is already full. Raises ValidationError for malformed input.
    ``exclude_appointment_id`` keeps an appointment being moved from counting
    against its own new slot.
    """
    provider_id = require_provider_id(provider_id)
    instant = parse_instant(instant)

    slot = _covering_slot(provider_id, instant, facility_id)
    if slot is None:
        materialize_for_date(provider_id, instant.date(), facility_id)
        slot = _covering_slot(provider_id, instant, facility_id)
    if slot is None:
        return None

    occupancy = reconcile(slot, exclude_appointment_id)
    sync_booked_count(slot, occupancy)
    if occupancy >= slot.max_bookings:
        return None

    result = db.session.execute(
        update(Slot)
        .where(
            Slot.id == slot.id,
            Slot.is_blocked.is_(False),
            Slot.booked_count < Slot.max_bookings,
        )
        .values(booked_count=Slot.booked_count + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(slot)
    if result.rowcount != 1:
        return None
    return slot


def release(provider_id: str, instant) -> Optional[Slot]:
    """
    Give back one place in the slot starting exactly at ``instant``.
    Unknown slots and slots already at zero are left alone.
    """
    provider_id = require_provider_id(provider_id)
    instant = parse_instant(instant)

    slot = (
        Slot.query
        .filter_by(provider_id=provider_id, start_time=instant)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if slot is None:
        return None

    db.session.execute(
        update(Slot)
        .where(Slot.id == slot.id, Slot.booked_count > 0)
        .values(booked_count=Slot.booked_count - 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(slot)
    return slot


def try_reserve(
    provider_id: str,
    instant,
    facility_id: Optional[str] = None,
    exclude_appointment_id: Optional[int] = None,
) -> Reservation:
    """
    reserve() as a soft dependency: work happens in a savepoint, and any
    failure is rolled back and reported instead of raised.
    """
    try:
        with db.session.begin_nested():
            slot = reserve(provider_id, instant, facility_id, exclude_appointment_id)
    except Exception as exc:
        logger.warning("Slot booking check failed for %s at %s: %s", provider_id, instant, exc)
        return Reservation.failed(str(exc))

    if slot is None:
        logger.warning("Slot not available for provider %s at %s, booking without a slot", provider_id, instant)
        return Reservation.unavailable()
    return Reservation.reserved(slot)


def try_release(provider_id: str, instant) -> Optional[Slot]:
    """release() as a soft dependency; failures are logged and rolled back."""
    try:
        with db.session.begin_nested():
            return release(provider_id, instant)
    except Exception as exc:
        logger.warning("Failed to release slot for %s at %s: %s", provider_id, instant, exc)
        return None
