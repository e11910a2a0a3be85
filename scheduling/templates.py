"""
Availability Template Store

One recurring weekly rule per (provider, day of week). Templates are only
created, updated or deleted explicitly; slot and appointment operations never
touch them.
"""

import logging
from datetime import datetime, date
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability_template import AvailabilityTemplate, DAYS_OF_WEEK
from scheduling.errors import NotFound, ValidationError
from scheduling.timeparse import parse_hhmm, require_provider_id

logger = logging.getLogger(__name__)


def normalize_day(day_of_week) -> str:
    day = (day_of_week or "").strip().lower() if isinstance(day_of_week, str) else ""
    if day not in DAYS_OF_WEEK:
        raise ValidationError(f"Invalid dayOfWeek. Must be one of: {', '.join(DAYS_OF_WEEK)}")
    return day


def day_name(day: date) -> str:
    return DAYS_OF_WEEK[day.weekday()]


def _validate_window(start_time: str, end_time: str, slot_duration_minutes) -> int:
    start = parse_hhmm(start_time, "startTime")
    end = parse_hhmm(end_time, "endTime")

    min_minutes = current_app.config.get("SLOT_DURATION_MIN_MINUTES", 5)
    max_minutes = current_app.config.get("SLOT_DURATION_MAX_MINUTES", 120)
    try:
        duration = int(slot_duration_minutes)
    except (TypeError, ValueError):
        raise ValidationError("slotDuration must be a whole number of minutes") from None
    if duration < min_minutes or duration > max_minutes:
        raise ValidationError(f"Slot duration must be between {min_minutes} and {max_minutes} minutes")

    if (end.hour * 60 + end.minute) <= (start.hour * 60 + start.minute):
        raise ValidationError("End time must be after start time")
    return duration


def _validate_capacity(max_bookings_per_slot) -> int:
    try:
        value = int(max_bookings_per_slot)
    except (TypeError, ValueError):
        raise ValidationError("maxAppointmentsPerSlot must be a positive integer") from None
    if value < 1:
        raise ValidationError("maxAppointmentsPerSlot must be a positive integer")
    return value


def _apply(template, start_time, end_time, duration, max_bookings_per_slot, is_active, facility_id):
    template.start_time = start_time.strip()
    template.end_time = end_time.strip()
    template.slot_duration_minutes = duration
    if is_active is not None:
        template.is_active = bool(is_active)
    if max_bookings_per_slot is not None:
        template.max_bookings_per_slot = _validate_capacity(max_bookings_per_slot)
    if facility_id:
        template.facility_id = facility_id
    template.updated_at = datetime.utcnow()


def upsert_template(
    provider_id: str,
    day_of_week: str,
    start_time: str,
    end_time: str,
    slot_duration_minutes,
    max_bookings_per_slot=None,
    is_active: Optional[bool] = None,
    facility_id: Optional[str] = None,
) -> AvailabilityTemplate:
    """
    Create or update the template for (provider_id, day_of_week).

    Omitted ``is_active`` / ``max_bookings_per_slot`` keep the stored values on
    update and fall back to active / the configured default on create. The row
    is flushed, not committed.
    """
    provider_id = require_provider_id(provider_id)
    day = normalize_day(day_of_week)
    duration = _validate_window(start_time, end_time, slot_duration_minutes)
    if max_bookings_per_slot is not None:
        _validate_capacity(max_bookings_per_slot)

    existing = AvailabilityTemplate.query.filter_by(provider_id=provider_id, day_of_week=day).first()
    if existing:
        _apply(existing, start_time, end_time, duration, max_bookings_per_slot, is_active, facility_id)
        db.session.flush()
        return existing

    template = AvailabilityTemplate(
        provider_id=provider_id,
        day_of_week=day,
        is_active=True if is_active is None else bool(is_active),
        max_bookings_per_slot=current_app.config.get("DEFAULT_MAX_BOOKINGS_PER_SLOT", 1),
        facility_id=facility_id,
    )
    _apply(template, start_time, end_time, duration, max_bookings_per_slot, None, None)
    try:
        with db.session.begin_nested():
            db.session.add(template)
    except IntegrityError:
        # Lost a concurrent create for the same day: last writer wins
        logger.info("Template for %s/%s created concurrently, updating instead", provider_id, day)
        winner = AvailabilityTemplate.query.filter_by(provider_id=provider_id, day_of_week=day).one()
        _apply(winner, start_time, end_time, duration, max_bookings_per_slot, is_active, facility_id)
        db.session.flush()
        return winner
    return template


def get_template(template_id: int) -> AvailabilityTemplate:
    template = db.session.get(AvailabilityTemplate, template_id)
    if not template:
        raise NotFound("Schedule not found")
    return template


def list_templates(provider_id: Optional[str] = None, facility_id: Optional[str] = None) -> List[AvailabilityTemplate]:
    q = AvailabilityTemplate.query
    if provider_id:
        q = q.filter_by(provider_id=provider_id)
    if facility_id:
        q = q.filter_by(facility_id=facility_id)
    return sorted(q.all(), key=lambda t: (t.provider_id, t.day_index))


def active_template_for(provider_id: str, day: date) -> Optional[AvailabilityTemplate]:
    return AvailabilityTemplate.query.filter_by(
        provider_id=provider_id,
        day_of_week=day_name(day),
        is_active=True,
    ).first()


def delete_template(template_id: int) -> None:
    template = get_template(template_id)
    db.session.delete(template)
    db.session.flush()
