"""
Slot Materializer

Expands a provider's weekly template into concrete Slot rows for a calendar
date. Safe to call any number of times for the same date: a slot is keyed by
(provider_id, start_time) and an existing row is always reused.

Algorithm:
    1. Find the active template for the weekday of ``day``; none means no slots
    2. Combine the template's wall-clock window with ``day``
    3. Step forward by slot_duration_minutes, dropping a trailing partial slot
    4. Insert missing candidates with ON CONFLICT DO NOTHING (unique key
       uq_slot_provider_start) so concurrent callers cannot duplicate rows
    5. Re-read and return the day's slots ordered by start time
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from models import db
from models.slot import Slot
from scheduling.errors import ValidationError
from scheduling.templates import active_template_for
from scheduling.timeparse import parse_date, parse_hhmm, require_provider_id

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
UPSERT_DIALECTS = ("sqlite", "postgresql")


def slot_windows(template, day: date):
    """Yield (start, end) datetimes for every whole slot the template fits into ``day``."""
    start_time = parse_hhmm(template.start_time, "startTime")
    end_time = parse_hhmm(template.end_time, "endTime")
    window_start = datetime.combine(day, start_time)
    window_end = datetime.combine(day, end_time)
    step = timedelta(minutes=template.slot_duration_minutes)

    current = window_start
    while current < window_end:
        slot_end = current + step
        if slot_end > window_end:
            break
        yield current, slot_end
        current = slot_end


def _insert_missing(rows: List[dict]) -> None:
    if not rows:
        return

    table = Slot.__table__
    dialect = db.session.get_bind().dialect.name
    if dialect in UPSERT_DIALECTS:
        dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = dialect_insert(table).on_conflict_do_nothing(index_elements=["provider_id", "start_time"])
        db.session.execute(stmt, rows)
        return

    for row in rows:
        try:
            with db.session.begin_nested():
                db.session.execute(insert(table), [row])
        except IntegrityError:
            logger.debug("Slot %s/%s already materialized", row["provider_id"], row["start_time"])


def materialize_for_date(provider_id: str, day, facility_id: Optional[str] = None) -> List[Slot]:
    provider_id = require_provider_id(provider_id)
    day = parse_date(day)

    template = active_template_for(provider_id, day)
    if not template:
        return []

    windows = list(slot_windows(template, day))
    if not windows:
        return []
    starts = [start for start, _ in windows]

    existing = {
        row.start_time
        for row in db.session.query(Slot.start_time).filter(
            Slot.provider_id == provider_id,
            Slot.start_time.in_(starts),
        )
    }

    now = datetime.utcnow()
    missing = [
        {
            "provider_id": provider_id,
            "date": day,
            "start_time": start,
            "end_time": end,
            "is_blocked": False,
            "booked_count": 0,
            "max_bookings": template.max_bookings_per_slot or 1,
            "facility_id": facility_id or template.facility_id,
            "created_at": now,
            "updated_at": now,
        }
        for start, end in windows
        if start not in existing
    ]
    _insert_missing(missing)
    logger.debug(
        "Materialized %s on %s: %d new, %d reused",
        provider_id, day.isoformat(), len(missing), len(windows) - len(missing),
    )

    return (
        Slot.query
        .filter(Slot.provider_id == provider_id, Slot.start_time.in_(starts))
        .order_by(Slot.start_time.asc())
        .all()
    )


def materialize_for_range(provider_id: str, start_date, end_date, facility_id: Optional[str] = None) -> List[Slot]:
    start_day = parse_date(start_date, "startDate")
    end_day = parse_date(end_date, "endDate")
    if start_day > end_day:
        raise ValidationError("startDate must be before endDate")

    max_days = current_app.config.get("SLOT_GENERATION_MAX_DAYS", 92)
    if (end_day - start_day).days + 1 > max_days:
        raise ValidationError(f"Date range cannot exceed {max_days} days")

    slots: List[Slot] = []
    current = start_day
    while current <= end_day:
        slots.extend(materialize_for_date(provider_id, current, facility_id))
        current += timedelta(days=1)
    return slots
