# tests/test_lifecycle.py
from datetime import date, datetime

import pytest

from models import db
from models.appointment import Appointment, CANCELLED, COMPLETED, CONFIRMED, PENDING
from models.slot import Slot
from scheduling import coordinator, ledger, lifecycle
from scheduling.errors import InvalidStateTransition, NotFound, ValidationError

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)


def _slot(slot_id):
    return db.session.get(Slot, slot_id)


def _booked(provider_id, start):
    return Slot.query.filter_by(provider_id=provider_id, start_time=start).one().booked_count


@pytest.fixture
def booked(ctx, frozen_now, make_template, appointment_payload):
    """A PENDING appointment holding the Monday 09:00 slot."""
    make_template()
    return lifecycle.create_appointment(appointment_payload())


def test_create_charges_slot(booked):
    assert booked.status == PENDING
    assert booked.channel == "PHYSICAL"
    assert booked.scheduled_at == datetime(2024, 6, 3, 9, 0)
    slot = _slot(booked.slot_id)
    assert slot.start_time == datetime(2024, 6, 3, 9, 0)
    assert slot.booked_count == 1


def test_create_without_free_slot_still_books(ctx, frozen_now, make_template, appointment_payload):
    make_template()
    lifecycle.create_appointment(appointment_payload(subject_id="P1"))

    second = lifecycle.create_appointment(appointment_payload(subject_id="P2"))
    outside = lifecycle.create_appointment(appointment_payload("2024-06-03T15:00:00", subject_id="P3"))

    assert second.id is not None and second.slot_id is None
    assert outside.slot_id is None
    assert Appointment.query.count() == 3
    assert _booked("D1", datetime(2024, 6, 3, 9, 0)) == 1


def test_create_survives_slot_failure(ctx, frozen_now, make_template, appointment_payload, monkeypatch):
    make_template()

    def broken(*args, **kwargs):
        raise RuntimeError("slot store unavailable")

    monkeypatch.setattr(coordinator, "reserve", broken)
    appt = lifecycle.create_appointment(appointment_payload())

    assert appt.id is not None
    assert appt.status == PENDING
    assert appt.slot_id is None


def test_create_accepts_video_channel_and_trims(ctx, frozen_now, appointment_payload):
    appt = lifecycle.create_appointment(appointment_payload(channel="video", patientName="  Asha Rai "))
    assert appt.channel == "VIDEO"
    assert appt.patient_name == "Asha Rai"


def test_create_allows_same_day_earlier_time(ctx, frozen_now, appointment_payload):
    frozen_now(datetime(2024, 6, 3, 18, 0))
    appt = lifecycle.create_appointment(appointment_payload("2024-06-03T09:00:00"))
    assert appt.id is not None


def test_create_rejects_past_day(ctx, frozen_now, appointment_payload):
    with pytest.raises(ValidationError, match="past"):
        lifecycle.create_appointment(appointment_payload("2024-05-31T09:00:00"))


@pytest.mark.parametrize("field", ["facilityId", "providerId", "subjectId", "scheduledAt",
                                   "patientName", "age", "address", "issue"])
def test_create_requires_fields(ctx, frozen_now, appointment_payload, field):
    payload = appointment_payload()
    payload.pop(field)
    with pytest.raises(ValidationError, match=field):
        lifecycle.create_appointment(payload)


@pytest.mark.parametrize("overrides", [
    {"age": -1},
    {"age": 151},
    {"age": "thirty"},
    {"channel": "PHONE"},
    {"patientName": "   "},
    {"scheduledAt": "next week"},
    {"providerId": "D 1"},
])
def test_create_rejects_invalid_values(ctx, frozen_now, appointment_payload, overrides):
    with pytest.raises(ValidationError):
        lifecycle.create_appointment(appointment_payload(**overrides))
    assert Appointment.query.count() == 0


def test_confirm_then_complete(booked):
    confirmed = lifecycle.confirm(booked.id)
    assert confirmed.status == CONFIRMED
    assert confirmed.confirmed_at is not None

    completed = lifecycle.complete(booked.id)
    assert completed.status == COMPLETED
    assert completed.completed_at is not None
    # a completed visit keeps its place
    assert _slot(booked.slot_id).booked_count == 1


def test_complete_requires_confirmation(booked):
    with pytest.raises(InvalidStateTransition) as err:
        lifecycle.complete(booked.id)
    assert err.value.current_status == PENDING
    assert err.value.requested_status == COMPLETED


def test_cancel_releases_slot_and_reopens_it(booked):
    assert [s.start_time.strftime("%H:%M") for s in ledger.available_slots("D1", MONDAY)] == ["09:30"]

    cancelled = lifecycle.cancel(booked.id, "  Feeling better ")

    assert cancelled.status == CANCELLED
    assert cancelled.cancellation_reason == "Feeling better"
    assert cancelled.cancelled_at is not None
    assert _slot(booked.slot_id).booked_count == 0
    assert [s.start_time.strftime("%H:%M") for s in ledger.available_slots("D1", MONDAY)] == ["09:00", "09:30"]


def test_cancel_confirmed_appointment(booked):
    lifecycle.confirm(booked.id)
    lifecycle.cancel(booked.id, "Doctor unavailable")
    assert _slot(booked.slot_id).booked_count == 0


@pytest.mark.parametrize("reason", [None, "", "   ", 42])
def test_cancel_requires_reason(booked, reason):
    with pytest.raises(ValidationError):
        lifecycle.cancel(booked.id, reason)
    assert lifecycle.get_appointment(booked.id).status == PENDING


def test_cancel_without_slot_leaves_slots_alone(ctx, frozen_now, make_template, appointment_payload):
    make_template()
    lifecycle.create_appointment(appointment_payload(subject_id="P1"))
    overflow = lifecycle.create_appointment(appointment_payload(subject_id="P2"))

    lifecycle.cancel(overflow.id, "Changed plans")

    assert _booked("D1", datetime(2024, 6, 3, 9, 0)) == 1


@pytest.mark.parametrize("terminal", ["complete", "cancel"])
def test_terminal_appointments_are_frozen(booked, terminal):
    if terminal == "complete":
        lifecycle.confirm(booked.id)
        lifecycle.complete(booked.id)
    else:
        lifecycle.cancel(booked.id, "No longer needed")

    with pytest.raises(InvalidStateTransition):
        lifecycle.confirm(booked.id)
    with pytest.raises(InvalidStateTransition):
        lifecycle.cancel(booked.id, "again")
    with pytest.raises(InvalidStateTransition):
        lifecycle.reschedule(booked.id, "2024-06-03T09:30:00")


def test_reschedule_moves_between_days(booked, make_template):
    make_template(day_of_week="tuesday", start_time="10:00", end_time="11:00")

    moved = lifecycle.reschedule(booked.id, "2024-06-04T10:00:00", "Clash at work")

    assert moved.status == PENDING
    assert moved.scheduled_at == datetime(2024, 6, 4, 10, 0)
    assert moved.reschedule_reason == "Clash at work"
    assert _booked("D1", datetime(2024, 6, 3, 9, 0)) == 0
    assert _slot(moved.slot_id).start_time == datetime(2024, 6, 4, 10, 0)
    assert _slot(moved.slot_id).booked_count == 1


def test_reschedule_within_same_slot(booked):
    moved = lifecycle.reschedule(booked.id, "2024-06-03T09:10:00")
    assert moved.slot_id == booked.slot_id
    assert _slot(moved.slot_id).booked_count == 1


def test_reschedule_into_full_slot_keeps_appointment(booked, appointment_payload):
    other = lifecycle.create_appointment(appointment_payload("2024-06-03T09:30:00", subject_id="P2"))

    moved = lifecycle.reschedule(other.id, "2024-06-03T09:00:00")

    assert moved.scheduled_at == datetime(2024, 6, 3, 9, 0)
    assert moved.slot_id is None
    assert _booked("D1", datetime(2024, 6, 3, 9, 0)) == 1
    assert _booked("D1", datetime(2024, 6, 3, 9, 30)) == 0


def test_reschedule_into_past_is_rejected(booked):
    with pytest.raises(ValidationError):
        lifecycle.reschedule(booked.id, "2024-05-30T09:00:00")
    assert _slot(booked.slot_id).booked_count == 1


def test_update_status_dispatches(booked):
    assert lifecycle.update_status(booked.id, "confirmed").status == CONFIRMED
    assert lifecycle.update_status(booked.id, "CANCELLED", "Travel").status == CANCELLED


@pytest.mark.parametrize("status", ["PENDING", "ARCHIVED", "", None])
def test_update_status_rejects_other_targets(booked, status):
    with pytest.raises(InvalidStateTransition):
        lifecycle.update_status(booked.id, status)


def test_update_status_cancel_needs_reason(booked):
    with pytest.raises(ValidationError):
        lifecycle.update_status(booked.id, "CANCELLED")


def test_delete_pending_releases_slot(booked):
    slot_id = booked.slot_id
    lifecycle.delete_appointment(booked.id)

    assert _slot(slot_id).booked_count == 0
    with pytest.raises(NotFound):
        lifecycle.get_appointment(booked.id)


def test_delete_cancelled(booked):
    lifecycle.cancel(booked.id, "No longer needed")
    lifecycle.delete_appointment(booked.id)
    assert Appointment.query.count() == 0


def test_delete_confirmed_is_rejected(booked):
    lifecycle.confirm(booked.id)
    with pytest.raises(InvalidStateTransition):
        lifecycle.delete_appointment(booked.id)


def test_unknown_appointment(ctx):
    with pytest.raises(NotFound):
        lifecycle.confirm(12345)
    with pytest.raises(NotFound):
        lifecycle.delete_appointment(12345)


def test_list_appointments_filters_and_orders(ctx, frozen_now, appointment_payload):
    lifecycle.create_appointment(appointment_payload("2024-06-05T09:00:00", subject_id="P1"))
    early = lifecycle.create_appointment(appointment_payload("2024-06-03T11:00:00", subject_id="P2"))
    lifecycle.create_appointment(appointment_payload("2024-06-04T09:00:00", provider_id="D2", subject_id="P1"))
    lifecycle.confirm(early.id)

    assert [a.subject_id for a in lifecycle.list_appointments(provider_id="D1")] == ["P2", "P1"]
    assert [a.provider_id for a in lifecycle.list_appointments(subject_id="P1")] == ["D2", "D1"]
    assert [a.id for a in lifecycle.list_appointments(status=CONFIRMED)] == [early.id]
    assert lifecycle.list_appointments(facility_id="H9") == []
