# tests/conftest.py
from datetime import datetime

import pytest

from app import create_app
from config import Config
from models import db
from scheduling import templates
from utils import clock

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "ADMIN"}
DOCTOR_D1 = {"X-Actor-Id": "D1", "X-Actor-Role": "DOCTOR"}
PATIENT = {"X-Actor-Id": "P1", "X-Actor-Role": "PATIENT"}

# Saturday; 2024-06-03 is the following Monday
FROZEN_NOW = datetime(2024, 6, 1, 8, 0)


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "scheduling.db")
        LOG_LEVEL = "DEBUG"

    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    """An application context for calling the scheduling services directly."""
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the scheduling clock; returns a setter for moving it."""
    current = {"now": FROZEN_NOW}
    monkeypatch.setattr(clock, "now", lambda: current["now"])

    def move_to(value):
        current["now"] = value

    return move_to


@pytest.fixture
def make_template():
    def _make(provider_id="D1", day_of_week="monday", start_time="09:00", end_time="10:00",
              slot_duration_minutes=30, max_bookings_per_slot=1, **kwargs):
        template = templates.upsert_template(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
            max_bookings_per_slot=max_bookings_per_slot,
            **kwargs,
        )
        db.session.commit()
        return template
    return _make


@pytest.fixture
def appointment_payload():
    def _payload(scheduled_at="2024-06-03T09:00:00", provider_id="D1", subject_id="P1", **overrides):
        data = {
            "facilityId": "H1",
            "providerId": provider_id,
            "subjectId": subject_id,
            "scheduledAt": scheduled_at,
            "patientName": "Asha Rai",
            "age": 34,
            "address": "12 Lake Road",
            "issue": "Recurring headache",
        }
        data.update(overrides)
        return data
    return _payload
