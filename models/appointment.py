from datetime import datetime
from models.db import db

PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

APPOINTMENT_STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED)
# Statuses that occupy slot capacity
LIVE_STATUSES = (PENDING, CONFIRMED)
TERMINAL_STATUSES = (COMPLETED, CANCELLED)

CHANNELS = ("PHYSICAL", "VIDEO")


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True)

    facility_id = db.Column(db.String(64), nullable=False, index=True)
    provider_id = db.Column(db.String(64), nullable=False, index=True)
    subject_id = db.Column(db.String(64), nullable=False, index=True)  # patient
    scheduled_at = db.Column(db.DateTime, nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    # status values: PENDING, CONFIRMED, COMPLETED, CANCELLED

    patient_name = db.Column(db.String(120), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    address = db.Column(db.String(255), nullable=False)
    issue = db.Column(db.Text, nullable=False)
    channel = db.Column(db.String(20), nullable=False, default="PHYSICAL")

    # Slot charged for this appointment, null when reservation failed softly
    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True, index=True)

    cancellation_reason = db.Column(db.String(255), nullable=True)
    reschedule_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index("ix_appointments_provider_time_status", "provider_id", "scheduled_at", "status"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
