from datetime import datetime
from sqlalchemy.ext.hybrid import hybrid_property
from models.db import db

class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    provider_id = db.Column(db.String(64), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    is_blocked = db.Column(db.Boolean, default=False, nullable=False)  # provider marked unavailable
    booked_count = db.Column(db.Integer, default=0, nullable=False)  # cache, appointments are the truth
    max_bookings = db.Column(db.Integer, default=1, nullable=False)
    facility_id = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Prevent duplicate slots when the same day is materialized concurrently
        db.UniqueConstraint("provider_id", "start_time", name="uq_slot_provider_start"),
        db.Index("ix_slots_provider_date", "provider_id", "date"),
    )

    @hybrid_property
    def is_booked(self):
        return self.booked_count >= self.max_bookings

    @property
    def remaining(self) -> int:
        return max(0, self.max_bookings - self.booked_count)
