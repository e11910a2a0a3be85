from datetime import datetime
from models.db import db

DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class AvailabilityTemplate(db.Model):
    __tablename__ = "availability_templates"

    id = db.Column(db.Integer, primary_key=True)

    provider_id = db.Column(db.String(64), nullable=False, index=True)
    day_of_week = db.Column(db.String(10), nullable=False)  # monday..sunday

    # wall-clock "HH:MM"
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    slot_duration_minutes = db.Column(db.Integer, nullable=False, default=15)

    max_bookings_per_slot = db.Column(db.Integer, nullable=False, default=1)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    facility_id = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One weekly rule per provider and weekday
        db.UniqueConstraint("provider_id", "day_of_week", name="uq_template_provider_day"),
    )

    @property
    def day_index(self) -> int:
        return DAYS_OF_WEEK.index(self.day_of_week)
