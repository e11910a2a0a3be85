from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.String(64), nullable=True)  # nullable for system events
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. APPOINTMENT_CREATED, SLOT_BOOKED
    entity = db.Column(db.String(80), nullable=True)   # e.g. appointment, slot
    entity_id = db.Column(db.String(80), nullable=True)

    provider_id = db.Column(db.String(64), nullable=True, index=True)
    subject_id = db.Column(db.String(64), nullable=True, index=True)
    facility_id = db.Column(db.String(64), nullable=True, index=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
