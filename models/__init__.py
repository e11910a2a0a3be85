from .db import db
from .audit_log import AuditLog
from .availability_template import AvailabilityTemplate
from .slot import Slot
from .appointment import Appointment
