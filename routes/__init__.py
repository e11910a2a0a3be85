from .health import health_bp
from .schedule import schedule_bp
from .appointments import appointments_bp
from .audit_logs import audit_bp
