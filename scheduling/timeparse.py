import re
from datetime import date, datetime, time

from scheduling.errors import ValidationError

HHMM_RE = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")
PROVIDER_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:\-]{0,63}$")


def parse_hhmm(value, field_name: str = "time") -> time:
    if not isinstance(value, str) or not HHMM_RE.match(value.strip()):
        raise ValidationError(f"Invalid {field_name} format. Use HH:mm format (e.g., 09:00)")
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def parse_date(value, field_name: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field_name} is required")
    raw = value.strip()
    if "T" in raw:
        return parse_instant(raw, field_name).date()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}. Use YYYY-MM-DD") from None


def parse_instant(value, field_name: str = "scheduledAt") -> datetime:
    """
    Accepts a datetime or an ISO string ("2026-01-20T09:00:00").
    Offsets are dropped: instants are already-normalized wall-clock values.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field_name} is required")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}. Use ISO e.g. 2026-01-20T09:00:00") from None
    return parsed.replace(tzinfo=None)


def require_provider_id(value, field_name: str = "providerId") -> str:
    if not isinstance(value, str) or not PROVIDER_ID_RE.match(value.strip()):
        raise ValidationError(f"Invalid {field_name}")
    return value.strip()
