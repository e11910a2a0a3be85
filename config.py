import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # SQLite database file stored beside the code as clinicslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "clinicslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Caller identity forwarded by the upstream auth gateway
    ACTOR_ID_HEADER = "X-Actor-Id"
    ACTOR_ROLE_HEADER = "X-Actor-Role"

    # Availability templates
    SLOT_DURATION_MIN_MINUTES = 5
    SLOT_DURATION_MAX_MINUTES = 120
    DEFAULT_MAX_BOOKINGS_PER_SLOT = int(os.getenv("DEFAULT_MAX_BOOKINGS_PER_SLOT", "1"))

    # Slot views and generation
    PROVIDER_SLOTS_DEFAULT_DAYS = 7     # doctor view: today + 7 days
    SLOT_GENERATION_MAX_DAYS = int(os.getenv("SLOT_GENERATION_MAX_DAYS", "92"))

    # Appointments
    PATIENT_MAX_AGE = 150
    APPOINTMENT_LIST_LIMIT = 100

    # Activity feed
    ACTIVITY_LIST_LIMIT = 50

    # Basic app settings
    DEBUG = False
