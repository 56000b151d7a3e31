import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV default: local SQLite file. Override with CAMPUS_PORTAL_DATABASE_URL.
DATABASE_URL = os.getenv(
    "CAMPUS_PORTAL_DATABASE_URL",
    f"sqlite:///{BASE_DIR}/campus_portal.db",
)

# Submission policy
MAX_ATTEMPTS = 4  # accepted submissions per (assignment, student)

# Countdown display
URGENT_THRESHOLD = timedelta(hours=1)  # less than this remaining -> urgent
COUNTDOWN_TICK_SECONDS = 1.0
COUNTDOWN_REFRESH_TICKS = 5  # re-read assignment and late request every N ticks
