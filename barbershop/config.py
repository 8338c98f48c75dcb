import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")

# Scheduling policy
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")
SLOT_INTERVAL_MINUTES = int(os.getenv("SLOT_INTERVAL_MINUTES", "30"))
MIN_ADVANCE_BOOKING_HOURS = int(os.getenv("MIN_ADVANCE_BOOKING_HOURS", "2"))
MAX_ADVANCE_BOOKING_DAYS = int(os.getenv("MAX_ADVANCE_BOOKING_DAYS", "30"))

# Insert the default services and business hours on startup
SEED_DEFAULT_DATA = os.getenv("SEED_DEFAULT_DATA", "true").lower() == "true"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Google Calendar OAuth Configuration
# When disabled, availability is computed from local appointments only and
# nothing is mirrored.
GOOGLE_CALENDAR_ENABLED = os.getenv("GOOGLE_CALENDAR_ENABLED", "false").lower() == "true"
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", f"{FRONTEND_URL}/auth/google-calendar")
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
GOOGLE_CALENDAR_TIMEOUT_SECONDS = float(os.getenv("GOOGLE_CALENDAR_TIMEOUT_SECONDS", "10"))
# Format: "channel:minutes,channel:minutes" (1 day e-mail + 1 hour popup by default)
GOOGLE_CALENDAR_REMINDERS = os.getenv("GOOGLE_CALENDAR_REMINDERS", "email:1440,popup:60")

# Rate limiting for public write endpoints (100 requests per 15 minutes per IP)
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))


def parse_reminder_offsets(raw: str) -> list[tuple[str, int]]:
    """Parse "email:1440,popup:60" into [("email", 1440), ("popup", 60)]"""
    offsets = []
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        channel, _, minutes = chunk.partition(":")
        try:
            offsets.append((channel.strip(), int(minutes)))
        except ValueError:
            raise ValueError(f"Invalid reminder offset: {chunk!r}") from None
    return offsets
