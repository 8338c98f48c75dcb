import logging
import os
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    config,
    models,  # noqa: F401
    models_google_calendar,  # noqa: F401
)
from .database import Base, SessionLocal, engine
from .domain.catalog.router import hours_router as business_hours_router
from .domain.catalog.router import router as services_router
from .domain.contacts.router import router as contacts_router
from .domain.scheduling.availability_service import get_scheduling_policy
from .domain.scheduling.exceptions import BookingError, ErrorKind
from .domain.scheduling.locks import BookingLockRegistry
from .domain.scheduling.router_appointments import router as appointments_router
from .domain.scheduling.router_availability import router as availability_router
from .rate_limiter import create_rate_limiter
from .routes.google_calendar import router as google_calendar_router
from .security_headers import SecurityHeadersMiddleware
from .seed import seed_default_data
from .services.google_calendar_service import GoogleCalendarService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


def build_calendar() -> GoogleCalendarService:
    return GoogleCalendarService(
        session_factory=SessionLocal,
        client_id=config.GOOGLE_CLIENT_ID,
        client_secret=config.GOOGLE_CLIENT_SECRET,
        redirect_uri=config.GOOGLE_REDIRECT_URI,
        secret_key=config.SECRET_KEY,
        calendar_id=config.GOOGLE_CALENDAR_ID,
        timezone=config.BUSINESS_TIMEZONE,
        reminder_offsets=config.parse_reminder_offsets(config.GOOGLE_CALENDAR_REMINDERS),
        timeout_seconds=config.GOOGLE_CALENDAR_TIMEOUT_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables created successfully")

    if config.SEED_DEFAULT_DATA:
        db = SessionLocal()
        try:
            seed_default_data(db)
        finally:
            db.close()

    app.state.scheduling_policy = get_scheduling_policy()
    app.state.booking_locks = BookingLockRegistry()
    app.state.clock = None
    app.state.calendar = None

    if config.GOOGLE_CALENDAR_ENABLED:
        app.state.calendar = build_calendar()
        logger.info(f"📅 Google Calendar integration enabled (calendar: {config.GOOGLE_CALENDAR_ID})")
    else:
        logger.info("Google Calendar integration disabled - availability uses local bookings only")

    yield

    if app.state.calendar is not None:
        await app.state.calendar.aclose()
    logger.info("Application shutting down...")


app = FastAPI(title="Barbershop Booking API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_exception_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.kind.value}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path} - Database error: {exc}")
    error = BookingError(ErrorKind.STORE_UNAVAILABLE, "The booking store is temporarily unavailable")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/path validation failures share the MALFORMED_INPUT code"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "code": ErrorKind.MALFORMED_INPUT.value,
            "retryable": False,
        },
    )


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes - every /api endpoint shares one per-IP budget
rate_limit_api = create_rate_limiter(
    limit=config.RATE_LIMIT_REQUESTS, window_seconds=config.RATE_LIMIT_WINDOW_SECONDS, key_prefix="api"
)
api_router = APIRouter(prefix="/api", dependencies=[Depends(rate_limit_api)])
api_router.include_router(services_router)
api_router.include_router(business_hours_router)
api_router.include_router(availability_router)
api_router.include_router(appointments_router)
api_router.include_router(contacts_router)
api_router.include_router(google_calendar_router)
app.include_router(api_router)


@app.get("/")
def root():
    return {"message": "Barbershop Booking API is running"}


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "google_calendar_enabled": getattr(app.state, "calendar", None) is not None,
    }
