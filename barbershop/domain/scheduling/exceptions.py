"""Scheduling errors - stable reason codes shared by the engine, store and API"""

from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "MALFORMED_INPUT"
    PAST_DATE = "PAST_DATE"
    TOO_SOON = "TOO_SOON"
    TOO_FAR_IN_ADVANCE = "TOO_FAR_IN_ADVANCE"
    OUTSIDE_BUSINESS_HOURS = "OUTSIDE_BUSINESS_HOURS"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    MIRROR_FAILED = "MIRROR_FAILED"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    CALENDAR_UNAVAILABLE = "CALENDAR_UNAVAILABLE"


STATUS_CODES = {
    ErrorKind.MALFORMED_INPUT: 400,
    ErrorKind.PAST_DATE: 400,
    ErrorKind.TOO_SOON: 400,
    ErrorKind.TOO_FAR_IN_ADVANCE: 400,
    ErrorKind.OUTSIDE_BUSINESS_HOURS: 400,
    ErrorKind.SLOT_CONFLICT: 409,
    ErrorKind.DUPLICATE_NAME: 409,
    ErrorKind.INVALID_STATUS_TRANSITION: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.CALENDAR_UNAVAILABLE: 503,
}

RETRYABLE = {
    ErrorKind.MIRROR_FAILED,
    ErrorKind.STORE_UNAVAILABLE,
    ErrorKind.CALENDAR_UNAVAILABLE,
}


class BookingError(Exception):
    """A rejected scheduling operation with a stable reason code"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES.get(self.kind, 400)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.kind.value, "retryable": self.retryable}


class CalendarError(Exception):
    """Raised by the Google Calendar adapter when a call fails or times out"""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out
