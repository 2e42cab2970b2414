"""Business errors raised by the reservation services."""
from enum import Enum


class ErrorCode(str, Enum):
    """Closed set of rejection codes returned to callers."""

    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    INVALID_TIME = "INVALID_TIME"
    COURT_NOT_FOUND = "COURT_NOT_FOUND"
    COURT_UNAVAILABLE = "COURT_UNAVAILABLE"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"
    CONFLICT_CHECK_TIMEOUT = "CONFLICT_CHECK_TIMEOUT"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    BOOKING_NOT_CANCELLABLE = "BOOKING_NOT_CANCELLABLE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    DUPLICATE_COURT = "DUPLICATE_COURT"


# code -> (HTTP status, retryable)
ERROR_RESPONSES = {
    ErrorCode.INVALID_TIME_RANGE: (400, False),
    ErrorCode.INVALID_TIME: (400, False),
    ErrorCode.COURT_NOT_FOUND: (404, False),
    ErrorCode.COURT_UNAVAILABLE: (409, False),
    ErrorCode.SLOT_UNAVAILABLE: (409, False),
    ErrorCode.CONFLICT_CHECK_TIMEOUT: (503, True),
    ErrorCode.BOOKING_NOT_FOUND: (404, False),
    ErrorCode.BOOKING_NOT_CANCELLABLE: (409, False),
    ErrorCode.UNAUTHENTICATED: (401, False),
    ErrorCode.FORBIDDEN: (403, False),
    ErrorCode.DUPLICATE_COURT: (409, False),
}


class ReservationError(Exception):
    """A validation or business rejection. Never leaves partial state behind."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return ERROR_RESPONSES[self.code][0]

    @property
    def retryable(self) -> bool:
        return ERROR_RESPONSES[self.code][1]


class PersistenceError(Exception):
    """The store failed (connection loss, aborted transaction). Safe to retry."""

    code = "PERSISTENCE_UNAVAILABLE"
    status_code = 503
    retryable = True
