from booking_rules.engine import BookingEngine, BookingResult, CancellationResult
from booking_rules.rules import (
    BookingContext,
    BookingError,
    BookingValidator,
    ErrorKind,
    SlotDecision,
    compute_total,
    has_capacity,
    refund_for,
    resolve,
)

__all__ = [
    "BookingEngine",
    "BookingResult",
    "CancellationResult",
    "BookingValidator",
    "BookingContext",
    "BookingError",
    "ErrorKind",
    "SlotDecision",
    "resolve",
    "has_capacity",
    "compute_total",
    "refund_for",
]
