from booking_rules.rules.availability import SlotDecision, TimeSlot, has_capacity, resolve
from booking_rules.rules.cancellation import RefundDecision, refund_for
from booking_rules.rules.errors import BookingError, ErrorKind
from booking_rules.rules.pricing import PriceBreakdown, PricingResult, compute_total
from booking_rules.rules.validator import (
    BookingContext,
    BookingState,
    BookingValidator,
    ValidationOutcome,
)

__all__ = [
    "resolve",
    "has_capacity",
    "SlotDecision",
    "TimeSlot",
    "compute_total",
    "PriceBreakdown",
    "PricingResult",
    "refund_for",
    "RefundDecision",
    "BookingValidator",
    "BookingContext",
    "BookingState",
    "ValidationOutcome",
    "BookingError",
    "ErrorKind",
]
