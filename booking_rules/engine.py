"""
Booking engine: validate, reserve and announce a booking in one call.

Validation is pure and advisory about capacity; the store re-checks
capacity atomically when the booking is inserted, and only a booking that
was actually stored is broadcast. Cancellation applies the booking's
refund policy and releases the slot.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from booking_rules.integrations.booking_store import BookingStore
from booking_rules.integrations.notifications import NotificationPublisher, PublishedMessage
from booking_rules.logging_context import get_request_logger, reset_request_id, set_request_id
from booking_rules.rules.availability import capacity_key
from booking_rules.rules.cancellation import RefundDecision, hours_until, refund_for
from booking_rules.rules.errors import BookingError, ErrorKind
from booking_rules.rules.pricing import PriceBreakdown
from booking_rules.rules.validator import BookingContext, BookingValidator
from booking_rules.schemas.booking_schema import BookingRequest, ConfirmedBooking
from booking_rules.schemas.cancellation_schema import CancellationPolicy
from booking_rules.utils import parse_slot_time

logger = get_request_logger(__name__)


@dataclass(frozen=True)
class BookingResult:
    """Outcome of a booking attempt after persistence and notification."""
    success: bool
    booking: Optional[ConfirmedBooking] = None
    error: Optional[BookingError] = None
    breakdown: Optional[PriceBreakdown] = None
    notification: Optional[PublishedMessage] = None

    @property
    def message(self) -> str:
        if self.booking is not None:
            return (
                f"Booking confirmed. Reference number: {self.booking.booking_id}. "
                f"Total {self.booking.total_price} {self.booking.currency}."
            )
        return self.error.message if self.error else "Booking failed."


@dataclass(frozen=True)
class CancellationResult:
    """Refund owed for a cancelled booking."""
    booking: ConfirmedBooking
    refund: RefundDecision
    refund_amount: Decimal


class BookingEngine:
    """Coordinates the validator with the persistence and notification collaborators."""

    def __init__(
        self,
        store: BookingStore,
        publisher: NotificationPublisher,
        validator: Optional[BookingValidator] = None,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._validator = validator or BookingValidator()

    def book(
        self,
        request: BookingRequest,
        context: BookingContext,
        recipient_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Validate a request, reserve capacity and notify the recipient.

        Returns:
            BookingResult with success=False and a SLOT_UNAVAILABLE error when
            the slot filled up between validation and reservation.

        Raises:
            ValueError: If recipient_id is blank.
        """
        if not recipient_id or not recipient_id.strip():
            raise ValueError("recipient_id is required")
        token = set_request_id(f"REQ-{uuid.uuid4().hex[:8]}")
        try:
            return self._book(request, context, recipient_id, now)
        finally:
            reset_request_id(token)

    def _book(
        self,
        request: BookingRequest,
        context: BookingContext,
        recipient_id: str,
        now: Optional[datetime],
    ) -> BookingResult:
        slot_key = capacity_key(context.availability, request.time_slot_id)
        held = self._store.count_active(request.resource_id, request.date, slot_key)
        context = replace(context, existing_bookings=max(context.existing_bookings, held))

        outcome = self._validator.validate(request, context, now=now)
        if not outcome.confirmed or outcome.booking is None:
            return BookingResult(success=False, error=outcome.error, breakdown=outcome.breakdown)

        booking = outcome.booking
        if not self._store.reserve(booking, slot_key, context.max_bookings):
            logger.info("Booking %s lost the slot at reservation time", booking.booking_id)
            return BookingResult(
                success=False,
                error=BookingError(
                    kind=ErrorKind.SLOT_UNAVAILABLE,
                    message="This time slot was just booked by someone else",
                    field="time_slot_id",
                ),
                breakdown=outcome.breakdown,
            )

        notification = self._publisher.booking_confirmed(recipient_id, booking)
        return BookingResult(
            success=True,
            booking=booking,
            breakdown=outcome.breakdown,
            notification=notification,
        )

    def cancel(self, booking_id: str, *, now: Optional[datetime] = None) -> CancellationResult:
        """
        Cancel a booking and work out the refund under its policy.

        Bookings stored without a policy fall back to the flexible policy.

        Raises:
            KeyError: If the booking does not exist.
            ValueError: If the booking is already cancelled.
        """
        now = now or datetime.now()
        booking = self._store.mark_cancelled(booking_id)

        start = datetime.combine(
            booking.date, parse_slot_time(booking.time_slot_id) or time.min, tzinfo=now.tzinfo
        )
        policy = booking.cancellation_policy or CancellationPolicy.flexible()
        refund = refund_for(policy, hours_until(start, now))

        amount = refund.amount_of(booking.total_price)
        logger.info(
            "Booking %s cancelled under %s policy: refund %s%% (%s %s)",
            booking_id, policy.name.value, refund.refund_percentage, amount, booking.currency,
        )
        return CancellationResult(booking=booking, refund=refund, refund_amount=amount)
