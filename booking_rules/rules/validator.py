"""
Booking validator: runs a booking request through availability, pricing and
structural checks and either confirms or rejects it.

Each submission follows a fixed path through a small state graph:

    DRAFT --submitted--> VALIDATING --checks_passed--> CONFIRMED
                                    --check_failed---> REJECTED

Checks run in order and stop at the first failure. CONFIRMED and REJECTED
are terminal; a submission is never retried internally, the caller builds
a new request instead.

Usage:
    validator = BookingValidator()
    outcome = validator.validate(request, context)
    if outcome.confirmed:
        store.reserve(outcome.booking, slot_key, context.max_bookings)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from booking_rules.config import settings
from booking_rules.logging_context import get_request_logger
from booking_rules.rules.availability import SlotDecision, has_capacity, resolve
from booking_rules.rules.errors import BookingError, ErrorKind
from booking_rules.rules.pricing import PriceBreakdown, compute_total
from booking_rules.schemas.availability_schema import AvailabilityConfig, AvailabilityKind
from booking_rules.schemas.booking_schema import BookingRequest, ConfirmedBooking
from booking_rules.schemas.cancellation_schema import CancellationPolicy
from booking_rules.schemas.pricing_schema import PricingRule
from booking_rules.utils import canonical_slot_id, new_booking_ref, parse_slot_time

logger = get_request_logger(__name__)


class BookingState(str, Enum):
    """Lifecycle states of a booking submission."""
    DRAFT = "draft"
    VALIDATING = "validating"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class TransitionTrigger(str, Enum):
    """Events that move a submission between states."""
    SUBMITTED = "submitted"
    CHECKS_PASSED = "checks_passed"
    CHECK_FAILED = "check_failed"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: TransitionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingStateMachine:
    """Explicit transition table for one booking submission."""

    TRANSITIONS: list[Transition] = [
        Transition(BookingState.DRAFT, BookingState.VALIDATING, TransitionTrigger.SUBMITTED),
        Transition(BookingState.VALIDATING, BookingState.CONFIRMED, TransitionTrigger.CHECKS_PASSED),
        Transition(BookingState.VALIDATING, BookingState.REJECTED, TransitionTrigger.CHECK_FAILED),
    ]

    TERMINAL_STATES = frozenset({BookingState.CONFIRMED, BookingState.REJECTED})

    def __init__(self) -> None:
        self._current_state = BookingState.DRAFT
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.DRAFT, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    def transition(self, trigger: TransitionTrigger) -> BookingState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in self.TERMINAL_STATES


@dataclass
class BookingContext:
    """Resource data a validation needs, supplied by the caller's collaborators."""
    availability: AvailabilityConfig
    pricing: PricingRule
    existing_bookings: int = 0
    max_bookings: int = field(default_factory=lambda: settings.booking.default_max_bookings)
    cancellation_policy: Optional[CancellationPolicy] = None


@dataclass
class ValidationOutcome:
    """Terminal result of validating one submission."""
    state: BookingState
    booking: Optional[ConfirmedBooking] = None
    error: Optional[BookingError] = None
    breakdown: Optional[PriceBreakdown] = None
    trace: list[str] = field(default_factory=list)

    @property
    def confirmed(self) -> bool:
        return self.state == BookingState.CONFIRMED


class BookingSubmission:
    """A booking request paired with its own state machine. Single use."""

    def __init__(self, request: BookingRequest) -> None:
        self.request = request
        self.machine = BookingStateMachine()

    @property
    def state(self) -> BookingState:
        return self.machine.current_state


class BookingValidator:
    """
    Validates booking requests end-to-end before they are persisted.

    Holds no per-request state, so one instance can serve concurrent callers.
    The capacity check here is a pre-flight only: the persistence layer
    must re-verify it atomically when reserving.
    """

    def validate(
        self,
        request: BookingRequest,
        context: BookingContext,
        *,
        now: Optional[datetime] = None,
    ) -> ValidationOutcome:
        """Validate a fresh submission of ``request``."""
        return self.validate_submission(BookingSubmission(request), context, now=now)

    def validate_submission(
        self,
        submission: BookingSubmission,
        context: BookingContext,
        *,
        now: Optional[datetime] = None,
    ) -> ValidationOutcome:
        """
        Run the checks for a submission and move it to a terminal state.

        Raises:
            InvalidTransitionError: If the submission was already validated.
        """
        now = now or datetime.now()
        request = submission.request
        submission.machine.transition(TransitionTrigger.SUBMITTED)

        error = self._check_availability(request, context, now)
        breakdown: Optional[PriceBreakdown] = None
        if error is None:
            priced = compute_total(
                context.pricing, request.participant_count, request.duration_units, request.add_ons
            )
            error = priced.error
            breakdown = priced.breakdown
        if error is None:
            error = self._check_structure(request, context, now)

        if error is not None:
            submission.machine.transition(TransitionTrigger.CHECK_FAILED)
            logger.info(
                "Booking rejected for resource %s on %s: %s",
                request.resource_id, request.date.isoformat(), error,
            )
            return ValidationOutcome(
                state=submission.state,
                error=error,
                breakdown=breakdown,
                trace=submission.machine.get_state_trace(),
            )

        submission.machine.transition(TransitionTrigger.CHECKS_PASSED)
        booking = self._confirm(request, context, breakdown)
        logger.info(
            "Booking %s confirmed for resource %s on %s: %s %s",
            booking.booking_id, request.resource_id, request.date.isoformat(),
            booking.total_price, booking.currency,
        )
        return ValidationOutcome(
            state=submission.state,
            booking=booking,
            breakdown=breakdown,
            trace=submission.machine.get_state_trace(),
        )

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def _check_availability(
        self, request: BookingRequest, context: BookingContext, now: datetime
    ) -> Optional[BookingError]:
        decision = resolve(context.availability, request.date, request.time_slot_id, now=now)
        if decision == SlotDecision.OUT_OF_RANGE:
            return BookingError(
                kind=ErrorKind.OUT_OF_RANGE,
                message="The requested date is outside the booking window",
                field="date",
            )
        if decision == SlotDecision.UNAVAILABLE:
            return BookingError(
                kind=ErrorKind.SLOT_UNAVAILABLE,
                message="The selected date or time is not available",
                field="time_slot_id" if request.time_slot_id else "date",
            )
        if not has_capacity(context.existing_bookings, context.max_bookings):
            return BookingError(
                kind=ErrorKind.SLOT_UNAVAILABLE,
                message="This time slot is fully booked",
                field="time_slot_id",
            )
        return None

    def _check_structure(
        self, request: BookingRequest, context: BookingContext, now: datetime
    ) -> Optional[BookingError]:
        if not request.resource_id or not request.resource_id.strip():
            return _structural("Resource ID is required", "resource_id")
        if request.participant_count < 1:
            return _structural("Number of guests must be at least 1", "participant_count")
        if request.date < now.date():
            return _structural("Date cannot be in the past", "date")

        if context.availability.kind == AvailabilityKind.WEEKLY_SCHEDULE:
            slot_time = parse_slot_time(request.time_slot_id)
            if slot_time is None:
                return _structural("Please select a time slot", "time_slot_id")
            if datetime.combine(request.date, slot_time, tzinfo=now.tzinfo) < now:
                return _structural("The selected time has already passed", "time_slot_id")
        return None

    # ------------------------------------------------------------------ #
    # Confirmation
    # ------------------------------------------------------------------ #

    def _confirm(
        self,
        request: BookingRequest,
        context: BookingContext,
        breakdown: Optional[PriceBreakdown],
    ) -> ConfirmedBooking:
        if breakdown is None:
            raise ValueError("Cannot confirm a booking without a price")
        return ConfirmedBooking(
            booking_id=new_booking_ref(),
            resource_id=request.resource_id.strip(),
            resource_type=request.resource_type,
            date=request.date,
            time_slot_id=_stored_slot_id(request, context),
            duration_units=request.duration_units,
            participant_count=request.participant_count,
            add_ons=request.add_ons,
            special_requests=request.special_requests,
            base_price=breakdown.base,
            discount_amount=breakdown.discount_amount,
            insurance_cost=breakdown.insurance_cost,
            cleaning_fee=breakdown.cleaning_fee,
            total_price=breakdown.total,
            currency=breakdown.currency,
            cancellation_policy=context.cancellation_policy,
            created_at=datetime.now(timezone.utc),
        )


def _structural(message: str, field_name: str) -> BookingError:
    return BookingError(
        kind=ErrorKind.STRUCTURAL_VALIDATION_FAILURE,
        message=message,
        field=field_name,
    )


def _stored_slot_id(request: BookingRequest, context: BookingContext) -> Optional[str]:
    if context.availability.kind == AvailabilityKind.WEEKLY_SCHEDULE:
        return canonical_slot_id(request.time_slot_id)
    return request.time_slot_id
