"""Tests for the booking validator and its submission state machine."""

from datetime import time, timedelta
from decimal import Decimal

import pytest

from booking_rules.rules.errors import ErrorKind
from booking_rules.rules.validator import (
    BookingState,
    BookingSubmission,
    InvalidTransitionError,
    TransitionTrigger,
)
from booking_rules.schemas.availability_schema import (
    AvailabilityConfig,
    AvailabilityKind,
    DaySchedule,
    Weekday,
)
from booking_rules.schemas.cancellation_schema import CancellationPolicy
from booking_rules.schemas.pricing_schema import GroupDiscount
from tests.conftest import (
    NOW,
    TODAY,
    make_context,
    make_request,
    monday_only_config,
    next_weekday,
    per_person_rule,
)


class TestStateMachine:
    def test_starts_in_draft(self, state_machine):
        assert state_machine.current_state == BookingState.DRAFT
        assert not state_machine.is_terminal()

    def test_draft_only_accepts_submitted(self, state_machine):
        assert state_machine.get_valid_triggers() == [TransitionTrigger.SUBMITTED]

    def test_happy_path(self, state_machine):
        state_machine.transition(TransitionTrigger.SUBMITTED)
        new = state_machine.transition(TransitionTrigger.CHECKS_PASSED)
        assert new == BookingState.CONFIRMED
        assert state_machine.is_terminal()
        assert state_machine.get_state_trace() == ["draft", "validating", "confirmed"]

    def test_rejection_path(self, state_machine):
        state_machine.transition(TransitionTrigger.SUBMITTED)
        assert state_machine.transition(TransitionTrigger.CHECK_FAILED) == BookingState.REJECTED
        assert state_machine.is_terminal()

    def test_cannot_skip_validation(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.CHECKS_PASSED)

    def test_terminal_states_have_no_exits(self, state_machine):
        state_machine.transition(TransitionTrigger.SUBMITTED)
        state_machine.transition(TransitionTrigger.CHECK_FAILED)
        assert state_machine.get_valid_triggers() == []
        with pytest.raises(InvalidTransitionError, match="rejected"):
            state_machine.transition(TransitionTrigger.SUBMITTED)

    def test_history_records_triggers(self, state_machine):
        state_machine.transition(TransitionTrigger.SUBMITTED)
        history = state_machine.get_history()
        assert len(history) == 2
        assert history[0].trigger is None
        assert history[1].trigger == TransitionTrigger.SUBMITTED


class TestScenarios:
    def test_confirmed_with_discount_and_insurance(self, validator):
        discount = GroupDiscount(threshold_participants=5, percentage=Decimal("10"))
        context = make_context(pricing=per_person_rule("25", 1, 30, discount))
        request = make_request(TODAY + timedelta(days=3), participant_count=6, insurance=True)

        outcome = validator.validate(request, context, now=NOW)

        assert outcome.confirmed
        assert outcome.trace == ["draft", "validating", "confirmed"]
        assert outcome.error is None
        assert outcome.booking.booking_id.startswith("BK-")
        assert outcome.booking.total_price == Decimal("148.50")
        assert outcome.booking.discount_amount == Decimal("15")
        assert outcome.booking.insurance_cost == Decimal("13.5")

    def test_unscheduled_weekday_rejected(self, validator):
        tuesday = next_weekday(TODAY, Weekday.TUESDAY)
        context = make_context(availability=monday_only_config())
        outcome = validator.validate(make_request(tuesday, "10:00"), context, now=NOW)

        assert outcome.state == BookingState.REJECTED
        assert outcome.error.kind == ErrorKind.SLOT_UNAVAILABLE
        assert outcome.trace == ["draft", "validating", "rejected"]

    def test_beyond_horizon_rejected(self, validator):
        request = make_request(TODAY + timedelta(days=91))
        outcome = validator.validate(request, make_context(), now=NOW)
        assert outcome.error.kind == ErrorKind.OUT_OF_RANGE
        assert outcome.error.field == "date"


class TestCapacity:
    def test_full_slot_rejected(self, validator):
        context = make_context(existing_bookings=1, max_bookings=1)
        outcome = validator.validate(make_request(TODAY + timedelta(days=2)), context, now=NOW)
        assert outcome.error.kind == ErrorKind.SLOT_UNAVAILABLE
        assert "fully booked" in outcome.error.message

    def test_room_left_confirms(self, validator):
        context = make_context(existing_bookings=2, max_bookings=3)
        outcome = validator.validate(make_request(TODAY + timedelta(days=2)), context, now=NOW)
        assert outcome.confirmed


class TestPricingErrors:
    def test_participant_count_error_propagates(self, validator):
        context = make_context(pricing=per_person_rule("25", 2, 10))
        request = make_request(TODAY + timedelta(days=2), participant_count=1)
        outcome = validator.validate(request, context, now=NOW)
        assert outcome.state == BookingState.REJECTED
        assert outcome.error.kind == ErrorKind.INVALID_PARTICIPANT_COUNT
        assert outcome.booking is None

    def test_duration_error_propagates(self, validator):
        request = make_request(TODAY + timedelta(days=2), duration_units=0)
        outcome = validator.validate(request, make_context(), now=NOW)
        assert outcome.error.kind == ErrorKind.INVALID_DURATION


class TestStructuralChecks:
    def test_blank_resource_id(self, validator):
        request = make_request(TODAY + timedelta(days=2), resource_id="   ")
        outcome = validator.validate(request, make_context(), now=NOW)
        assert outcome.error.kind == ErrorKind.STRUCTURAL_VALIDATION_FAILURE
        assert outcome.error.field == "resource_id"

    def test_zero_participants(self, validator):
        request = make_request(TODAY + timedelta(days=2), participant_count=0)
        outcome = validator.validate(request, make_context(), now=NOW)
        assert outcome.error.kind == ErrorKind.STRUCTURAL_VALIDATION_FAILURE
        assert outcome.error.message == "Number of guests must be at least 1"

    def test_weekly_schedule_needs_slot(self, validator):
        monday = next_weekday(TODAY, Weekday.MONDAY)
        context = make_context(availability=monday_only_config())
        outcome = validator.validate(make_request(monday, time_slot_id=None), context, now=NOW)
        assert outcome.error.kind == ErrorKind.STRUCTURAL_VALIDATION_FAILURE
        assert outcome.error.field == "time_slot_id"

    def test_slot_already_started_today(self, validator):
        config = AvailabilityConfig(
            kind=AvailabilityKind.WEEKLY_SCHEDULE,
            schedule={Weekday.from_date(TODAY): DaySchedule(start=time(7, 0), end=time(12, 0))},
        )
        outcome = validator.validate(
            make_request(TODAY, "07:30"), make_context(availability=config), now=NOW
        )
        assert outcome.error.message == "The selected time has already passed"

    def test_whole_day_booking_needs_no_slot(self, validator):
        request = make_request(TODAY + timedelta(days=2), time_slot_id=None)
        assert validator.validate(request, make_context(), now=NOW).confirmed


class TestCheckOrdering:
    def test_availability_checked_before_pricing(self, validator):
        tuesday = next_weekday(TODAY, Weekday.TUESDAY)
        context = make_context(
            availability=monday_only_config(), pricing=per_person_rule("25", 2, 10)
        )
        outcome = validator.validate(make_request(tuesday, participant_count=1), context, now=NOW)
        assert outcome.error.kind == ErrorKind.SLOT_UNAVAILABLE
        assert outcome.breakdown is None

    def test_pricing_checked_before_structure(self, validator):
        context = make_context(pricing=per_person_rule("25", 2, 10))
        request = make_request(TODAY + timedelta(days=2), resource_id="", participant_count=1)
        outcome = validator.validate(request, context, now=NOW)
        assert outcome.error.kind == ErrorKind.INVALID_PARTICIPANT_COUNT

    def test_structural_failure_keeps_breakdown(self, validator):
        request = make_request(TODAY + timedelta(days=2), resource_id="")
        outcome = validator.validate(request, make_context(), now=NOW)
        assert outcome.breakdown is not None
        assert outcome.breakdown.total == Decimal("60.00")


class TestSubmission:
    def test_submission_cannot_be_validated_twice(self, validator):
        submission = BookingSubmission(make_request(TODAY + timedelta(days=2)))
        validator.validate_submission(submission, make_context(), now=NOW)
        assert submission.state == BookingState.CONFIRMED
        with pytest.raises(InvalidTransitionError):
            validator.validate_submission(submission, make_context(), now=NOW)

    def test_confirmed_booking_copies_request(self, validator):
        policy = CancellationPolicy.moderate()
        request = make_request(
            TODAY + timedelta(days=4), participant_count=3, special_requests="Window seat"
        )
        outcome = validator.validate(
            request, make_context(cancellation_policy=policy), now=NOW
        )
        booking = outcome.booking
        assert booking.resource_id == request.resource_id
        assert booking.participant_count == 3
        assert booking.special_requests == "Window seat"
        assert booking.cancellation_policy == policy

    def test_booking_ids_are_unique(self, validator):
        request = make_request(TODAY + timedelta(days=2))
        ids = {validator.validate(request, make_context(), now=NOW).booking.booking_id for _ in range(20)}
        assert len(ids) == 20
