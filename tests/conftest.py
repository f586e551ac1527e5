"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

import pytest

from booking_rules.engine import BookingEngine
from booking_rules.integrations.booking_store import InMemoryBookingStore
from booking_rules.integrations.notifications import InMemoryPublisher
from booking_rules.rules.validator import BookingContext, BookingStateMachine, BookingValidator
from booking_rules.schemas.availability_schema import (
    AvailabilityConfig,
    AvailabilityKind,
    DateRange,
    DaySchedule,
    Weekday,
)
from booking_rules.schemas.booking_schema import AddOns, BookingRequest, ResourceType
from booking_rules.schemas.cancellation_schema import CancellationPolicy
from booking_rules.schemas.pricing_schema import GroupDiscount, PricingMode, PricingRule

# Monday morning, fixed so date arithmetic in tests is deterministic
NOW = datetime(2026, 10, 19, 8, 0)
TODAY = NOW.date()


def next_weekday(start: date, weekday: Weekday) -> date:
    """First date strictly after ``start`` that falls on ``weekday``."""
    current = start + timedelta(days=1)
    while Weekday.from_date(current) != weekday:
        current += timedelta(days=1)
    return current


def monday_only_config() -> AvailabilityConfig:
    return AvailabilityConfig(
        kind=AvailabilityKind.WEEKLY_SCHEDULE,
        schedule={Weekday.MONDAY: DaySchedule(start=time(9, 0), end=time(17, 0))},
    )


def always_config() -> AvailabilityConfig:
    return AvailabilityConfig(kind=AvailabilityKind.ALWAYS)


def date_range_config(start: date, end: date) -> AvailabilityConfig:
    return AvailabilityConfig(
        kind=AvailabilityKind.DATE_RANGE,
        date_range=DateRange(start=start, end=end),
    )


def hourly_rule(base_price: str = "60", **kwargs) -> PricingRule:
    return PricingRule(mode=PricingMode.HOURLY, base_price=Decimal(base_price), **kwargs)


def per_person_rule(
    base_price: str = "25",
    min_participants: int = 1,
    max_participants: int = 30,
    discount: Optional[GroupDiscount] = None,
) -> PricingRule:
    return PricingRule(
        mode=PricingMode.PER_PERSON,
        base_price=Decimal(base_price),
        min_participants=min_participants,
        max_participants=max_participants,
        group_discount=discount,
    )


def make_request(
    booking_date: date,
    time_slot_id: Optional[str] = "10:00",
    resource_id: str = "leisure-kayak-tour",
    resource_type: ResourceType = ResourceType.LEISURE,
    duration_units: int = 1,
    participant_count: int = 1,
    insurance: bool = False,
    special_requests: str = "",
) -> BookingRequest:
    """Helper to create a BookingRequest with sensible defaults."""
    return BookingRequest(
        resource_id=resource_id,
        resource_type=resource_type,
        date=booking_date,
        time_slot_id=time_slot_id,
        duration_units=duration_units,
        participant_count=participant_count,
        add_ons=AddOns(insurance=insurance),
        special_requests=special_requests,
    )


def make_context(
    availability: Optional[AvailabilityConfig] = None,
    pricing: Optional[PricingRule] = None,
    existing_bookings: int = 0,
    max_bookings: int = 1,
    cancellation_policy: Optional[CancellationPolicy] = None,
) -> BookingContext:
    """Helper to create a BookingContext, open every day at 60/hour by default."""
    return BookingContext(
        availability=availability or always_config(),
        pricing=pricing or hourly_rule(),
        existing_bookings=existing_bookings,
        max_bookings=max_bookings,
        cancellation_policy=cancellation_policy,
    )


@pytest.fixture
def state_machine():
    return BookingStateMachine()


@pytest.fixture
def validator():
    return BookingValidator()


@pytest.fixture
def store():
    booking_store = InMemoryBookingStore()
    yield booking_store
    booking_store.reset()


@pytest.fixture
def publisher():
    pub = InMemoryPublisher()
    yield pub
    pub.reset()


@pytest.fixture
def engine(store, publisher):
    return BookingEngine(store=store, publisher=publisher)
