"""Booking request and confirmed booking data models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from booking_rules.schemas.cancellation_schema import CancellationPolicy


class ResourceType(str, Enum):
    PROPERTY = "property"
    SERVICE = "service"
    LEISURE = "leisure"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class AddOns(BaseModel):
    """Optional extras selected alongside a booking."""
    insurance: bool = False


class BookingRequest(BaseModel):
    """Booking request as submitted by the caller, before validation."""
    resource_id: str
    resource_type: ResourceType
    date: date
    time_slot_id: Optional[str] = None
    duration_units: int = 1
    participant_count: int = 1
    add_ons: AddOns = Field(default_factory=AddOns)
    special_requests: str = ""


class ConfirmedBooking(BaseModel):
    """A validated booking ready for an atomic insert-with-capacity-check."""
    booking_id: str
    resource_id: str
    resource_type: ResourceType
    date: date
    time_slot_id: Optional[str] = None
    duration_units: int
    participant_count: int
    add_ons: AddOns
    special_requests: str = ""
    base_price: Decimal
    discount_amount: Decimal = Decimal("0")
    insurance_cost: Decimal = Decimal("0")
    cleaning_fee: Decimal = Decimal("0")
    total_price: Decimal
    currency: str
    cancellation_policy: Optional[CancellationPolicy] = None
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime
    cancelled_at: Optional[datetime] = None
