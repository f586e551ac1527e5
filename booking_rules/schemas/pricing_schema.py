"""Pricing rule models consumed by the pricing calculator."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from booking_rules.config import settings


class PricingMode(str, Enum):
    PER_PERSON = "per-person"
    PER_GROUP = "per-group"
    PER_SESSION = "per-session"
    HOURLY = "hourly"
    FIXED = "fixed"
    SUBSCRIPTION = "subscription"
    PROJECT = "project"


class GroupDiscount(BaseModel):
    """Percentage off once the party reaches a participant threshold."""

    threshold_participants: int = Field(ge=2)
    percentage: Decimal = Field(gt=0, le=100)


class PricingRule(BaseModel):
    """Rate card for a bookable resource."""

    mode: PricingMode
    base_price: Decimal = Field(ge=0)
    min_participants: Optional[int] = None
    max_participants: Optional[int] = None
    group_discount: Optional[GroupDiscount] = None
    min_duration: Optional[int] = Field(default=None, ge=1)
    max_duration: Optional[int] = Field(default=None, ge=1)
    cleaning_fee: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = Field(default_factory=lambda: settings.pricing.default_currency)

    @model_validator(mode="after")
    def _check_limits(self) -> "PricingRule":
        if self.mode == PricingMode.PER_PERSON:
            if self.min_participants is None or self.max_participants is None:
                raise ValueError("Please set valid participant limits")
        if self.min_participants is not None and self.min_participants < 1:
            raise ValueError("Please set valid participant limits")
        if (
            self.min_participants is not None
            and self.max_participants is not None
            and self.max_participants < self.min_participants
        ):
            raise ValueError("Please set valid participant limits")
        if (
            self.min_duration is not None
            and self.max_duration is not None
            and self.max_duration < self.min_duration
        ):
            raise ValueError("Maximum duration must not be below minimum duration")
        return self
