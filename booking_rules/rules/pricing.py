"""
Pricing calculator: turns a rate card and party details into a price breakdown.

Order of operations is fixed: base amount for the pricing mode, then the
group discount, then the insurance surcharge on the discounted amount.
A flat cleaning fee (property listings) is added last, untouched by the
discount and the surcharge.
Only the final total is rounded (2 dp, half-up) so intermediate amounts
never accumulate rounding error.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from booking_rules.config import settings
from booking_rules.rules.errors import BookingError, ErrorKind
from booking_rules.schemas.booking_schema import AddOns
from booking_rules.schemas.pricing_schema import PricingMode, PricingRule
from booking_rules.utils import round_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

FLAT_MODES = frozenset({
    PricingMode.PER_GROUP,
    PricingMode.PER_SESSION,
    PricingMode.FIXED,
    PricingMode.SUBSCRIPTION,
    PricingMode.PROJECT,
})


@dataclass(frozen=True)
class PriceBreakdown:
    """Line items of a computed price. Only ``total`` is rounded."""
    base: Decimal
    discount_amount: Decimal
    discounted_base: Decimal
    insurance_cost: Decimal
    cleaning_fee: Decimal
    total: Decimal
    currency: str
    notes: tuple[str, ...] = ()

    @property
    def discount_applied(self) -> bool:
        return self.discount_amount > 0


@dataclass(frozen=True)
class PricingResult:
    """Either a breakdown or the reason pricing failed."""
    breakdown: Optional[PriceBreakdown] = None
    error: Optional[BookingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _fail(kind: ErrorKind, message: str, field_name: Optional[str] = None) -> PricingResult:
    logger.debug("Pricing failed: %s (%s)", kind.value, message)
    return PricingResult(error=BookingError(kind=kind, message=message, field=field_name))


def _participant_limits_message(rule: PricingRule) -> str:
    if rule.max_participants is None:
        return f"Participant count must be at least {rule.min_participants}"
    if rule.min_participants is None:
        return f"Participant count must be at most {rule.max_participants}"
    return (
        f"Participant count must be between {rule.min_participants} "
        f"and {rule.max_participants}"
    )


def _outside_limits(rule: PricingRule, participant_count: int) -> bool:
    if rule.min_participants is not None and participant_count < rule.min_participants:
        return True
    if rule.max_participants is not None and participant_count > rule.max_participants:
        return True
    return False


def compute_total(
    rule: PricingRule,
    participant_count: int,
    duration_units: int,
    add_ons: Optional[AddOns] = None,
) -> PricingResult:
    """
    Compute the price of a booking.

    Args:
        rule: The resource's pricing rule.
        participant_count: Number of people in the party.
        duration_units: Hours for hourly pricing, ignored otherwise.
        add_ons: Selected extras; insurance adds a surcharge.

    Returns:
        PricingResult with a breakdown, or an error of kind
        INVALID_BASE_PRICE, INVALID_PARTICIPANT_COUNT or INVALID_DURATION.
    """
    add_ons = add_ons or AddOns()
    notes: list[str] = []

    if rule.base_price <= 0:
        return _fail(ErrorKind.INVALID_BASE_PRICE, "Please set a valid base price", "base_price")

    if rule.mode == PricingMode.PER_PERSON:
        if _outside_limits(rule, participant_count):
            return _fail(
                ErrorKind.INVALID_PARTICIPANT_COUNT,
                _participant_limits_message(rule),
                "participant_count",
            )
        base = rule.base_price * participant_count
    elif rule.mode == PricingMode.HOURLY:
        if duration_units < 1:
            return _fail(ErrorKind.INVALID_DURATION, "Duration must be at least 1 hour", "duration_units")
        if rule.min_duration is not None and duration_units < rule.min_duration:
            return _fail(
                ErrorKind.INVALID_DURATION,
                f"Duration must be at least {rule.min_duration} hours",
                "duration_units",
            )
        if rule.max_duration is not None and duration_units > rule.max_duration:
            return _fail(
                ErrorKind.INVALID_DURATION,
                f"Duration cannot exceed {rule.max_duration} hours",
                "duration_units",
            )
        base = rule.base_price * duration_units
    elif rule.mode in FLAT_MODES:
        base = rule.base_price
        if _outside_limits(rule, participant_count):
            notes.append(_participant_limits_message(rule))
    else:
        raise ValueError(f"Unsupported pricing mode: {rule.mode}")

    discount_amount = ZERO
    discount = rule.group_discount
    if discount is not None and participant_count >= discount.threshold_participants:
        discount_amount = base * discount.percentage / HUNDRED
    discounted_base = base - discount_amount

    insurance_cost = ZERO
    if add_ons.insurance:
        insurance_cost = discounted_base * settings.pricing.insurance_rate

    breakdown = PriceBreakdown(
        base=base,
        discount_amount=discount_amount,
        discounted_base=discounted_base,
        insurance_cost=insurance_cost,
        cleaning_fee=rule.cleaning_fee,
        total=round_money(discounted_base + insurance_cost + rule.cleaning_fee),
        currency=rule.currency,
        notes=tuple(notes),
    )
    logger.debug(
        "Priced %s booking: base=%s discount=%s insurance=%s cleaning=%s total=%s %s",
        rule.mode.value, base, discount_amount, insurance_cost, rule.cleaning_fee,
        breakdown.total, rule.currency,
    )
    return PricingResult(breakdown=breakdown)
