"""Cancellation policy evaluator: how much of a booking is refunded on cancellation."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from booking_rules.schemas.cancellation_schema import CancellationPolicy, PolicyName
from booking_rules.utils import round_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefundDecision:
    """Refund owed for a cancellation."""
    refund_percentage: Decimal
    eligible: bool

    def amount_of(self, total_paid: Decimal) -> Decimal:
        """Refund in money for a booking that cost ``total_paid``."""
        return round_money(total_paid * self.refund_percentage / Decimal("100"))


def refund_for(policy: CancellationPolicy, hours_before_start: float) -> RefundDecision:
    """Apply the policy's cutoff: full policy refund with enough notice, nothing otherwise."""
    eligible = hours_before_start >= policy.cutoff_hours
    refund = policy.refund_percentage if eligible else Decimal("0")
    logger.debug(
        "Refund under %s policy at %.2fh notice: %s%% (eligible=%s)",
        policy.name.value, hours_before_start, refund, eligible,
    )
    return RefundDecision(refund_percentage=refund, eligible=eligible)


def hours_until(start: datetime, now: datetime) -> float:
    """Hours from ``now`` until ``start``; negative once the booking has started."""
    return (start - now).total_seconds() / 3600


def policy_from_name(
    name: str,
    custom_refund_percentage: Optional[Decimal] = None,
    custom_cutoff_hours: Optional[float] = None,
) -> CancellationPolicy:
    """Build a policy from a stored name such as ``"flexible"`` or ``"custom"``.

    Raises:
        ValueError: If the name is unknown or custom terms are missing.
    """
    policy_name = PolicyName(name.lower().strip())
    if policy_name != PolicyName.CUSTOM:
        return CancellationPolicy.named(policy_name)
    if custom_refund_percentage is None or custom_cutoff_hours is None:
        raise ValueError("A custom policy needs a refund percentage and cutoff hours")
    return CancellationPolicy.custom(custom_refund_percentage, custom_cutoff_hours)
