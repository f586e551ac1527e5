"""Shared utilities used across the booking rules engine."""

import uuid
from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to 2 decimal places, half-up.

    Examples:
        >>> round_money(Decimal("148.505"))
        Decimal('148.51')
        >>> round_money(Decimal("120"))
        Decimal('120.00')
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_slot_time(value: Optional[str]) -> Optional[time]:
    """Parse an ``HH:MM`` slot id into a time, or None if it is malformed.

    Examples:
        >>> parse_slot_time("09:30")
        datetime.time(9, 30)
        >>> parse_slot_time("half nine") is None
        True
    """
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def format_slot_time(value: time) -> str:
    """Format a time as an ``HH:MM`` slot id."""
    return value.strftime("%H:%M")


def canonical_slot_id(value: Optional[str]) -> Optional[str]:
    """Normalise a slot id to zero-padded ``HH:MM``, or None if it is malformed.

    Examples:
        >>> canonical_slot_id(" 9:00")
        '09:00'
    """
    parsed = parse_slot_time(value)
    return format_slot_time(parsed) if parsed is not None else None


def new_booking_ref() -> str:
    """Generate a short booking reference like ``BK-1A2B3C``."""
    return f"BK-{uuid.uuid4().hex[:6].upper()}"
