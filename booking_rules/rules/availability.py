"""
Availability resolver: decides whether a date and slot are offered.

A request is checked against the booking window first (no retroactive
bookings, nothing past the horizon, optional notice period), then
dispatched on the configuration kind:

- ALWAYS           every date and slot is offered
- WEEKLY_SCHEDULE  the weekday must be scheduled and the slot inside [start, end)
- DATE_RANGE       the date must fall inside the inclusive range (whole-day booking)
- CUSTOM           arranged with the provider, every in-window date is offered

Capacity is a separate check so callers can combine it with fresh
booking counts from the persistence layer.

Usage:
    decision = resolve(config, date(2026, 11, 2), "10:00")
    if decision == SlotDecision.AVAILABLE and has_capacity(count, max_bookings):
        ...
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Callable, Mapping, Optional

from booking_rules.config import settings
from booking_rules.schemas.availability_schema import (
    AvailabilityConfig,
    AvailabilityKind,
    DaySchedule,
    Weekday,
)
from booking_rules.utils import canonical_slot_id, format_slot_time, parse_slot_time

logger = logging.getLogger(__name__)

# Slot id used for whole-day bookings (always, date range, custom)
WHOLE_DAY_SLOT_ID = "00:00"
WHOLE_DAY_END = time(23, 59)


class SlotDecision(str, Enum):
    """Outcome of an availability lookup."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class TimeSlot:
    """One bookable window within a day. The id is the start time as HH:MM."""
    id: str
    start_time: time
    end_time: time
    available: bool = True


def _slot_start(requested_date: date, slot_time: Optional[time], now: datetime) -> datetime:
    return datetime.combine(requested_date, slot_time or time.min, tzinfo=now.tzinfo)


def _resolve_always(config: AvailabilityConfig, requested_date: date,
                    requested_slot: Optional[str]) -> SlotDecision:
    return SlotDecision.AVAILABLE


def _resolve_weekly(config: AvailabilityConfig, requested_date: date,
                    requested_slot: Optional[str]) -> SlotDecision:
    day = config.day_schedule(Weekday.from_date(requested_date))
    if day is None:
        return SlotDecision.UNAVAILABLE
    if requested_slot is None:
        return SlotDecision.AVAILABLE
    slot_time = parse_slot_time(requested_slot)
    if slot_time is None:
        logger.debug("Malformed slot id '%s'", requested_slot)
        return SlotDecision.UNAVAILABLE
    return SlotDecision.AVAILABLE if day.contains(slot_time) else SlotDecision.UNAVAILABLE


def _resolve_date_range(config: AvailabilityConfig, requested_date: date,
                        requested_slot: Optional[str]) -> SlotDecision:
    if config.date_range is not None and config.date_range.contains(requested_date):
        return SlotDecision.AVAILABLE
    return SlotDecision.UNAVAILABLE


def _resolve_custom(config: AvailabilityConfig, requested_date: date,
                    requested_slot: Optional[str]) -> SlotDecision:
    return SlotDecision.AVAILABLE


_RESOLVERS: dict[AvailabilityKind, Callable[[AvailabilityConfig, date, Optional[str]], SlotDecision]] = {
    AvailabilityKind.ALWAYS: _resolve_always,
    AvailabilityKind.WEEKLY_SCHEDULE: _resolve_weekly,
    AvailabilityKind.DATE_RANGE: _resolve_date_range,
    AvailabilityKind.CUSTOM: _resolve_custom,
}


def resolve(
    config: AvailabilityConfig,
    requested_date: date,
    requested_slot: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    horizon_days: Optional[int] = None,
) -> SlotDecision:
    """
    Decide whether a date (and optionally a slot) is offered.

    Args:
        config: The resource's availability configuration.
        requested_date: Calendar date of the booking.
        requested_slot: Slot id (``HH:MM`` start time). Ignored for
            whole-day configurations; omitted means a day-level query.
        now: Reference time, defaults to the current local time.
        horizon_days: Override for the booking horizon.

    Returns:
        A SlotDecision. Never raises for malformed slot ids.
    """
    now = now or datetime.now()
    today = now.date()

    if requested_date < today:
        return SlotDecision.UNAVAILABLE

    horizon = horizon_days if horizon_days is not None else settings.booking.horizon_days
    if config.notice is not None:
        horizon = min(horizon, config.notice.max_advance_days)
    if requested_date > today + timedelta(days=horizon):
        return SlotDecision.OUT_OF_RANGE

    if config.notice is not None and config.notice.min_notice_hours:
        slot_time = None
        if config.kind == AvailabilityKind.WEEKLY_SCHEDULE:
            slot_time = parse_slot_time(requested_slot)
        start = _slot_start(requested_date, slot_time, now)
        if start < now + timedelta(hours=config.notice.min_notice_hours):
            return SlotDecision.OUT_OF_RANGE

    decision = _RESOLVERS[config.kind](config, requested_date, requested_slot)
    logger.debug(
        "Availability for %s %s (%s): %s",
        requested_date.isoformat(), requested_slot or "-", config.kind.value, decision.value,
    )
    return decision


def has_capacity(existing_bookings_for_slot: int, max_bookings: int) -> bool:
    """True iff another booking fits in the slot."""
    return existing_bookings_for_slot < max_bookings


def capacity_key(config: AvailabilityConfig, time_slot_id: Optional[str]) -> str:
    """Return the slot id bookings are counted against.

    Weekly schedules count per slot, every other kind counts per day.
    Slot ids are normalised, so ``"9:00"`` and ``"09:00"`` share a count.
    """
    if config.kind == AvailabilityKind.WEEKLY_SCHEDULE:
        slot_id = canonical_slot_id(time_slot_id)
        if slot_id is not None:
            return slot_id
    return WHOLE_DAY_SLOT_ID


def generate_slots(day: DaySchedule, interval_minutes: Optional[int] = None) -> list[TimeSlot]:
    """Split a day's opening hours into back-to-back slots that fit wholly inside it."""
    step = timedelta(minutes=interval_minutes or settings.booking.slot_interval_minutes)
    anchor = date.min
    cursor = datetime.combine(anchor, day.start)
    closing = datetime.combine(anchor, day.end)

    slots: list[TimeSlot] = []
    while cursor + step <= closing:
        slots.append(TimeSlot(
            id=format_slot_time(cursor.time()),
            start_time=cursor.time(),
            end_time=(cursor + step).time(),
        ))
        cursor += step
    return slots


def list_slots(
    config: AvailabilityConfig,
    requested_date: date,
    booking_counts: Mapping[str, int],
    max_bookings: int,
    *,
    now: Optional[datetime] = None,
    horizon_days: Optional[int] = None,
) -> list[TimeSlot]:
    """
    List the slots offered on a date with their bookable state.

    A slot is available when the resolver offers it, it has not started
    yet, and its booking count is below capacity. Weekly schedules yield
    the slot grid for the day; other kinds yield one whole-day slot.
    """
    now = now or datetime.now()

    if config.kind == AvailabilityKind.WEEKLY_SCHEDULE:
        day = config.day_schedule(Weekday.from_date(requested_date))
        if day is None:
            return []
        candidates = generate_slots(day)
    else:
        candidates = [TimeSlot(id=WHOLE_DAY_SLOT_ID, start_time=time.min, end_time=WHOLE_DAY_END)]

    slots = []
    for slot in candidates:
        decision = resolve(config, requested_date, slot.id, now=now, horizon_days=horizon_days)
        started = (
            config.kind == AvailabilityKind.WEEKLY_SCHEDULE
            and _slot_start(requested_date, slot.start_time, now) < now
        )
        available = (
            decision == SlotDecision.AVAILABLE
            and not started
            and has_capacity(booking_counts.get(slot.id, 0), max_bookings)
        )
        slots.append(replace(slot, available=available))
    return slots


def next_available_date(
    config: AvailabilityConfig,
    booking_counts: Mapping[date, Mapping[str, int]],
    max_bookings: int,
    *,
    after: Optional[date] = None,
    now: Optional[datetime] = None,
    horizon_days: Optional[int] = None,
) -> Optional[date]:
    """Return the first date inside the horizon with a bookable slot, or None."""
    now = now or datetime.now()
    today = now.date()
    horizon = horizon_days if horizon_days is not None else settings.booking.horizon_days

    current = max(after or today, today)
    last = today + timedelta(days=horizon)
    while current <= last:
        counts = booking_counts.get(current, {})
        slots = list_slots(config, current, counts, max_bookings, now=now, horizon_days=horizon)
        if any(slot.available for slot in slots):
            return current
        current += timedelta(days=1)
    return None
