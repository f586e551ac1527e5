"""
Booking persistence interface and an in-memory implementation.

In production the store is backed by the marketplace database, where
``reserve`` is a conditional insert guarded by a transaction so two
concurrent requests cannot both take the last place in a slot.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Optional

from booking_rules.schemas.booking_schema import BookingStatus, ConfirmedBooking

logger = logging.getLogger(__name__)


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def reserve(self, booking: ConfirmedBooking, slot_key: str, max_bookings: int) -> bool:
        """Insert the booking iff the slot still has capacity. Must be atomic."""
        ...

    @abstractmethod
    def get(self, booking_id: str) -> Optional[ConfirmedBooking]:
        """Return a booking by ID, or None if not found."""
        ...

    @abstractmethod
    def count_active(self, resource_id: str, on_date: date, slot_key: str) -> int:
        """Count non-cancelled bookings held against a slot."""
        ...

    @abstractmethod
    def mark_cancelled(self, booking_id: str) -> ConfirmedBooking:
        """Cancel a booking, releasing its capacity. Must be atomic.

        Raises:
            KeyError: If the booking does not exist.
            ValueError: If the booking is already cancelled.
        """
        ...


class InMemoryBookingStore(BookingStore):
    """Thread-safe store keeping bookings in a dict, for tests and local runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bookings: dict[str, ConfirmedBooking] = {}
        self._slot_keys: dict[str, tuple[str, date, str]] = {}

    def reserve(self, booking: ConfirmedBooking, slot_key: str, max_bookings: int) -> bool:
        key = (booking.resource_id, booking.date, slot_key)
        with self._lock:
            held = self._count_unlocked(*key)
            if held >= max_bookings:
                logger.info(
                    "Reservation refused for %s: slot %s on %s is full (%d/%d)",
                    booking.booking_id, slot_key, booking.date.isoformat(), held, max_bookings,
                )
                return False
            self._bookings[booking.booking_id] = booking
            self._slot_keys[booking.booking_id] = key
        logger.info("Booking stored: %s for %s on %s", booking.booking_id,
                    booking.resource_id, booking.date.isoformat())
        return True

    def get(self, booking_id: str) -> Optional[ConfirmedBooking]:
        with self._lock:
            return self._bookings.get(booking_id)

    def count_active(self, resource_id: str, on_date: date, slot_key: str) -> int:
        with self._lock:
            return self._count_unlocked(resource_id, on_date, slot_key)

    def mark_cancelled(self, booking_id: str) -> ConfirmedBooking:
        with self._lock:
            if booking_id not in self._bookings:
                raise KeyError(f"Booking {booking_id} not found")
            if self._bookings[booking_id].status == BookingStatus.CANCELLED:
                raise ValueError(f"Booking {booking_id} is already cancelled")
            cancelled = self._bookings[booking_id].model_copy(update={
                "status": BookingStatus.CANCELLED,
                "cancelled_at": datetime.now(timezone.utc),
            })
            self._bookings[booking_id] = cancelled
        logger.info("Booking cancelled: %s", booking_id)
        return cancelled

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._lock:
            self._bookings.clear()
            self._slot_keys.clear()

    def _count_unlocked(self, resource_id: str, on_date: date, slot_key: str) -> int:
        target = (resource_id, on_date, slot_key)
        return sum(
            1
            for booking_id, key in self._slot_keys.items()
            if key == target and self._bookings[booking_id].status == BookingStatus.CONFIRMED
        )
