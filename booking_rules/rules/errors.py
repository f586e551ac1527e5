"""Booking failure kinds and the structured error value returned by the rules."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Why a booking request was rejected."""
    SLOT_UNAVAILABLE = "slot_unavailable"
    OUT_OF_RANGE = "out_of_range"
    INVALID_PARTICIPANT_COUNT = "invalid_participant_count"
    INVALID_DURATION = "invalid_duration"
    INVALID_BASE_PRICE = "invalid_base_price"
    STRUCTURAL_VALIDATION_FAILURE = "structural_validation_failure"


@dataclass(frozen=True)
class BookingError:
    """Rejection reason with a user-facing message.

    Returned as a value by the rule functions, never raised.
    """
    kind: ErrorKind
    message: str
    field: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
