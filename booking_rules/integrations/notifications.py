"""
Booking notifications over the pub/sub service.

Events go to the recipient's private channel (``private-user-{id}``) under
the ``booking-confirmed`` event name. The in-memory publisher records what
would have been sent; production wires a real pub/sub client behind the
same interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from booking_rules.config import settings
from booking_rules.schemas.booking_schema import ConfirmedBooking
from booking_rules.schemas.notification_schema import BookingConfirmedEvent

logger = logging.getLogger(__name__)


def channel_for(recipient_id: str) -> str:
    """Private channel name for a user."""
    if not recipient_id or not recipient_id.strip():
        raise ValueError("recipient_id is required")
    return f"{settings.notifications.channel_prefix}{recipient_id.strip()}"


def build_confirmed_event(booking: ConfirmedBooking) -> BookingConfirmedEvent:
    """Reduce a confirmed booking to the broadcast payload."""
    return BookingConfirmedEvent(
        booking_id=booking.booking_id,
        resource_id=booking.resource_id,
        resource_type=booking.resource_type,
        total_price=booking.total_price,
        timestamp=booking.created_at,
    )


@dataclass(frozen=True)
class PublishedMessage:
    """A message as handed to the transport."""
    channel: str
    event: str
    payload: dict


class NotificationPublisher(ABC):
    """Interface for the pub/sub transport."""

    @abstractmethod
    def publish(self, channel: str, event: str, payload: dict) -> None:
        ...

    def booking_confirmed(self, recipient_id: str, booking: ConfirmedBooking) -> PublishedMessage:
        """Broadcast a booking-confirmed event to the recipient's channel."""
        message = PublishedMessage(
            channel=channel_for(recipient_id),
            event=settings.notifications.booking_confirmed_event,
            payload=build_confirmed_event(booking).model_dump(mode="json"),
        )
        self.publish(message.channel, message.event, message.payload)
        logger.info("Notified %s of booking %s", message.channel, booking.booking_id)
        return message


class InMemoryPublisher(NotificationPublisher):
    """Collects published messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[PublishedMessage] = []

    def publish(self, channel: str, event: str, payload: dict) -> None:
        self.sent.append(PublishedMessage(channel=channel, event=event, payload=payload))

    def reset(self) -> None:
        """Drop recorded messages. Used by test fixtures for isolation."""
        self.sent.clear()
