"""Events broadcast to the pub/sub notification service."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from booking_rules.schemas.booking_schema import ResourceType


class BookingConfirmedEvent(BaseModel):
    """Minimal payload announcing a confirmed booking."""

    booking_id: str
    resource_id: str
    resource_type: ResourceType
    total_price: Decimal
    timestamp: datetime
