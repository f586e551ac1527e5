"""
Centralized configuration with environment variable overrides.

Booking horizon, slot grid, surcharge rates and notification naming are
configurable here. Nothing is hardcoded in the rule modules.
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_decimal(env_var: str, default: str) -> Decimal:
    """Parse a decimal from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValueError(
            f"Invalid decimal for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BookingConfig:
    """Availability window and slot grid settings."""

    horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "90")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "30")
    default_max_bookings: int = _safe_int("DEFAULT_MAX_BOOKINGS", "1")


@dataclass(frozen=True)
class PricingConfig:
    """Surcharge rates and currency defaults."""

    insurance_rate: Decimal = _safe_decimal("INSURANCE_RATE", "0.10")
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "EUR")


@dataclass(frozen=True)
class NotificationConfig:
    """Pub/sub channel naming for booking events."""

    channel_prefix: str = os.getenv("NOTIFICATION_CHANNEL_PREFIX", "private-user-")
    booking_confirmed_event: str = os.getenv("BOOKING_CONFIRMED_EVENT", "booking-confirmed")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    booking: BookingConfig = field(default_factory=BookingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {config.booking.horizon_days}"
        )
    if not 1 <= config.booking.slot_interval_minutes <= 1440:
        raise ValueError(
            "SLOT_INTERVAL_MINUTES must be between 1 and 1440, "
            f"got {config.booking.slot_interval_minutes}"
        )
    if config.booking.default_max_bookings < 1:
        raise ValueError(
            f"DEFAULT_MAX_BOOKINGS must be >= 1, got {config.booking.default_max_bookings}"
        )
    if not Decimal("0") <= config.pricing.insurance_rate <= Decimal("1"):
        raise ValueError(
            f"INSURANCE_RATE must be between 0 and 1, got {config.pricing.insurance_rate}"
        )
    if not config.pricing.default_currency.strip():
        raise ValueError("DEFAULT_CURRENCY must not be empty")
    if not config.notifications.booking_confirmed_event.strip():
        raise ValueError("BOOKING_CONFIRMED_EVENT must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded (horizon=%d days, insurance rate=%s)",
        config.booking.horizon_days, config.pricing.insurance_rate,
    )
    return config


# Singleton instance
settings = load_config()
