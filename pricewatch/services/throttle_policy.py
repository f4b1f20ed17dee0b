"""
Throttle Policy

Decides whether an alert may fire again based on its frequency class and
the time it last fired.

Throttle windows:
- once: never again after the first trigger
- minute: 60 seconds
- hourly: 3600 seconds
- daily: 86400 seconds

Unknown frequencies fall back to daily (the most conservative recurring
window) and are logged as data-quality warnings.
"""

from datetime import datetime, timedelta
from typing import Optional

from pricewatch.models.alert import AlertFrequency
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)

THROTTLE_WINDOWS = {
    AlertFrequency.MINUTE.value: timedelta(seconds=60),
    AlertFrequency.HOURLY.value: timedelta(seconds=3600),
    AlertFrequency.DAILY.value: timedelta(seconds=86400),
}


def normalize_frequency(frequency: Optional[str]) -> str:
    """
    Map a stored frequency value onto a known throttle class.

    Args:
        frequency: Raw frequency value from the alert row

    Returns:
        str: Known frequency, "daily" for anything unrecognized
    """
    if frequency == AlertFrequency.ONCE.value or frequency in THROTTLE_WINDOWS:
        return frequency

    logger.warning(f"Data quality: unknown alert frequency {frequency!r}, treating as daily")
    return AlertFrequency.DAILY.value


def can_trigger(frequency: Optional[str], last_triggered_at: Optional[datetime], now: datetime) -> bool:
    """
    Check whether the throttle window allows a trigger now.

    Args:
        frequency: Alert frequency class
        last_triggered_at: Last successful claim time, None if never triggered
        now: Current time (same clock as last_triggered_at)

    Returns:
        bool: True if a new trigger is permitted
    """
    frequency = normalize_frequency(frequency)

    if last_triggered_at is None:
        return True  # Never triggered before

    if frequency == AlertFrequency.ONCE.value:
        return False

    return now - last_triggered_at >= THROTTLE_WINDOWS[frequency]


class ThrottlePolicy:
    """Service wrapper so the coordinator can take an injectable policy."""

    def can_trigger(self, frequency: Optional[str], last_triggered_at: Optional[datetime], now: datetime) -> bool:
        return can_trigger(frequency, last_triggered_at, now)
