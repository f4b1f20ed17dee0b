"""
Alert Evaluation Service

Evaluates price threshold alerts against a current price:
1. Upper Alerts: trigger when the price rises to or above the threshold
2. Lower Alerts: trigger when the price falls to or below the threshold

Both comparisons are inclusive. Inputs are assumed finite; the trigger
coordinator screens quotes before calling in here.
"""

from pricewatch.models.alert import AlertType
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)


def should_trigger(alert_type: str, threshold: float, current_price: float) -> bool:
    """
    Check if an alert's threshold condition is met.

    Args:
        alert_type: "upper" or "lower"
        threshold: Alert target price
        current_price: Latest price for the alert's symbol

    Returns:
        bool: True if the price has crossed the threshold

    Example:
        - upper / 140 / 140.00 -> True
        - upper / 140 / 139.99 -> False
        - lower / 100 / 100.01 -> False
    """
    if alert_type == AlertType.UPPER.value:
        return current_price >= threshold
    elif alert_type == AlertType.LOWER.value:
        return current_price <= threshold
    else:
        logger.warning(f"Unknown alert type: {alert_type}")
        return False


class ThresholdEvaluator:
    """Service wrapper so the coordinator can take an injectable evaluator."""

    def should_trigger(self, alert_type: str, threshold: float, current_price: float) -> bool:
        return should_trigger(alert_type, threshold, current_price)
