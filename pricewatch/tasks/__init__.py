"""
Background Tasks

Celery tasks for periodic alert evaluation and alert delivery.
"""

from pricewatch.tasks.stock_monitoring import check_price_alerts
from pricewatch.tasks.alert_delivery import deliver_price_alert

__all__ = [
    "check_price_alerts",
    "deliver_price_alert",
]
