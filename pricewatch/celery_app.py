"""
Celery Application Configuration

Configures Celery for background task processing with Redis broker.
Defines beat schedule for periodic price alert evaluation.
"""

from celery import Celery
from pricewatch.config import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, ALERT_CHECK_INTERVAL

# Create Celery app
celery_app = Celery(
    "price_alerts",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["pricewatch.tasks.stock_monitoring", "pricewatch.tasks.alert_delivery"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes max per task
    worker_prefetch_multiplier=1,  # Process one task at a time
    worker_max_tasks_per_child=100,  # Restart worker after 100 tasks (prevent memory leaks)
)

# Beat schedule (periodic tasks)
celery_app.conf.beat_schedule = {
    # Evaluate all active price alerts. Runs may overlap; the atomic claim
    # keeps each alert from firing twice.
    "check-price-alerts": {
        "task": "pricewatch.tasks.stock_monitoring.check_price_alerts",
        "schedule": float(ALERT_CHECK_INTERVAL),
        "options": {
            "expires": max(ALERT_CHECK_INTERVAL - 10, 1),  # Drop if not picked up before the next run
        },
    },
}

if __name__ == "__main__":
    celery_app.start()
