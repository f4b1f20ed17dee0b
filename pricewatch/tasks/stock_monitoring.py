"""
Stock Monitoring Background Tasks

Celery task for price alert evaluation:
check_price_alerts: runs every ALERT_CHECK_INTERVAL seconds and triggers
alerts whose thresholds were crossed.
"""

from pricewatch.celery_app import celery_app
from pricewatch.dependencies import get_redis_client, get_session_factory
from pricewatch.schemas.alert_event import TriggerOutcome
from pricewatch.services.claim_store import ClaimStore
from pricewatch.services.notification_service import NotificationService
from pricewatch.services.stock_service import StockPriceService
from pricewatch.services.trigger_coordinator import TriggerCoordinator
from pricewatch.services.user_directory import UserDirectory
from pricewatch.tasks.alert_delivery import CeleryEventEmitter
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)


def build_coordinator(session_factory, redis_client=None, emitter=None) -> TriggerCoordinator:
    """
    Wire a coordinator from explicitly constructed collaborators.

    Args:
        session_factory: SQLAlchemy session factory owned by the host process
        redis_client: Optional Redis client for the quote cache
        emitter: Event emitter, defaults to the Celery delivery queue

    Returns:
        TriggerCoordinator: Ready to run a cycle
    """
    store = ClaimStore(session_factory)
    return TriggerCoordinator(
        store=store,
        quote_provider=StockPriceService(redis=redis_client),
        user_directory=UserDirectory(session_factory),
        dispatcher=NotificationService(emitter or CeleryEventEmitter(), store),
    )


def summarize(outcome: TriggerOutcome) -> dict:
    return {
        "status": "success",
        "alerts_triggered": len(outcome.triggered),
        "triggered": [record.model_dump() for record in outcome.triggered],
        "errors": outcome.errors,
    }


def run_alert_check(coordinator: TriggerCoordinator) -> dict:
    """
    Run one cycle and log its outcome.

    Raises:
        StoreUnavailable: If active alerts cannot be loaded
    """
    outcome = coordinator.run_cycle()

    for error in outcome.errors:
        logger.warning(f"Alert cycle error: {error}")

    return summarize(outcome)


@celery_app.task(name="pricewatch.tasks.stock_monitoring.check_price_alerts")
def check_price_alerts():
    """
    Check all active price alerts and trigger the ones that crossed.

    - One quote fetch per symbol, symbols evaluated in bounded batches
    - Overlapping runs are tolerated (claims are atomic)
    - A store outage while loading alerts fails the run; it is not retried
      here because the next beat tick runs a fresh cycle anyway
    """
    redis_client = None

    try:
        redis_client = get_redis_client()
        coordinator = build_coordinator(get_session_factory(), redis_client)
        return run_alert_check(coordinator)

    except Exception as e:
        logger.error(f"Error in price alert check: {e}", exc_info=True)
        raise

    finally:
        if redis_client:
            redis_client.close()
