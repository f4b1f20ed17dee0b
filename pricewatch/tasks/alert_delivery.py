"""
Alert Delivery Tasks

Messaging pipeline for price alert events:
- CeleryEventEmitter hands events from the dispatcher to the delivery task
- deliver_price_alert drops duplicate idempotency keys, then sends a
  WhatsApp message via Twilio
"""

from typing import Dict

from redis import Redis as RedisClient
from twilio.rest import Client as TwilioClient

from pricewatch.celery_app import celery_app
from pricewatch.config import TWILIO_WHATSAPP_NUMBER, IDEMPOTENCY_KEY_TTL
from pricewatch.dependencies import get_redis_client, get_twilio_client
from pricewatch.schemas.alert_event import PriceAlertEvent
from pricewatch.templates.whatsapp_templates import PRICE_ALERT_TEMPLATE, ARROWS
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)


class CeleryEventEmitter:
    """Publishes price alert events to the delivery queue."""

    def emit(self, event: PriceAlertEvent) -> None:
        deliver_price_alert.apply_async(
            args=[event.model_dump(mode="json")],
            task_id=event.idempotency_key,
        )


def format_alert_message(event: PriceAlertEvent) -> str:
    """
    Format the WhatsApp body for a price alert.

    Example:
        "🚨 PRICE ALERT: AAPL ⬆️

        Apple Inc (AAPL) hit your upper target of $140.00.
        Current Price: $145.00
        Time: 2026-10-17 14:30 UTC"
    """
    return PRICE_ALERT_TEMPLATE.format(
        symbol=event.symbol,
        arrow=ARROWS.get(event.direction, ""),
        company=event.company,
        direction=event.direction,
        target_price=event.target_price,
        current_price=event.current_price,
        timestamp=event.timestamp.strftime("%Y-%m-%d %H:%M"),
    )


def deliver_event(
    event: PriceAlertEvent,
    redis_client: RedisClient,
    twilio_client: TwilioClient,
    ttl: int = IDEMPOTENCY_KEY_TTL,
) -> Dict:
    """
    Deliver one price alert unless its idempotency key was already seen.

    Args:
        event: Outbound price alert event
        redis_client: Redis client holding seen idempotency keys
        twilio_client: Twilio client for sending messages
        ttl: How long a key suppresses duplicates (seconds)

    Returns:
        dict: Delivery status
    """
    first_delivery = redis_client.set(f"idempotency:{event.idempotency_key}", "1", nx=True, ex=ttl)
    if not first_delivery:
        logger.info(f"Duplicate price alert dropped: key={event.idempotency_key}")
        return {"status": "duplicate", "idempotency_key": event.idempotency_key}

    to_number = event.recipient
    if not to_number.startswith("whatsapp:"):
        to_number = f"whatsapp:{to_number}"

    logger.info(f"Sending price alert to {event.recipient} for {event.symbol}")
    response = twilio_client.messages.create(
        from_=f"whatsapp:{TWILIO_WHATSAPP_NUMBER}",
        body=format_alert_message(event),
        to=to_number,
    )

    logger.info(f"Price alert sent: key={event.idempotency_key}, SID={response.sid}")
    return {"status": "sent", "idempotency_key": event.idempotency_key, "sid": response.sid}


@celery_app.task(name="pricewatch.tasks.alert_delivery.deliver_price_alert")
def deliver_price_alert(payload: Dict) -> Dict:
    """Celery entry point of the messaging pipeline."""
    event = PriceAlertEvent(**payload)
    redis_client = get_redis_client()

    try:
        return deliver_event(event, redis_client, get_twilio_client())
    finally:
        redis_client.close()
