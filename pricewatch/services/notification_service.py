"""
Notification Service

Dispatches claimed alert triggers:
1. Builds a deterministic idempotency key from (alert id, minute bucket)
2. Emits one event to the messaging pipeline
3. Writes one in-app notification record (best-effort)

Called only after a successful claim. The claim is never rolled back here:
undoing it would let the next cycle fire the same alert again.
"""

from datetime import datetime
from typing import Protocol

from pricewatch.config import IDEMPOTENCY_WINDOW_SECONDS
from pricewatch.exceptions import DispatchFailure
from pricewatch.models.alert import AlertType
from pricewatch.models.notification import PRICE_ALERT
from pricewatch.schemas.alert_event import AlertTrigger, PriceAlertEvent
from pricewatch.services.claim_store import ClaimStore
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)

EPOCH = datetime(1970, 1, 1)


class EventEmitter(Protocol):
    def emit(self, event: PriceAlertEvent) -> None:
        ...


def build_idempotency_key(alert_id: int, now: datetime, window_seconds: int = IDEMPOTENCY_WINDOW_SECONDS) -> str:
    """
    Build the delivery deduplication key for an alert trigger.

    Args:
        alert_id: Triggered alert
        now: Trigger time (naive UTC)
        window_seconds: Bucket width

    Returns:
        str: Key shared by all triggers of the alert inside the same bucket
    """
    bucket = int((now - EPOCH).total_seconds() // window_seconds)
    return f"price-alert:{alert_id}:{bucket}"


class NotificationService:
    """Service for dispatching triggered price alerts."""

    def __init__(
        self,
        emitter: EventEmitter,
        store: ClaimStore,
        window_seconds: int = IDEMPOTENCY_WINDOW_SECONDS,
    ):
        """
        Initialize notification service.

        Args:
            emitter: Messaging pipeline entry point
            store: Store used to persist notification records
            window_seconds: Idempotency bucket width (seconds)
        """
        self.emitter = emitter
        self.store = store
        self.window_seconds = window_seconds

    def dispatch(self, trigger: AlertTrigger) -> bool:
        """
        Emit the outbound event for a claimed trigger, then record it.

        Args:
            trigger: Claimed alert trigger with resolved recipient

        Returns:
            bool: True if the notification record was written

        Raises:
            DispatchFailure: If the event could not be emitted
        """
        event = self.build_event(trigger)

        try:
            self.emitter.emit(event)
        except Exception as e:
            logger.error(f"Failed to emit price alert for alert {trigger.alert_id}: {e}")
            raise DispatchFailure(f"Failed to emit event for alert {trigger.alert_id}: {e}") from e

        logger.info(
            f"Price alert emitted: alert_id={trigger.alert_id}, key={event.idempotency_key}, "
            f"symbol={trigger.symbol}, price=${trigger.current_price:.2f}"
        )

        try:
            self.store.create_notification(self._build_record(trigger))
        except Exception as e:
            logger.error(f"Failed to create notification for alert {trigger.alert_id}: {e}")
            return False

        return True

    def build_event(self, trigger: AlertTrigger) -> PriceAlertEvent:
        direction = trigger.alert_type
        return PriceAlertEvent(
            name=f"stock.alert.{direction}",
            idempotency_key=build_idempotency_key(trigger.alert_id, trigger.triggered_at, self.window_seconds),
            direction=direction,
            symbol=trigger.symbol,
            company=trigger.company,
            current_price=trigger.current_price,
            target_price=trigger.threshold,
            timestamp=trigger.triggered_at,
            recipient=trigger.recipient,
        )

    def _build_record(self, trigger: AlertTrigger) -> dict:
        """
        Format the in-app notification.

        Example:
            title: "Price Alert: AAPL ▲"
            message: "Apple Inc (AAPL) hit your upper target of $140. Current price: $145.00."
        """
        is_upper = trigger.alert_type == AlertType.UPPER.value
        arrow = "▲" if is_upper else "▼"

        return {
            "user_id": trigger.user_id,
            "type": PRICE_ALERT,
            "title": f"Price Alert: {trigger.symbol} {arrow}",
            "message": (
                f"{trigger.company} ({trigger.symbol}) hit your {trigger.alert_type} target of "
                f"${_format_target(trigger.threshold)}. Current price: ${trigger.current_price:.2f}."
            ),
            "symbol": trigger.symbol,
            "created_at": trigger.triggered_at,
        }


def _format_target(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)
