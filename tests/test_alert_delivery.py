"""Tests for the WhatsApp delivery side of the messaging pipeline."""

from datetime import datetime
from unittest.mock import MagicMock, patch

from pricewatch.schemas.alert_event import PriceAlertEvent
from pricewatch.tasks.alert_delivery import CeleryEventEmitter, deliver_event, format_alert_message


class FakeRedis:
    """Supports the SET NX EX subset used for deduplication."""

    def __init__(self):
        self.values = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True


def make_event(**overrides):
    fields = dict(
        name="stock.alert.upper",
        idempotency_key="price-alert:42:29842170",
        direction="upper",
        symbol="AAPL",
        company="Apple Inc",
        current_price=145.0,
        target_price=140.0,
        timestamp=datetime(2026, 10, 17, 14, 30),
        recipient="+15551230000",
    )
    fields.update(overrides)
    return PriceAlertEvent(**fields)


def test_duplicate_idempotency_keys_are_delivered_once():
    redis, twilio = FakeRedis(), MagicMock()
    twilio.messages.create.return_value.sid = "SM123"

    first = deliver_event(make_event(), redis, twilio)
    second = deliver_event(make_event(current_price=146.0), redis, twilio)

    assert first["status"] == "sent"
    assert first["sid"] == "SM123"
    assert second["status"] == "duplicate"
    twilio.messages.create.assert_called_once()
    assert twilio.messages.create.call_args.kwargs["to"] == "whatsapp:+15551230000"


def test_distinct_keys_are_both_delivered():
    redis, twilio = FakeRedis(), MagicMock()

    deliver_event(make_event(), redis, twilio)
    deliver_event(make_event(idempotency_key="price-alert:42:29842172"), redis, twilio)

    assert twilio.messages.create.call_count == 2


def test_message_mentions_direction_and_prices():
    body = format_alert_message(make_event(direction="lower", target_price=100.0, current_price=98.25))

    assert "AAPL" in body
    assert "lower target of $100.00" in body
    assert "$98.25" in body


def test_emitter_queues_json_payload_keyed_by_idempotency_key():
    event = make_event()

    with patch("pricewatch.tasks.alert_delivery.deliver_price_alert") as task:
        CeleryEventEmitter().emit(event)

    kwargs = task.apply_async.call_args.kwargs
    assert kwargs["task_id"] == event.idempotency_key
    assert kwargs["args"][0]["timestamp"] == "2026-10-17T14:30:00"
    assert kwargs["args"][0]["symbol"] == "AAPL"
