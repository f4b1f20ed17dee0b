"""Tests for the scheduled alert check task wiring."""

from unittest.mock import MagicMock

import pytest

from pricewatch.exceptions import StoreUnavailable
from pricewatch.services.stock_service import StockPriceService
from pricewatch.tasks.stock_monitoring import build_coordinator, run_alert_check
from tests.conftest import FakeQuoteProvider, RecordingEmitter


def test_build_coordinator_wires_collaborators(session_factory):
    emitter = RecordingEmitter()

    coordinator = build_coordinator(session_factory, emitter=emitter)

    assert isinstance(coordinator.quote_provider, StockPriceService)
    assert coordinator.dispatcher.emitter is emitter
    assert coordinator.dispatcher.store is coordinator.store


def test_run_alert_check_returns_summary(session_factory, store, user):
    alert = store.create_alert(user.id, "AAPL", "upper", 140, company="Apple Inc")
    emitter = RecordingEmitter()
    coordinator = build_coordinator(session_factory, emitter=emitter)
    coordinator.quote_provider = FakeQuoteProvider({"AAPL": 150.0, "MSFT": 300.0})

    summary = run_alert_check(coordinator)

    assert summary["status"] == "success"
    assert summary["alerts_triggered"] == 1
    assert summary["triggered"][0]["alert_id"] == alert.id
    assert summary["errors"] == []


def test_run_alert_check_propagates_store_outage():
    coordinator = MagicMock()
    coordinator.run_cycle.side_effect = StoreUnavailable("down")

    with pytest.raises(StoreUnavailable):
        run_alert_check(coordinator)
