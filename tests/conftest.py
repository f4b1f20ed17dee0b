"""Shared fixtures for the alert engine tests."""

import os

# Keep test runs from writing log files into the working tree
os.environ.setdefault("LOG_PATH", "")

import threading
from datetime import datetime

import pytest

from pricewatch.database import create_session_factory, init_db
from pricewatch.exceptions import QuoteUnavailable
from pricewatch.models.user import User
from pricewatch.schemas.alert_event import Quote
from pricewatch.services.claim_store import ClaimStore
from pricewatch.services.notification_service import NotificationService
from pricewatch.services.trigger_coordinator import TriggerCoordinator
from pricewatch.services.user_directory import UserDirectory


class FakeQuoteProvider:
    """Quote provider returning fixed prices; unknown symbols are unavailable."""

    def __init__(self, prices=None):
        self.prices = dict(prices or {})
        self.calls = []
        self._lock = threading.Lock()

    def get_quote(self, symbol: str) -> Quote:
        with self._lock:
            self.calls.append(symbol)
        if symbol not in self.prices:
            raise QuoteUnavailable(symbol, "status 404")
        return Quote(symbol=symbol, price=self.prices[symbol], timestamp=datetime(2026, 10, 17, 14, 30))


class RecordingEmitter:
    """Event emitter that keeps every emitted event."""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail
        self._lock = threading.Lock()

    def emit(self, event) -> None:
        if self.fail:
            raise ConnectionError("broker unreachable")
        with self._lock:
            self.events.append(event)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file database."""
    factory = create_session_factory(f"sqlite:///{tmp_path / 'alerts.db'}")
    init_db(bind=factory.kw["bind"])
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def store(session_factory):
    return ClaimStore(session_factory)


@pytest.fixture
def user(session_factory):
    with session_factory() as db:
        user = User(email="dana@example.com", phone_number="+15551230000", profile_name="Dana")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 17, 14, 30, 15))


@pytest.fixture
def make_coordinator(store, session_factory, emitter, clock):
    """Build a coordinator over the SQLite store with fake collaborators."""

    def _make(prices, **kwargs):
        quote_provider = kwargs.pop("quote_provider", None) or FakeQuoteProvider(prices)
        return TriggerCoordinator(
            store=kwargs.pop("store", store),
            quote_provider=quote_provider,
            user_directory=kwargs.pop("user_directory", UserDirectory(session_factory)),
            dispatcher=kwargs.pop("dispatcher", NotificationService(emitter, store)),
            clock=kwargs.pop("clock", clock),
            **kwargs,
        )

    return _make
