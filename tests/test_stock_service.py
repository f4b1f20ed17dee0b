"""Tests for the Finnhub quote provider."""

from unittest.mock import MagicMock

import pytest
import requests

from pricewatch.exceptions import QuoteUnavailable
from pricewatch.services.stock_service import StockPriceService


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


def make_service(*responses, **kwargs):
    http = MagicMock()
    http.get.side_effect = list(responses)
    sleeps = []
    service = StockPriceService(
        http=http,
        api_key="test-token",
        base_url="https://finnhub.test/api/v1/",
        max_retries=kwargs.pop("max_retries", 2),
        backoff_seconds=0.5,
        sleep=sleeps.append,
        **kwargs,
    )
    return service, http, sleeps


def test_returns_current_price():
    service, http, sleeps = make_service(make_response(payload={"c": 145.2, "pc": 140.0}))

    quote = service.get_quote("aapl")

    assert quote.symbol == "AAPL"
    assert quote.price == 145.2
    http.get.assert_called_once_with(
        "https://finnhub.test/api/v1/quote",
        params={"symbol": "AAPL", "token": "test-token"},
        timeout=10.0,
    )
    assert sleeps == []


def test_retries_transient_errors_with_backoff():
    service, http, sleeps = make_service(
        requests.Timeout("read timed out"),
        make_response(status_code=503),
        make_response(payload={"c": 99.5}),
    )

    assert service.get_quote("MSFT").price == 99.5
    assert http.get.call_count == 3
    assert sleeps == [0.5, 1.0]


def test_gives_up_after_bounded_retries():
    service, http, sleeps = make_service(
        requests.ConnectionError("refused"),
        requests.ConnectionError("refused"),
        requests.ConnectionError("refused"),
    )

    with pytest.raises(QuoteUnavailable) as exc_info:
        service.get_quote("MSFT")

    assert exc_info.value.symbol == "MSFT"
    assert http.get.call_count == 3
    assert len(sleeps) == 2


def test_permanent_error_is_not_retried():
    service, http, sleeps = make_service(make_response(status_code=403))

    with pytest.raises(QuoteUnavailable, match="status 403"):
        service.get_quote("AAPL")

    assert http.get.call_count == 1
    assert sleeps == []


@pytest.mark.parametrize("payload", [{"c": 0}, {"c": None}, {}, {"c": "NaN"}, {"c": "inf"}, {"c": -3}])
def test_empty_or_non_finite_price_is_unavailable(payload):
    service, _, _ = make_service(make_response(payload=payload))

    with pytest.raises(QuoteUnavailable):
        service.get_quote("ZZZZ")


def test_missing_api_key_is_unavailable():
    http = MagicMock()
    service = StockPriceService(http=http, api_key=None)

    with pytest.raises(QuoteUnavailable, match="API key"):
        service.get_quote("AAPL")

    http.get.assert_not_called()


def test_redis_cache_is_used_when_enabled():
    redis = MagicMock()
    redis.get.return_value = None
    service, http, _ = make_service(make_response(payload={"c": 10.0}), redis=redis, cache_ttl=30)

    quote = service.get_quote("AAPL")

    redis.setex.assert_called_once()
    key, ttl, body = redis.setex.call_args.args
    assert (key, ttl) == ("stock_quote:AAPL", 30)

    redis.get.return_value = body
    assert service.get_quote("AAPL").price == quote.price
    assert http.get.call_count == 1
