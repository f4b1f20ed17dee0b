"""
Stock Price Service

Fetches current quotes from the Finnhub /quote endpoint:
1. Redis cache (optional, short TTL) - shared across workers
2. Finnhub API - live fetch with timeout and bounded retry

Each symbol is fetched and fails independently. Failures surface as
QuoteUnavailable so the caller can skip that symbol for the cycle.
"""

import json
import math
import time
from typing import Callable, Optional

import requests
from redis import Redis as RedisClient

from pricewatch.config import (
    FINNHUB_API_KEY,
    FINNHUB_BASE_URL,
    QUOTE_TIMEOUT,
    QUOTE_MAX_RETRIES,
    QUOTE_BACKOFF_SECONDS,
    STOCK_PRICE_CACHE_TTL,
)
from pricewatch.exceptions import QuoteUnavailable
from pricewatch.schemas.alert_event import Quote
from pricewatch.utils.logger import create_logger
from pricewatch.utils.time import utcnow

logger = create_logger(__name__)

# Statuses worth another attempt; any other non-200 fails immediately
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class StockPriceService:
    """Service for fetching stock quotes."""

    def __init__(
        self,
        redis: Optional[RedisClient] = None,
        http: Optional[requests.Session] = None,
        api_key: Optional[str] = FINNHUB_API_KEY,
        base_url: str = FINNHUB_BASE_URL,
        timeout: float = QUOTE_TIMEOUT,
        max_retries: int = QUOTE_MAX_RETRIES,
        backoff_seconds: float = QUOTE_BACKOFF_SECONDS,
        cache_ttl: int = STOCK_PRICE_CACHE_TTL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize stock price service.

        Args:
            redis: Redis client for caching (None disables caching)
            http: requests session used for API calls
            api_key: Finnhub API token
            base_url: Finnhub API base URL
            timeout: Per-request timeout (seconds)
            max_retries: Retries after the first attempt
            backoff_seconds: Initial backoff, doubled for each retry
            cache_ttl: Redis TTL (seconds), 0 disables caching
            sleep: Sleep function used between retries
        """
        self.redis = redis
        self.http = http or requests.Session()
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = backoff_seconds
        self.cache_ttl = cache_ttl
        self.sleep = sleep

    def get_quote(self, symbol: str) -> Quote:
        """
        Get the current price for a symbol.

        Args:
            symbol: Stock symbol (e.g., "AAPL")

        Returns:
            Quote: Fresh (or briefly cached) quote with a finite, positive price

        Raises:
            QuoteUnavailable: If no usable price could be fetched
        """
        symbol = symbol.upper()

        cached = self._get_from_redis_cache(symbol)
        if cached:
            logger.debug(f"Redis cache hit for {symbol}")
            return cached

        if not self.api_key:
            raise QuoteUnavailable(symbol, "FINNHUB API key is not configured")

        payload = self._fetch_with_retry(symbol)
        quote = self._parse_quote(symbol, payload)
        self._set_redis_cache(quote)
        return quote

    def _fetch_with_retry(self, symbol: str) -> dict:
        """
        Call the quote endpoint, retrying transient failures with backoff.

        Args:
            symbol: Stock symbol

        Returns:
            dict: Decoded JSON payload

        Raises:
            QuoteUnavailable: After the last failed attempt or a permanent error
        """
        url = f"{self.base_url}/quote"
        params = {"symbol": symbol, "token": self.api_key}
        attempts = self.max_retries + 1
        last_error = "no attempt made"

        for attempt in range(1, attempts + 1):
            try:
                response = self.http.get(url, params=params, timeout=self.timeout)

                if response.status_code == 200:
                    return response.json()

                last_error = f"status {response.status_code}"
                if response.status_code not in RETRYABLE_STATUS:
                    break

            except (requests.RequestException, ValueError) as e:
                last_error = str(e) or e.__class__.__name__

            if attempt < attempts:
                delay = self.backoff_seconds * (2 ** (attempt - 1))
                logger.info(f"Quote fetch for {symbol} failed ({last_error}), retry {attempt} in {delay:.1f}s")
                self.sleep(delay)

        raise QuoteUnavailable(symbol, last_error)

    def _parse_quote(self, symbol: str, payload: dict) -> Quote:
        """
        Extract the current price (field "c") from a Finnhub quote payload.

        Finnhub answers unknown symbols with zeros, so a zero price is
        treated as missing data.
        """
        if not isinstance(payload, dict):
            raise QuoteUnavailable(symbol, "invalid response structure")

        try:
            price = float(payload.get("c"))
        except (TypeError, ValueError):
            raise QuoteUnavailable(symbol, "missing current price")

        if not math.isfinite(price) or price <= 0:
            raise QuoteUnavailable(symbol, f"non-finite or empty price {price!r}")

        return Quote(symbol=symbol, price=price, timestamp=utcnow())

    def _get_from_redis_cache(self, symbol: str) -> Optional[Quote]:
        """
        Get a quote from Redis cache.

        Args:
            symbol: Stock symbol

        Returns:
            Quote: Cached quote or None
        """
        if not self.redis or self.cache_ttl <= 0:
            return None

        try:
            cached_json = self.redis.get(f"stock_quote:{symbol}")
            if cached_json:
                return Quote(**json.loads(cached_json))
        except Exception as e:
            logger.error(f"Redis cache read error: {e}")

        return None

    def _set_redis_cache(self, quote: Quote):
        if not self.redis or self.cache_ttl <= 0:
            return

        try:
            self.redis.setex(f"stock_quote:{quote.symbol}", self.cache_ttl, quote.model_dump_json())
            logger.debug(f"Cached {quote.symbol} in Redis (TTL: {self.cache_ttl}s)")
        except Exception as e:
            logger.error(f"Redis cache write error: {e}")
