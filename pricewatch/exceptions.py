"""
Exceptions

Error taxonomy of the alert engine. Per-symbol and per-alert errors are
caught inside a cycle; StoreUnavailable is the only one that aborts it.
"""


class PriceWatchError(Exception):
    """Base class for alert engine errors."""


class QuoteUnavailable(PriceWatchError):
    """No usable price could be fetched for a symbol."""

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"No price data available for {symbol}: {reason}")


class StoreUnavailable(PriceWatchError):
    """The alert store could not be read."""


class UserResolutionFailure(PriceWatchError):
    """The owner of an alert has no contact address."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"No contact address found for user {user_id}")


class DispatchFailure(PriceWatchError):
    """Emitting the outbound event failed after a successful claim."""


class DuplicateAlertError(PriceWatchError):
    """An active alert with the same user, symbol, type and threshold exists."""
