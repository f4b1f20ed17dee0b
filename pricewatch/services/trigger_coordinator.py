"""
Trigger Coordinator

Runs one alert evaluation cycle:
1. Load all active alerts
2. Group them by symbol so one quote serves every alert on a symbol
3. Evaluate symbols in fixed-width batches (bounded concurrency)
4. Per alert: threshold check -> throttle check -> atomic claim -> dispatch
5. Return a TriggerOutcome summary

Per-alert states within a cycle:
    Pending -> Evaluated(no-trigger | eligible) -> Claimed | ClaimLost -> Dispatched

Nothing is retried within a cycle; skipped alerts are reconsidered on the
next scheduled run. Overlapping cycles are safe because the claim is the
only write to an alert's trigger state.
"""

import math
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pricewatch.config import ALERT_BATCH_SIZE, ALERT_CYCLE_TIMEOUT
from pricewatch.exceptions import QuoteUnavailable, UserResolutionFailure, DispatchFailure
from pricewatch.models.alert import Alert, AlertFrequency
from pricewatch.schemas.alert_event import AlertTrigger, TriggerOutcome, TriggerRecord
from pricewatch.services.alert_evaluator import ThresholdEvaluator
from pricewatch.services.claim_store import ClaimStore
from pricewatch.services.notification_service import NotificationService
from pricewatch.services.throttle_policy import ThrottlePolicy
from pricewatch.services.user_directory import UserDirectory
from pricewatch.utils.logger import create_logger
from pricewatch.utils.time import utcnow

logger = create_logger(__name__)


class TriggerCoordinator:
    """Orchestrates one evaluation cycle across all active alerts."""

    def __init__(
        self,
        store: ClaimStore,
        quote_provider,
        user_directory: UserDirectory,
        dispatcher: NotificationService,
        evaluator: Optional[ThresholdEvaluator] = None,
        throttle: Optional[ThrottlePolicy] = None,
        batch_size: int = ALERT_BATCH_SIZE,
        cycle_timeout: Optional[float] = ALERT_CYCLE_TIMEOUT,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the coordinator with explicitly constructed collaborators.

        Args:
            store: Alert store providing list_active_alerts() and claim()
            quote_provider: Object with get_quote(symbol) -> Quote
            user_directory: Object with resolve_contact(user_id) -> Optional[str]
            dispatcher: Notification dispatcher
            evaluator: Threshold evaluator
            throttle: Throttle policy
            batch_size: Number of symbols evaluated concurrently
            cycle_timeout: Cycle deadline in seconds (None or 0 disables it)
            clock: Returns the current naive UTC time
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive: {batch_size}")

        self.store = store
        self.quote_provider = quote_provider
        self.user_directory = user_directory
        self.dispatcher = dispatcher
        self.evaluator = evaluator or ThresholdEvaluator()
        self.throttle = throttle or ThrottlePolicy()
        self.batch_size = batch_size
        self.cycle_timeout = cycle_timeout or None
        self.clock = clock

    def run_cycle(self) -> TriggerOutcome:
        """
        Evaluate every active alert once.

        Returns:
            TriggerOutcome: Triggered alerts and isolated error messages

        Raises:
            StoreUnavailable: If active alerts cannot be loaded
        """
        outcome = TriggerOutcome()

        # Fatal if this fails: there is nothing to evaluate
        alerts = self.store.list_active_alerts()
        logger.info(f"Checking {len(alerts)} active alerts...")

        alerts_by_symbol = self.group_by_symbol(alerts)
        symbols = list(alerts_by_symbol)
        deadline = time.monotonic() + self.cycle_timeout if self.cycle_timeout else None

        executor = ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="alert-cycle")
        timed_out = False
        try:
            for start in range(0, len(symbols), self.batch_size):
                batch = symbols[start:start + self.batch_size]
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())

                futures = {
                    executor.submit(self._process_symbol, symbol, alerts_by_symbol[symbol], deadline): symbol
                    for symbol in batch
                }
                done, not_done = wait(futures, timeout=remaining)

                for future in done:
                    symbol = futures[future]
                    try:
                        outcome.merge(future.result())
                    except Exception as e:
                        logger.error(f"Failed to process alerts for {symbol}: {e}", exc_info=True)
                        outcome.errors.append(f"Failed to process alerts for {symbol}: {e}")

                if not_done:
                    timed_out = True
                    pending = sorted(futures[f] for f in not_done)
                    skipped = symbols[start + len(batch):]
                    message = (
                        f"Cycle timed out after {self.cycle_timeout}s; "
                        f"unfinished symbols: {', '.join(pending)}; not started: {len(skipped)}"
                    )
                    logger.error(message)
                    outcome.errors.append(message)
                    break
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

        logger.info(
            f"Alert check complete: {len(outcome.triggered)} alerts triggered, {len(outcome.errors)} errors"
        )
        return outcome

    @staticmethod
    def group_by_symbol(alerts: List[Alert]) -> Dict[str, List[Alert]]:
        """Group alerts by uppercase symbol, preserving load order."""
        alerts_by_symbol = defaultdict(list)
        for alert in alerts:
            alerts_by_symbol[alert.symbol.upper()].append(alert)
        return dict(alerts_by_symbol)

    def _process_symbol(self, symbol: str, alerts: List[Alert], deadline: Optional[float] = None) -> TriggerOutcome:
        """
        Fetch one quote and evaluate every alert on the symbol.

        Returns:
            TriggerOutcome: Partial outcome for this symbol
        """
        outcome = TriggerOutcome()

        try:
            quote = self.quote_provider.get_quote(symbol)
            current_price = float(quote.price)
            if not math.isfinite(current_price):
                raise QuoteUnavailable(symbol, f"non-finite price {current_price!r}")
        except QuoteUnavailable as e:
            logger.warning(f"{e}; skipping {len(alerts)} alert(s)")
            outcome.errors.append(str(e))
            return outcome
        except Exception as e:
            logger.warning(f"Quote fetch failed for {symbol}: {e}; skipping {len(alerts)} alert(s)")
            outcome.errors.append(f"No price data available for {symbol}: {e}")
            return outcome

        for alert in alerts:
            try:
                record = self._process_alert(alert, symbol, current_price, deadline)
                if record:
                    outcome.triggered.append(record)
            except UserResolutionFailure as e:
                logger.error(f"Alert {alert.id} consumed without delivery: {e}")
                outcome.errors.append(f"Alert {alert.id}: {e}")
            except DispatchFailure as e:
                outcome.errors.append(f"Alert {alert.id}: {e}")
            except Exception as e:
                logger.error(f"Error processing alert {alert.id}: {e}", exc_info=True)
                outcome.errors.append(f"Error processing alert {alert.id} ({symbol}): {e}")

        return outcome

    def _process_alert(
        self, alert: Alert, symbol: str, current_price: float, deadline: Optional[float] = None
    ) -> Optional[TriggerRecord]:
        """
        Run one alert through threshold, throttle, claim and dispatch.

        Returns:
            TriggerRecord: If the alert was claimed and its event emitted, else None
            (also None once the cycle deadline has passed; the next cycle reconsiders it)

        Raises:
            UserResolutionFailure: Claimed, but the owner has no contact address
            DispatchFailure: Claimed, but the event could not be emitted
        """
        if not self.evaluator.should_trigger(alert.alert_type, alert.threshold, current_price):
            return None

        now = self.clock()
        if not self.throttle.can_trigger(alert.frequency, alert.last_triggered_at, now):
            logger.info(
                f"Alert {alert.id} ({symbol}) skipping due to frequency constraint ({alert.frequency})"
            )
            return None

        logger.info(
            f"Alert eligible: {symbol} - {alert.alert_type} threshold {alert.threshold}, "
            f"current: {current_price}, frequency: {alert.frequency}"
        )

        # Work finishing after the cycle returned must not fire unreported alerts
        if deadline is not None and time.monotonic() >= deadline:
            logger.warning(f"Alert {alert.id} ({symbol}) not claimed: cycle deadline passed")
            return None

        claimed = self.store.claim(
            alert.id,
            expected_is_active=alert.is_active,
            expected_last_triggered_at=alert.last_triggered_at,
            now=now,
            retire_if_once=alert.frequency == AlertFrequency.ONCE.value,
        )
        if not claimed:
            # Another cycle or worker fired it first
            return None

        recipient = self.user_directory.resolve_contact(alert.user_id)
        if not recipient:
            raise UserResolutionFailure(alert.user_id)

        trigger = AlertTrigger(
            alert_id=alert.id,
            user_id=alert.user_id,
            symbol=symbol,
            company=alert.company or symbol,
            alert_type=alert.alert_type,
            threshold=alert.threshold,
            current_price=current_price,
            triggered_at=now,
            recipient=recipient,
        )

        recorded = self.dispatcher.dispatch(trigger)
        if not recorded:
            logger.warning(f"Alert {alert.id} dispatched without an in-app notification record")

        return TriggerRecord(
            alert_id=alert.id,
            user_id=alert.user_id,
            symbol=symbol,
            company=trigger.company,
            alert_type=alert.alert_type,
            threshold=alert.threshold,
            current_price=current_price,
        )
