"""
Claim Store

Persistence boundary of the trigger engine. The datastore is the only
arbiter of which caller fires an alert: claim() is a single conditional
UPDATE that affects exactly zero or one row, so overlapping cycles in
separate processes cannot both fire the same alert.

Every operation opens its own short-lived session from the injected
factory, which makes the store safe to share between worker threads.
"""

import math
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from pricewatch.exceptions import DuplicateAlertError, StoreUnavailable
from pricewatch.models.alert import Alert, AlertType, AlertFrequency
from pricewatch.models.notification import Notification, PRICE_ALERT
from pricewatch.utils.logger import create_logger
from pricewatch.utils.time import utcnow

logger = create_logger(__name__)


class ClaimStore:
    """SQLAlchemy-backed alert store with an atomic claim operation."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the store.

        Args:
            session_factory: Factory producing independent SQLAlchemy sessions
        """
        self.session_factory = session_factory

    def list_active_alerts(self) -> List[Alert]:
        """
        Load every active alert.

        Returns:
            list: Detached Alert rows with all columns loaded

        Raises:
            StoreUnavailable: If the database cannot be read
        """
        try:
            with self.session_factory() as db:
                return db.query(Alert).filter(Alert.is_active == True).order_by(Alert.id).all()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to list active alerts: {e}") from e

    def claim(
        self,
        alert_id: int,
        expected_is_active: bool,
        expected_last_triggered_at: Optional[datetime],
        now: datetime,
        retire_if_once: bool,
    ) -> bool:
        """
        Atomically claim the right to fire an alert.

        Equivalent to:
            UPDATE alerts SET last_triggered_at = :now [, is_active = false]
            WHERE id = :id AND is_active = :expected_is_active
              AND last_triggered_at = :expected  (IS NULL when expected is None)

        Args:
            alert_id: Alert to claim
            expected_is_active: is_active value read by the caller
            expected_last_triggered_at: last_triggered_at read by the caller, None if never set
            now: New last_triggered_at value
            retire_if_once: Also set is_active = False (for "once" alerts)

        Returns:
            bool: True if this caller won the claim, False if the row changed underneath it

        Raises:
            StoreUnavailable: If the write could not be executed
        """
        conditions = [Alert.id == alert_id, Alert.is_active == expected_is_active]
        if expected_last_triggered_at is None:
            conditions.append(Alert.last_triggered_at.is_(None))
        else:
            conditions.append(Alert.last_triggered_at == expected_last_triggered_at)

        values = {"last_triggered_at": now, "updated_at": now}
        if retire_if_once:
            values["is_active"] = False

        stmt = (
            update(Alert)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            with self.session_factory() as db:
                result = db.execute(stmt)
                db.commit()
                claimed = result.rowcount == 1
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to claim alert {alert_id}: {e}") from e

        if claimed:
            logger.info(f"Claimed alert {alert_id} at {now.isoformat()} (retired={retire_if_once})")
        else:
            logger.debug(f"Claim lost for alert {alert_id}")

        return claimed

    def create_notification(self, record: Dict) -> Notification:
        """
        Persist one in-app notification.

        Args:
            record: Notification fields (user_id, title, message, symbol)

        Returns:
            Notification: Stored row

        Raises:
            SQLAlchemyError: If the row could not be written
        """
        with self.session_factory() as db:
            notification = Notification(
                user_id=record["user_id"],
                type=record.get("type", PRICE_ALERT),
                title=record["title"],
                message=record["message"],
                symbol=record.get("symbol"),
                is_read=False,
                created_at=record.get("created_at") or utcnow(),
            )
            db.add(notification)
            db.commit()
            db.refresh(notification)
            return notification

    def create_alert(
        self,
        user_id: int,
        symbol: str,
        alert_type: str,
        threshold: float,
        company: Optional[str] = None,
        frequency: str = AlertFrequency.DAILY.value,
        alert_name: Optional[str] = None,
    ) -> Alert:
        """
        Create an active alert.

        Args:
            user_id: Owner of the alert
            symbol: Ticker symbol (normalized to uppercase)
            alert_type: "upper" or "lower"
            threshold: Positive finite target price
            company: Display label, defaults to the symbol
            frequency: Throttle class
            alert_name: Optional display name

        Returns:
            Alert: Stored alert

        Raises:
            ValueError: If a field is invalid
            DuplicateAlertError: If an equivalent active alert already exists
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValueError("Symbol is required")
        if alert_type not in {t.value for t in AlertType}:
            raise ValueError(f"Invalid alert type: {alert_type}")
        if frequency not in {f.value for f in AlertFrequency}:
            raise ValueError(f"Invalid frequency: {frequency}")

        threshold = float(threshold)
        if not math.isfinite(threshold) or threshold <= 0:
            raise ValueError(f"Threshold must be a positive number: {threshold}")

        with self.session_factory() as db:
            existing = (
                db.query(Alert)
                .filter(
                    Alert.user_id == user_id,
                    Alert.symbol == symbol,
                    Alert.alert_type == alert_type,
                    Alert.threshold == threshold,
                    Alert.is_active == True,
                )
                .first()
            )
            if existing:
                raise DuplicateAlertError(
                    f"Active {alert_type} alert at {threshold} for {symbol} already exists (#{existing.id})"
                )

            now = utcnow()
            alert = Alert(
                user_id=user_id,
                symbol=symbol,
                company=company or symbol,
                alert_name=alert_name or f"{symbol} {alert_type} {threshold}",
                alert_type=alert_type,
                threshold=threshold,
                frequency=frequency,
                is_active=True,
                last_triggered_at=None,
                created_at=now,
                updated_at=now,
            )
            db.add(alert)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                # Lost a creation race against an identical request
                raise DuplicateAlertError(f"Active alert for {symbol} already exists") from e

            db.refresh(alert)
            logger.info(f"Created alert {alert.id}: user={user_id}, {symbol} {alert_type} {threshold}")
            return alert

    def deactivate_alert(self, alert_id: int) -> bool:
        """
        Soft-retire an alert (removal path); rows are never hard-deleted.

        Returns:
            bool: True if an active alert was retired
        """
        with self.session_factory() as db:
            result = db.execute(
                update(Alert)
                .where(Alert.id == alert_id, Alert.is_active == True)
                .values(is_active=False, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount == 1

    def get_alert(self, alert_id: int) -> Optional[Alert]:
        with self.session_factory() as db:
            return db.get(Alert, alert_id)
