"""
Alert Model

Represents price threshold alerts configured by users.
Supports:
- Upper alerts (price rises to or above the threshold)
- Lower alerts (price falls to or below the threshold)
- Throttle classes: once, minute, hourly, daily

Alerts are never hard-deleted by the engine. Retirement flips is_active to
False, which also frees the (user, symbol, type, threshold) uniqueness slot.
"""

import enum

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from pricewatch.database import Base
from pricewatch.utils.time import utcnow


class AlertType(str, enum.Enum):
    UPPER = "upper"
    LOWER = "lower"


class AlertFrequency(str, enum.Enum):
    ONCE = "once"
    MINUTE = "minute"
    HOURLY = "hourly"
    DAILY = "daily"


class Alert(Base):
    """Alert model for price threshold alerts."""

    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    symbol = Column(String, nullable=False, index=True)  # e.g., "AAPL" (stored uppercase)
    company = Column(String, nullable=False)  # Display label
    alert_name = Column(String, nullable=True)

    # "upper" or "lower"
    alert_type = Column(String, nullable=False)
    threshold = Column(Float, nullable=False)

    # "once", "minute", "hourly" or "daily"
    frequency = Column(String, default=AlertFrequency.DAILY.value, nullable=False)

    # Alert state (written during a cycle only through the atomic claim)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_triggered_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="alerts")

    __table_args__ = (
        Index("ix_alerts_user_symbol", "user_id", "symbol"),
        Index("ix_alerts_symbol_active", "symbol", "is_active"),
        # At most one active alert per (user, symbol, type, threshold)
        Index(
            "uq_active_alert_per_user_symbol_type_threshold",
            "user_id",
            "symbol",
            "alert_type",
            "threshold",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self):
        return (
            f"<Alert(id={self.id}, user_id={self.user_id}, "
            f"symbol={self.symbol}, type={self.alert_type}, "
            f"threshold={self.threshold}, frequency={self.frequency}, "
            f"active={self.is_active})>"
        )
