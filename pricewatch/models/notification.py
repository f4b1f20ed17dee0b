"""
Notification Model

In-app record of a fired price alert. Created once per successful claim;
only the read/unread flag changes afterwards, and not by the engine.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Index

from pricewatch.database import Base
from pricewatch.utils.time import utcnow

PRICE_ALERT = "price_alert"


class Notification(Base):
    """Notification model shown to users."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, default=PRICE_ALERT, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    symbol = Column(String, nullable=True, index=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )

    def __repr__(self):
        return (
            f"<Notification(id={self.id}, user_id={self.user_id}, "
            f"symbol={self.symbol}, read={self.is_read})>"
        )
