"""
Database Models

All SQLAlchemy models for the application.
"""

from pricewatch.models.user import User
from pricewatch.models.alert import Alert, AlertType, AlertFrequency
from pricewatch.models.notification import Notification

__all__ = ["User", "Alert", "AlertType", "AlertFrequency", "Notification"]
