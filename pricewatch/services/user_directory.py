"""
User Directory

Resolves the owner of an alert to the contact address used for delivery.
Alert.user_id always holds the canonical users.id, so a single lookup is
enough.
"""

from typing import Optional

from sqlalchemy.orm import sessionmaker

from pricewatch.models.user import User
from pricewatch.utils.logger import create_logger

logger = create_logger(__name__)


class UserDirectory:
    """Looks up user contact addresses."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def resolve_contact(self, user_id: int) -> Optional[str]:
        """
        Resolve a user id to a WhatsApp contact address.

        Args:
            user_id: Owner of an alert

        Returns:
            str: Phone number, or None if the user is missing, inactive or has no number
        """
        with self.session_factory() as db:
            user = db.get(User, user_id)

            if not user or not user.is_active or not user.phone_number:
                logger.debug(f"No contact address for user {user_id}")
                return None

            return user.phone_number
