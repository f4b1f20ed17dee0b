from twilio.rest import Client as TwilioClient
import redis
from redis import Redis as RedisClient
from sqlalchemy.orm import sessionmaker

from pricewatch.config import (
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    REDIS_HOSTNAME,
    REDIS_PORT,
)
from pricewatch.database import SessionLocal


def get_twilio_client() -> TwilioClient:
    """
    Provide a Twilio client instance.

    Returns:
        TwilioClient: A Twilio client configured with the application's credentials.
    """
    return TwilioClient(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)


def get_redis_client() -> RedisClient:
    """
    Provide a redis client instance.

    Return:
        RedisClient: A redis client configured with the application's host params.
    """
    return redis.StrictRedis(
        host=REDIS_HOSTNAME,
        port=REDIS_PORT,
        decode_responses=True,
    )


def get_session_factory() -> sessionmaker:
    """
    Provide the session factory the host process owns.

    Returns:
        sessionmaker: Factory bound to DATABASE_URL
    """
    return SessionLocal
