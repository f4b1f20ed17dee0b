import os

# Twilio Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER")

# Redis Configuration
REDIS_HOSTNAME = os.getenv("REDIS_HOSTNAME", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pricewatch.db")

# Celery Configuration
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", f"redis://{REDIS_HOSTNAME}:{REDIS_PORT}/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)

# Quote Provider Configuration (Finnhub)
FINNHUB_API_KEY = os.getenv("FINNHUB_API_KEY")
FINNHUB_BASE_URL = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
QUOTE_TIMEOUT = float(os.getenv("QUOTE_TIMEOUT", "10"))  # Per-request timeout (seconds)
QUOTE_MAX_RETRIES = int(os.getenv("QUOTE_MAX_RETRIES", "2"))  # Retries after the first attempt
QUOTE_BACKOFF_SECONDS = float(os.getenv("QUOTE_BACKOFF_SECONDS", "0.5"))  # Doubles per retry
STOCK_PRICE_CACHE_TTL = int(os.getenv("STOCK_PRICE_CACHE_TTL", "0"))  # Redis cache TTL (seconds), 0 disables

# Alert Configuration
ALERT_CHECK_INTERVAL = int(os.getenv("ALERT_CHECK_INTERVAL", "120"))  # Celery beat interval (seconds)
ALERT_BATCH_SIZE = int(os.getenv("ALERT_BATCH_SIZE", "10"))  # Symbols evaluated concurrently per batch
ALERT_CYCLE_TIMEOUT = float(os.getenv("ALERT_CYCLE_TIMEOUT", "100"))  # Cycle deadline (seconds), 0 disables
IDEMPOTENCY_WINDOW_SECONDS = int(os.getenv("IDEMPOTENCY_WINDOW_SECONDS", "60"))
IDEMPOTENCY_KEY_TTL = int(os.getenv("IDEMPOTENCY_KEY_TTL", "86400"))  # Delivery dedupe TTL (seconds)

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_PATH = os.getenv("LOG_PATH", "logs/app.log")
