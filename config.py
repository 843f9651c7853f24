import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    MIGRATION_DB_URI = data.get("MIGRATION_DB_URI", "sqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    ORGANIZATION_NAME = data.get("ORGANIZATION_NAME", "Elverra Global")

    # Membership catalog (cached for CATALOG_CACHE_TTL_SECONDS)
    CATALOG_CACHE_TTL_SECONDS = data.get("CATALOG_CACHE_TTL_SECONDS", 300)

    # Orange Money
    ORANGE_MONEY_CLIENT_ID = data.get("ORANGE_MONEY_CLIENT_ID", None)
    ORANGE_MONEY_CLIENT_SECRET = data.get("ORANGE_MONEY_CLIENT_SECRET", None)
    ORANGE_MONEY_MERCHANT_KEY = data.get("ORANGE_MONEY_MERCHANT_KEY", None)
    ORANGE_MONEY_ENVIRONMENT = data.get("ORANGE_MONEY_ENVIRONMENT", "sandbox")
    ORANGE_MONEY_RETURN_URL = data.get("ORANGE_MONEY_RETURN_URL", None)
    ORANGE_MONEY_CANCEL_URL = data.get("ORANGE_MONEY_CANCEL_URL", None)
    ORANGE_MONEY_NOTIFY_URL = data.get("ORANGE_MONEY_NOTIFY_URL", None)

    # SAMA Money
    SAMA_MONEY_MERCHANT_CODE = data.get("SAMA_MONEY_MERCHANT_CODE", None)
    SAMA_MONEY_PUBLIC_KEY = data.get("SAMA_MONEY_PUBLIC_KEY", None)
    SAMA_MONEY_TRANSAC_HEADER = data.get("SAMA_MONEY_TRANSAC_HEADER", None)
    SAMA_MONEY_BASE_URL = data.get("SAMA_MONEY_BASE_URL", None)
    SAMA_MONEY_CALLBACK_URL = data.get("SAMA_MONEY_CALLBACK_URL", None)

    # CinetPay
    CINETPAY_API_KEY = data.get("CINETPAY_API_KEY", None)
    CINETPAY_SITE_ID = data.get("CINETPAY_SITE_ID", None)
    CINETPAY_NOTIFY_URL = data.get("CINETPAY_NOTIFY_URL", None)
    CINETPAY_RETURN_URL = data.get("CINETPAY_RETURN_URL", None)

    PAYMENT_GATEWAY_TIMEOUT_SECONDS = data.get("PAYMENT_GATEWAY_TIMEOUT_SECONDS", 10)
    PAYMENT_POLL_INTERVAL_SECONDS = data.get("PAYMENT_POLL_INTERVAL_SECONDS", 5)

    # Membership card expiry worker
    CARD_EXPIRY_ENABLED = bool(data.get("CARD_EXPIRY_ENABLED", True))
    CARD_EXPIRY_INTERVAL_SECONDS = data.get("CARD_EXPIRY_INTERVAL_SECONDS", 3600)  # Hourly

    # Pending payment reconciliation worker
    PAYMENT_RECONCILE_ENABLED = bool(data.get("PAYMENT_RECONCILE_ENABLED", True))
    PAYMENT_RECONCILE_INTERVAL_SECONDS = data.get("PAYMENT_RECONCILE_INTERVAL_SECONDS", 300)
    PAYMENT_RECONCILE_MIN_AGE_SECONDS = data.get("PAYMENT_RECONCILE_MIN_AGE_SECONDS", 120)
    PENDING_PAYMENT_TIMEOUT_HOURS = data.get("PENDING_PAYMENT_TIMEOUT_HOURS", 72)
