import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./invoices.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8082)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    API_RELOAD = bool(data.get("API_RELOAD", False))

    # Currencies
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "KES")
    SUPPORTED_CURRENCIES = data.get(
        "SUPPORTED_CURRENCIES", ["KES", "USD", "EUR", "GBP", "TZS", "UGX", "NGN"]
    )

    # Payment gateway (outbound push + inbound webhook)
    GATEWAY_API_URL = data.get("GATEWAY_API_URL", "https://sandbox.intasend.com")
    GATEWAY_PUBLISHABLE_KEY = data.get("GATEWAY_PUBLISHABLE_KEY", "")
    GATEWAY_SECRET_KEY = data.get("GATEWAY_SECRET_KEY", "")
    GATEWAY_TIMEOUT_SECONDS = data.get("GATEWAY_TIMEOUT_SECONDS", 30.0)
    GATEWAY_WEBHOOK_SECRET = data.get("GATEWAY_WEBHOOK_SECRET", "")

    # Notification collaborator
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)
    NOTIFICATION_TIMEOUT_SECONDS = data.get("NOTIFICATION_TIMEOUT_SECONDS", 10.0)

    # Collection scheduler
    COLLECTION_ENABLED = bool(data.get("COLLECTION_ENABLED", True))
    COLLECTION_INTERVAL_SECONDS = data.get("COLLECTION_INTERVAL_SECONDS", 3600)  # Hourly
    COLLECTION_INVOICE_TIMEOUT_SECONDS = data.get("COLLECTION_INVOICE_TIMEOUT_SECONDS", 30.0)
    REMINDER_DAYS_BEFORE_DUE = data.get("REMINDER_DAYS_BEFORE_DUE", 3)
    REMINDER_ESCALATION_DAYS = data.get("REMINDER_ESCALATION_DAYS", [1, 7, 14, 30])
    REMINDER_DUE_SOON_WINDOW_HOURS = data.get("REMINDER_DUE_SOON_WINDOW_HOURS", 24)
    REMINDER_OVERDUE_WINDOW_HOURS = data.get("REMINDER_OVERDUE_WINDOW_HOURS", 48)
    LATE_FEE_PERCENT = data.get("LATE_FEE_PERCENT", 0)  # 0 = disabled
    LATE_FEE_CAP = data.get("LATE_FEE_CAP", 5000)
    LATE_FEE_GRACE_DAYS = data.get("LATE_FEE_GRACE_DAYS", 3)
    OVERDUE_HARD_THRESHOLD_DAYS = data.get("OVERDUE_HARD_THRESHOLD_DAYS", 60)

    # Dashboard
    DASHBOARD_RECENT_LIMIT = data.get("DASHBOARD_RECENT_LIMIT", 5)
