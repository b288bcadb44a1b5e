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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./subscriptions.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = data.get("API_RELOAD", False)
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")
    CREATE_TABLES_ON_STARTUP = bool(data.get("CREATE_TABLES_ON_STARTUP", False))

    # Bearer token the schedulers present on /jobs/*; unset = presence check only
    JOB_AUTH_TOKEN = data.get("JOB_AUTH_TOKEN", None)

    # Payment cycle creation
    CYCLE_CREATION_ENABLED = bool(data.get("CYCLE_CREATION_ENABLED", True))
    CYCLE_CREATION_WINDOW_DAYS = data.get("CYCLE_CREATION_WINDOW_DAYS", 10)
    CYCLE_CREATION_INTERVAL_SECONDS = data.get("CYCLE_CREATION_INTERVAL_SECONDS", 86400)  # Daily

    # Overdue invoice auto-cancellation
    AUTO_CANCEL_ENABLED = bool(data.get("AUTO_CANCEL_ENABLED", True))
    AUTO_CANCEL_INTERVAL_SECONDS = data.get("AUTO_CANCEL_INTERVAL_SECONDS", 86400)  # Daily

    # Renewal approval reminders
    RENEWAL_REMINDER_ENABLED = bool(data.get("RENEWAL_REMINDER_ENABLED", True))
    RENEWAL_REMINDER_INTERVAL_SECONDS = data.get("RENEWAL_REMINDER_INTERVAL_SECONDS", 86400)  # Daily

    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)
