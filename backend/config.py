"""
Runtime configuration for the GigBoard backend, read from the environment.
"""
import json
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    raw = raw.strip()
    if raw.startswith("["):
        return [str(item) for item in json.loads(raw)]
    return [item.strip() for item in raw.split(",") if item.strip()]


# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gigboard.db")
SQLITE_BUSY_TIMEOUT_MS = max(1000, int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")))

# HTTP
API_VERSION = "1.0.0"
API_PREFIX = "/api"
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_RELOAD = _env_bool("API_RELOAD", "false")
CORS_ORIGINS = _env_list("CORS_ORIGINS", ["http://localhost:5173", "http://localhost:3000"])

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Recommendations
RECOMMENDATION_LIMIT_DEFAULT = max(1, int(os.getenv("RECOMMENDATION_LIMIT_DEFAULT", "10")))

# Notifications
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL", "")
NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS = max(
    0.5, float(os.getenv("NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS", "5.0"))
)

# Rate limiting
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", "true")
APPLY_RATE_LIMIT = os.getenv("APPLY_RATE_LIMIT", "20/minute")
MESSAGE_RATE_LIMIT = os.getenv("MESSAGE_RATE_LIMIT", "60/minute")

# Seeding
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Platform Admin")
