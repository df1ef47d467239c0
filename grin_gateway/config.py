# grin_gateway/config.py
import os


def _env_flag(name: str, default: str = "no") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


_database = os.getenv("POSTGRES_DB", "grin_gateway")
_user = os.getenv("POSTGRES_USER", "postgres")
_password = os.getenv("POSTGRES_PASSWORD", "postgres")
_host = os.getenv("POSTGRES_HOST", "localhost")
_port = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL", f"postgresql://{_user}:{_password}@{_host}:{_port}/{_database}"
)

GZIP_MINIMUM_SIZE = int(os.getenv("GZIP_MINIMUM_SIZE", "1000"))
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Guards the order store and manual reconciliation routes
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

STORE_BASE_URL = os.getenv("STORE_BASE_URL", "http://localhost:8000").rstrip("/")

SCHEDULER_ENABLED = _env_flag("SCHEDULER_ENABLED", "yes")
RECONCILIATION_INTERVAL_MINUTES = int(os.getenv("RECONCILIATION_INTERVAL_MINUTES", "60"))
RECONCILIATION_LOOKBACK_HOURS = int(os.getenv("RECONCILIATION_LOOKBACK_HOURS", "24"))

EXCHANGE_RATE_TIMEOUT = float(os.getenv("GRIN_EXCHANGE_RATE_TIMEOUT", "10"))
VERIFICATION_TIMEOUT = float(os.getenv("GRIN_VERIFICATION_TIMEOUT", "15"))

# Must stay below the 60s polling interval of the payment page
RATE_CACHE_TTL = int(os.getenv("RATE_CACHE_TTL", "30"))

# Client side polling interval for the payment page, in seconds
RATE_REFRESH_INTERVAL = 60
