import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: str) -> list[str]:
    raw = value if value is not None else default
    return [item.strip() for item in raw.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduler.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)
DATABASE_POOL_TIMEOUT_SECONDS = float(os.getenv("DATABASE_POOL_TIMEOUT_SECONDS", "5"))

# Empty means booked slots are read from the local appointments table.
APPOINTMENT_SERVICE_URL = os.getenv("APPOINTMENT_SERVICE_URL", "").rstrip("/")
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "5"))

BOOKING_LEAD_TIME_MINUTES = int(os.getenv("BOOKING_LEAD_TIME_MINUTES", "30"))
DEFAULT_SEARCH_DAYS = int(os.getenv("DEFAULT_SEARCH_DAYS", "14"))
MAX_SEARCH_DAYS = int(os.getenv("MAX_SEARCH_DAYS", "60"))

WEEKDAY_ENCODING_LEGACY = "legacy"
WEEKDAY_ENCODING_UNIFORM = "uniform"
WEEKDAY_ENCODING = os.getenv("WEEKDAY_ENCODING", WEEKDAY_ENCODING_LEGACY).strip().lower()

REDIS_URL = os.getenv("REDIS_URL", "")
APPOINTMENT_CACHE_TTL_SECONDS = int(os.getenv("APPOINTMENT_CACHE_TTL_SECONDS", "30"))

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), "http://localhost:4200")


def validate_runtime_config() -> None:
    if WEEKDAY_ENCODING not in {WEEKDAY_ENCODING_LEGACY, WEEKDAY_ENCODING_UNIFORM}:
        raise RuntimeError(
            f"WEEKDAY_ENCODING must be '{WEEKDAY_ENCODING_LEGACY}' or '{WEEKDAY_ENCODING_UNIFORM}'."
        )
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")
