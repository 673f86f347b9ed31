"""Application settings read from the environment (and an optional .env file)."""
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from price_monitor.services.alert_engine import AlertPolicy


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration. Field names mirror the upper-case env vars."""

    app_name: str = "Price Alert Monitor"
    environment: str = "development"
    log_level: str = "INFO"

    quote_source: str = Field(default="finnhub", pattern="^(finnhub|yfinance)$")
    finnhub_api_key: str = ""
    finnhub_api_url: str = "https://finnhub.io/api/v1"
    quota_limit: int = Field(default=60, ge=1)
    quota_window_seconds: float = Field(default=60.0, gt=0)
    quote_cache_ttl_seconds: float = Field(default=30.0, ge=0)
    max_concurrent_requests: int = Field(default=5, ge=1)

    ledger_backend: str = Field(default="memory", pattern="^(memory|sql)$")
    database_url: str = "sqlite:///./price_monitor.db"
    sql_echo: bool = False

    notification_webhook_url: str = ""
    inbox_size: int = Field(default=50, ge=1)

    scheduler_autostart: bool = False
    price_check_interval_seconds: float = 30.0
    health_check_interval_seconds: float = 300.0
    quota_reset_interval_seconds: float = 3600.0
    batch_size: int = 5
    batch_delay_seconds: float = 1.0
    fetch_timeout_seconds: float = 10.0
    alert_policy: AlertPolicy = AlertPolicy.LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        environment = _env("ENVIRONMENT", "development")
        defaults = cls()
        return cls(
            app_name=_env("APP_NAME", defaults.app_name),
            environment=environment,
            log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
            quote_source=_env("QUOTE_SOURCE", defaults.quote_source).lower(),
            finnhub_api_key=_env("FINNHUB_API_KEY"),
            finnhub_api_url=_env("FINNHUB_API_URL", defaults.finnhub_api_url),
            quota_limit=_env("QUOTA_LIMIT", str(defaults.quota_limit)),
            quota_window_seconds=_env("QUOTA_WINDOW_SECONDS", str(defaults.quota_window_seconds)),
            quote_cache_ttl_seconds=_env(
                "QUOTE_CACHE_TTL_SECONDS", str(defaults.quote_cache_ttl_seconds)
            ),
            max_concurrent_requests=_env(
                "MAX_CONCURRENT_REQUESTS", str(defaults.max_concurrent_requests)
            ),
            ledger_backend=_env("LEDGER_BACKEND", defaults.ledger_backend).lower(),
            database_url=_env("DATABASE_URL", defaults.database_url),
            sql_echo=_env_bool("SQL_ECHO"),
            notification_webhook_url=_env("NOTIFICATION_WEBHOOK_URL"),
            inbox_size=_env("INBOX_SIZE", str(defaults.inbox_size)),
            scheduler_autostart=_env_bool(
                "SCHEDULER_AUTOSTART", environment.lower() == "production"
            ),
            price_check_interval_seconds=_env(
                "PRICE_CHECK_INTERVAL_SECONDS", str(defaults.price_check_interval_seconds)
            ),
            health_check_interval_seconds=_env(
                "HEALTH_CHECK_INTERVAL_SECONDS", str(defaults.health_check_interval_seconds)
            ),
            quota_reset_interval_seconds=_env(
                "QUOTA_RESET_INTERVAL_SECONDS", str(defaults.quota_reset_interval_seconds)
            ),
            batch_size=_env("BATCH_SIZE", str(defaults.batch_size)),
            batch_delay_seconds=_env("BATCH_DELAY_SECONDS", str(defaults.batch_delay_seconds)),
            fetch_timeout_seconds=_env(
                "FETCH_TIMEOUT_SECONDS", str(defaults.fetch_timeout_seconds)
            ),
            alert_policy=_env("ALERT_POLICY", defaults.alert_policy.value).lower(),
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process. Values in .env never override the real environment."""
    load_dotenv()
    return Settings.from_env()
