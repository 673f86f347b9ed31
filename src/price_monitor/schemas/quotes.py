"""Quote source runtime models: quotes, quota snapshots and health reports."""
from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from price_monitor.schemas.base import CamelModel


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class QuoteProvider(str, Enum):
    """Upstream that produced a quote."""

    FINNHUB = "finnhub"
    YFINANCE = "yfinance"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class Quote(CamelModel):
    """Current quote for one ticker."""

    source: QuoteProvider
    ticker: str
    price: float
    change: float | None = None
    change_percent: float | None = None
    high: float | None = None
    low: float | None = None
    open: float | None = None
    previous_close: float | None = None
    volume: float | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class QuotaStatus(CamelModel):
    """Read-only snapshot of the upstream API quota."""

    used: int
    limit: int
    remaining: int
    reset_time: datetime
    is_limit_reached: bool
    last_updated: datetime


class HealthReport(CamelModel):
    """Result of a quote source health check."""

    status: HealthStatus
    api_quota: QuotaStatus
    cache_size: int = 0
    consecutive_failures: int = 0
    monitored_users: int = 0
