"""Abstract base class for quote sources."""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from price_monitor.providers.core.cache import QuoteCache
from price_monitor.providers.core.exceptions import (QuotaExceededError,
                                                     QuoteNotFoundError)
from price_monitor.providers.core.quota import QuotaTracker
from price_monitor.providers.core.utils import normalize_ticker, normalize_tickers
from price_monitor.schemas import HealthReport, HealthStatus, QuotaStatus, Quote

logger = logging.getLogger(__name__)


class QuoteSourceABC(ABC):
    """Base interface for rate/quota-limited quote sources.

    Subclasses implement ``_fetch_quote`` for a single, already-normalized
    ticker. The base class owns caching, quota accounting, failure tracking,
    batch fan-out and health classification so every adapter reports the
    same way to the scheduler.

    Subclasses must call super().__init__().
    """

    def __init__(
        self,
        quota: QuotaTracker | None = None,
        cache: QuoteCache | None = None,
        *,
        max_concurrent_requests: int = 5,
    ) -> None:
        self._quota = quota or QuotaTracker()
        self._cache = cache or QuoteCache()
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._consecutive_failures = 0
        self._subscriptions: dict[str, set[str]] = {}

    @abstractmethod
    async def _fetch_quote(self, ticker: str) -> Quote:
        """Fetch one quote from the upstream.

        Args:
            ticker: Normalized ticker (e.g., "AAPL").

        Returns:
            A Quote with the current price.

        Raises:
            QuotaExceededError: The upstream reported its rate limit.
            QuoteNotFoundError: The upstream has no price for the ticker.
        """

    async def get_quote(self, ticker: str) -> Quote:
        """Fetch the current quote for a ticker, serving fresh cache hits without quota use."""
        sym = normalize_ticker(ticker)
        cached = self._cache.get(sym)
        if cached is not None:
            return cached
        self._quota.acquire()
        async with self._semaphore:
            try:
                quote = await self._fetch_quote(sym)
            except (QuotaExceededError, QuoteNotFoundError):
                raise
            except Exception:
                self._consecutive_failures += 1
                raise
        self._consecutive_failures = 0
        self._cache.set(quote)
        return quote

    async def get_batch_quotes(self, tickers: Iterable[str]) -> dict[str, Quote]:
        """Fetch quotes for several tickers concurrently.

        Returns the subset that succeeded; a miss for one ticker is never an
        error for the batch.
        """
        syms = normalize_tickers(tickers)
        results = await asyncio.gather(
            *[self.get_quote(s) for s in syms],
            return_exceptions=True,
        )
        quotes: dict[str, Quote] = {}
        for sym, result in zip(syms, results):
            if isinstance(result, Quote):
                quotes[sym] = result
            elif isinstance(result, Exception):
                logger.debug("Quote for %s unavailable: %s", sym, result)
            else:
                raise result
        return quotes

    def get_api_status(self) -> QuotaStatus:
        """Current quota snapshot."""
        return self._quota.snapshot()

    async def health_check(self) -> HealthReport:
        """Classify the source: quota exhausted is unhealthy, recent upstream failures degraded."""
        quota = self.get_api_status()
        if quota.is_limit_reached:
            status = HealthStatus.UNHEALTHY
        elif self._consecutive_failures > 0:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY
        return HealthReport(
            status=status,
            api_quota=quota,
            cache_size=len(self._cache),
            consecutive_failures=self._consecutive_failures,
            monitored_users=len(self._subscriptions),
        )

    async def start_monitoring(self, user_id: str, tickers: list[str]) -> dict[str, Quote]:
        """Record a user's subscription and prime the cache with initial quotes."""
        syms = normalize_tickers(tickers)
        self._subscriptions[user_id] = set(syms)
        return await self.get_batch_quotes(syms)

    async def stop_monitoring(self, user_id: str) -> None:
        """Drop a user's subscription."""
        self._subscriptions.pop(user_id, None)

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "QuoteSourceABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
