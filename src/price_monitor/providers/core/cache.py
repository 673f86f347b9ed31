"""Short-lived cache of the latest quote per ticker."""
from collections.abc import Callable
from datetime import datetime, timedelta

from price_monitor.schemas import Quote, utcnow


class QuoteCache:
    """Latest quote per ticker, valid for ``ttl`` after it was stored."""

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=30),
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[datetime, Quote]] = {}

    def get(self, ticker: str) -> Quote | None:
        """Return the cached quote if it is still fresh, else None."""
        entry = self._entries.get(ticker)
        if entry is None:
            return None
        stored_at, quote = entry
        if self._clock() - stored_at >= self._ttl:
            return None
        return quote

    def set(self, quote: Quote) -> None:
        self._entries[quote.ticker] = (self._clock(), quote)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
