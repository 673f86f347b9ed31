"""Yahoo Finance quote source for stocks."""
import asyncio
from datetime import timedelta

import yfinance as yf

from price_monitor.providers.core import (QuotaTracker, QuoteCache,
                                          QuoteNotFoundError, QuoteSourceABC,
                                          round2)
from price_monitor.schemas import Quote, QuoteProvider, utcnow


class YFinanceProvider(QuoteSourceABC):
    """Quote source for stocks via Yahoo Finance.

    Uses the yfinance library; no API key required. Yahoo publishes no quota,
    so the tracker enforces a self-imposed budget (default 2000 calls/hour)
    to stay clear of its throttling.
    """

    def __init__(
        self,
        *,
        quota: QuotaTracker | None = None,
        cache: QuoteCache | None = None,
        max_concurrent_requests: int = 5,
    ) -> None:
        super().__init__(
            quota or QuotaTracker(limit=2000, window=timedelta(hours=1)),
            cache,
            max_concurrent_requests=max_concurrent_requests,
        )

    def _extract_quote(self, ticker: yf.Ticker, symbol: str) -> Quote:
        """Build a quote from fast_info, falling back to the full info payload."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            previous = info.get("previousClose")
            return self._build_quote(
                symbol,
                price=float(price),
                previous_close=previous,
                high=info.get("dayHigh"),
                low=info.get("dayLow"),
                open_=info.get("open"),
                volume=info.get("lastVolume"),
            )
        full = ticker.info
        price = full.get("currentPrice") or full.get("regularMarketPrice")
        if price is None:
            raise QuoteNotFoundError(symbol)
        return self._build_quote(
            symbol,
            price=float(price),
            previous_close=full.get("previousClose"),
            high=full.get("dayHigh"),
            low=full.get("dayLow"),
            open_=full.get("open"),
            volume=full.get("volume"),
        )

    def _build_quote(
        self,
        symbol: str,
        *,
        price: float,
        previous_close: float | None,
        high: float | None,
        low: float | None,
        open_: float | None,
        volume: float | None,
    ) -> Quote:
        change = change_percent = None
        if previous_close:
            change = price - float(previous_close)
            change_percent = change / float(previous_close) * 100
        return Quote(
            source=QuoteProvider.YFINANCE,
            ticker=symbol,
            price=round2(price),
            change=round2(change),
            change_percent=round2(change_percent),
            high=round2(high),
            low=round2(low),
            open=round2(open_),
            previous_close=round2(previous_close),
            volume=float(volume) if volume is not None else None,
            timestamp=utcnow(),
        )

    def _fetch_quote_sync(self, symbol: str) -> Quote:
        """Fetch a single quote synchronously (run in thread)."""
        return self._extract_quote(yf.Ticker(symbol), symbol)

    async def _fetch_quote(self, ticker: str) -> Quote:
        return await asyncio.to_thread(self._fetch_quote_sync, ticker)
