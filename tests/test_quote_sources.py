import asyncio
import unittest
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import httpx

from helpers import FakeClock, FakeQuoteSource

from price_monitor.providers import FinnhubProvider, YFinanceProvider
from price_monitor.providers.core import (QuotaExceededError, QuotaTracker,
                                          QuoteCache, QuoteNotFoundError)
from price_monitor.schemas import HealthStatus, Quote, QuoteProvider


class QuotaTrackerTests(unittest.TestCase):
    def test_exhaustion_and_lazy_window_reset(self) -> None:
        clock = FakeClock()
        quota = QuotaTracker(limit=2, window=timedelta(minutes=1), clock=clock)
        quota.acquire()
        quota.acquire()
        with self.assertRaises(QuotaExceededError):
            quota.acquire()
        status = quota.snapshot()
        self.assertTrue(status.is_limit_reached)
        self.assertEqual(status.remaining, 0)

        clock.advance(seconds=61)
        status = quota.snapshot()
        self.assertFalse(status.is_limit_reached)
        self.assertEqual(status.used, 0)
        self.assertEqual(status.remaining, 2)

    def test_mark_limit_reached_holds_until_window_ends(self) -> None:
        clock = FakeClock()
        quota = QuotaTracker(limit=60, clock=clock)
        quota.mark_limit_reached()
        self.assertTrue(quota.snapshot().is_limit_reached)
        self.assertEqual(quota.snapshot().used, 60)
        clock.advance(minutes=1)
        self.assertFalse(quota.snapshot().is_limit_reached)

    def test_limit_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            QuotaTracker(limit=0)


class QuoteCacheTests(unittest.TestCase):
    def test_entries_expire_after_ttl(self) -> None:
        clock = FakeClock()
        cache = QuoteCache(ttl=timedelta(seconds=30), clock=clock)
        cache.set(Quote(source=QuoteProvider.FINNHUB, ticker="AAPL", price=1.0))
        self.assertIsNotNone(cache.get("AAPL"))
        clock.advance(seconds=30)
        self.assertIsNone(cache.get("AAPL"))
        self.assertEqual(len(cache), 1)


class QuoteSourceBaseTests(unittest.TestCase):
    def test_batch_returns_successful_subset(self) -> None:
        source = FakeQuoteSource({"AAPL": 100.0, "MSFT": 200.0}, failing_tickers={"MSFT"})
        quotes = asyncio.run(source.get_batch_quotes(["aapl", "MSFT", "NOPE", "AAPL"]))
        self.assertEqual(list(quotes), ["AAPL"])
        self.assertEqual(source.calls, ["AAPL", "MSFT", "NOPE"])

    def test_cache_hit_spends_no_quota(self) -> None:
        quota = QuotaTracker(limit=1)

        class CachingSource(FakeQuoteSource):
            def __init__(self) -> None:
                super().__init__({"AAPL": 100.0}, quota=quota)
                self._cache = QuoteCache(ttl=timedelta(minutes=5))

        source = CachingSource()

        async def run() -> None:
            await source.get_quote("AAPL")
            await source.get_quote("AAPL")

        asyncio.run(run())
        self.assertEqual(source.calls, ["AAPL"])
        self.assertEqual(quota.snapshot().used, 1)

    def test_health_classification(self) -> None:
        quota = QuotaTracker(limit=10)
        source = FakeQuoteSource({"AAPL": 1.0}, quota=quota, failing_tickers={"BAD"})

        async def run() -> list[HealthStatus]:
            statuses = [(await source.health_check()).status]
            await source.get_batch_quotes(["BAD"])
            statuses.append((await source.health_check()).status)
            await source.get_quote("AAPL")
            statuses.append((await source.health_check()).status)
            quota.mark_limit_reached()
            statuses.append((await source.health_check()).status)
            return statuses

        self.assertEqual(
            asyncio.run(run()),
            [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.HEALTHY, HealthStatus.UNHEALTHY],
        )

    def test_monitoring_subscriptions(self) -> None:
        source = FakeQuoteSource({"AAPL": 1.0})

        async def run() -> tuple[int, int]:
            primed = await source.start_monitoring("u1", ["aapl"])
            users = (await source.health_check()).monitored_users
            await source.stop_monitoring("u1")
            return len(primed), users - (await source.health_check()).monitored_users

        self.assertEqual(asyncio.run(run()), (1, 1))


def _finnhub(handler, quota: QuotaTracker | None = None) -> FinnhubProvider:  # noqa: ANN001
    client = httpx.AsyncClient(
        base_url="https://finnhub.test/api/v1", transport=httpx.MockTransport(handler)
    )
    return FinnhubProvider("test-key", quota=quota, client=client)


class FinnhubProviderTests(unittest.TestCase):
    def test_quote_is_parsed(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "c": 171.25, "d": 2.5, "dp": 1.4815, "h": 172.0, "l": 168.0,
                "o": 169.0, "pc": 168.75, "t": 1704207600,
            })

        quote = asyncio.run(_finnhub(handler).get_quote("aapl"))

        self.assertEqual(seen[0].url.path, "/api/v1/quote")
        self.assertEqual(seen[0].url.params["symbol"], "AAPL")
        self.assertEqual(seen[0].url.params["token"], "test-key")
        self.assertEqual(quote.ticker, "AAPL")
        self.assertEqual(quote.price, 171.25)
        self.assertEqual(quote.change_percent, 1.48)
        self.assertEqual(quote.previous_close, 168.75)
        self.assertEqual(quote.timestamp.year, 2024)

    def test_zero_price_means_unknown_ticker(self) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"c": 0, "d": None, "dp": None, "t": 0})

        with self.assertRaises(QuoteNotFoundError):
            asyncio.run(_finnhub(handler).get_quote("ZZZZ"))

    def test_rate_limit_marks_quota_exhausted(self) -> None:
        quota = QuotaTracker(limit=60)

        def handler(_: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": "API limit reached"})

        provider = _finnhub(handler, quota)
        with self.assertRaises(QuotaExceededError):
            asyncio.run(provider.get_quote("AAPL"))
        self.assertTrue(provider.get_api_status().is_limit_reached)
        self.assertEqual(asyncio.run(provider.health_check()).status, HealthStatus.UNHEALTHY)

    def test_server_error_counts_as_failure(self) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        provider = _finnhub(handler)
        with self.assertRaises(httpx.HTTPStatusError):
            asyncio.run(provider.get_quote("AAPL"))
        report = asyncio.run(provider.health_check())
        self.assertEqual(report.consecutive_failures, 1)
        self.assertEqual(report.status, HealthStatus.DEGRADED)


class YFinanceProviderTests(unittest.TestCase):
    def test_fast_info_quote(self) -> None:
        ticker = SimpleNamespace(
            fast_info={"lastPrice": 110.0, "previousClose": 100.0, "dayHigh": 111.0, "lastVolume": 5000},
            info={},
        )
        with patch("price_monitor.providers.yfinance.y_finance_provider.yf.Ticker", return_value=ticker):
            quote = asyncio.run(YFinanceProvider().get_quote("msft"))
        self.assertEqual(quote.source, QuoteProvider.YFINANCE)
        self.assertEqual(quote.ticker, "MSFT")
        self.assertEqual(quote.price, 110.0)
        self.assertEqual(quote.change, 10.0)
        self.assertEqual(quote.change_percent, 10.0)
        self.assertEqual(quote.volume, 5000.0)

    def test_missing_price_is_not_found(self) -> None:
        ticker = SimpleNamespace(fast_info={}, info={})
        with patch("price_monitor.providers.yfinance.y_finance_provider.yf.Ticker", return_value=ticker):
            with self.assertRaises(QuoteNotFoundError):
                asyncio.run(YFinanceProvider().get_quote("ZZZZ"))


if __name__ == "__main__":
    unittest.main()
