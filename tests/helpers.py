"""Fakes shared by the test modules."""
import asyncio
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import httpx

from price_monitor.exceptions import PersistenceError
from price_monitor.providers.core import (QuotaTracker, QuoteCache,
                                          QuoteNotFoundError, QuoteSourceABC)
from price_monitor.schemas import Alert, Quote, QuoteProvider, ReferenceQuote
from price_monitor.services import (InMemoryNotificationSink,
                                    NotificationSinkABC)
from price_monitor.store import InMemoryLedgerStore

T0 = datetime(2024, 1, 2, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeQuoteSource(QuoteSourceABC):
    """Serves prices from a dict; records every upstream fetch."""

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        *,
        quota: QuotaTracker | None = None,
        failing_tickers: Iterable[str] = (),
        failing_batches_with: Iterable[str] = (),
        delay: float = 0.0,
    ) -> None:
        super().__init__(quota or QuotaTracker(limit=1000), QuoteCache(ttl=timedelta(0)))
        self.prices = dict(prices or {})
        self.failing_tickers = set(failing_tickers)
        self.failing_batches_with = set(failing_batches_with)
        self.delay = delay
        self.calls: list[str] = []
        self.batches: list[list[str]] = []
        self.closed = False
        self.gate: asyncio.Event | None = None

    async def _fetch_quote(self, ticker: str) -> Quote:
        self.calls.append(ticker)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if ticker in self.failing_tickers:
            raise httpx.ConnectError("upstream unreachable")
        price = self.prices.get(ticker)
        if price is None:
            raise QuoteNotFoundError(ticker)
        return Quote(source=QuoteProvider.FINNHUB, ticker=ticker, price=price)

    async def get_batch_quotes(self, tickers: Iterable[str]) -> dict[str, Quote]:
        batch = list(tickers)
        self.batches.append(batch)
        if self.failing_batches_with & set(batch):
            raise RuntimeError("batch failed")
        return await super().get_batch_quotes(batch)

    async def close(self) -> None:
        self.closed = True


class FailingSink(NotificationSinkABC):
    async def send(self, notification) -> None:  # noqa: ANN001
        raise httpx.ConnectError("sink down")


class SelectiveFailingSink(InMemoryNotificationSink):
    """Rejects notifications for the given tickers, keeps the rest."""

    def __init__(self, failing_tickers: Iterable[str]) -> None:
        super().__init__()
        self.failing_tickers = set(failing_tickers)

    async def send(self, notification) -> None:  # noqa: ANN001
        if notification.ticker in self.failing_tickers:
            raise httpx.ConnectError("sink down")
        await super().send(notification)


class FlakyAlertStore(InMemoryLedgerStore):
    """Fails to persist alerts for the given tickers."""

    def __init__(self, failing_tickers: Iterable[str] = (), *, fail_mark_checked: bool = False) -> None:
        super().__init__()
        self.failing_tickers = set(failing_tickers)
        self.fail_mark_checked = fail_mark_checked

    def add_alert(self, alert: Alert) -> Alert:
        if alert.ticker in self.failing_tickers:
            raise PersistenceError("disk full")
        return super().add_alert(alert)

    def mark_checked(self, position_ids, checked_at) -> None:  # noqa: ANN001
        if self.fail_mark_checked:
            raise PersistenceError("disk full")
        super().mark_checked(position_ids, checked_at)


def reference(ticker: str = "AAPL", price: float = 150.0, quantity: float = 10.0) -> ReferenceQuote:
    return ReferenceQuote(ticker=ticker, price=price, quantity=quantity, actual_date_time=T0)


async def no_sleep(_: float) -> None:
    await asyncio.sleep(0)
