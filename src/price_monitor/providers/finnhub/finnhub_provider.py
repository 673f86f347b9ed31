"""Finnhub quote source for stocks."""
import logging
import os

import httpx

from price_monitor.providers.core import (QuotaExceededError, QuotaTracker,
                                          QuoteCache, QuoteNotFoundError,
                                          QuoteSourceABC, round2)
from price_monitor.providers.finnhub.models import (FinnhubQuoteParams,
                                                    FinnhubQuoteResponse)
from price_monitor.schemas import Quote, QuoteProvider
from price_monitor.utils import parse_timestamp

logger = logging.getLogger(__name__)


class FinnhubProvider(QuoteSourceABC):
    """Quote source backed by the Finnhub REST API.

    The free tier allows 60 calls per minute; pass a QuotaTracker sized to
    the account's plan. An HTTP 429 from Finnhub marks the quota exhausted
    until the current window ends.
    """

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        quota: QuotaTracker | None = None,
        cache: QuoteCache | None = None,
        max_concurrent_requests: int = 5,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Finnhub provider.

        Args:
            api_key: Finnhub API key. Defaults to FINNHUB_API_KEY env var.
            base_url: Override for the REST endpoint.
            quota: Quota tracker; defaults to 60 calls per minute.
            cache: Quote cache; defaults to a 30 second TTL.
            max_concurrent_requests: Upper bound on simultaneous HTTP calls.
            timeout: Per-request HTTP timeout in seconds.
            client: Preconfigured client (tests inject a MockTransport client).
        """
        super().__init__(quota, cache, max_concurrent_requests=max_concurrent_requests)
        self._api_key = api_key or os.getenv("FINNHUB_API_KEY", "")
        if not self._api_key:
            logger.warning("FINNHUB_API_KEY is not set; Finnhub requests will be rejected")
        self._client = client or httpx.AsyncClient(
            base_url=base_url or self.BASE_URL,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    async def _fetch_quote(self, ticker: str) -> Quote:
        params = FinnhubQuoteParams(symbol=ticker, token=self._api_key).model_dump()
        response = await self._client.get("/quote", params=params)
        if response.status_code == 429:
            self._quota.mark_limit_reached()
            logger.warning("Finnhub rate limit exceeded while fetching %s", ticker)
            raise QuotaExceededError()
        response.raise_for_status()
        data = FinnhubQuoteResponse.model_validate(response.json() or {})
        if not data.current:
            raise QuoteNotFoundError(ticker)
        return Quote(
            source=QuoteProvider.FINNHUB,
            ticker=ticker,
            price=data.current,
            change=round2(data.change),
            change_percent=round2(data.change_percent),
            high=data.high,
            low=data.low,
            open=data.open,
            previous_close=data.previous_close,
            timestamp=parse_timestamp(data.timestamp),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
