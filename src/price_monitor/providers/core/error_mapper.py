"""Domain concept for mapping quote source exceptions to HTTP responses."""
import asyncio
from dataclasses import dataclass

import httpx

from price_monitor.providers.core.exceptions import (QuotaExceededError,
                                                     QuoteNotFoundError)


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps quote source exceptions to HTTP (status_code, detail).

    Used by the exception handlers so upstream failures surface with
    consistent status codes.
    """

    resource_name: str = "Ticker"
    api_name: str = "Quote API"

    def to_http(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> tuple[int, str]:
        """Map a quote source exception to (status_code, detail).

        Args:
            exc: The exception raised by the quote source.
            symbol: Optional ticker to include in the detail (e.g. "AAPL").

        Returns:
            (status_code, detail) for the error envelope.
        """
        if isinstance(exc, QuotaExceededError):
            return (429, f"{self.api_name} usage limit reached, retry after reset")
        if isinstance(exc, QuoteNotFoundError):
            return (404, f"{self.resource_name} '{exc.ticker}' not found")
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 404:
                detail = (
                    f"{self.resource_name} not found"
                    if symbol is None
                    else f"{self.resource_name} '{symbol}' not found"
                )
                return (404, detail)
            if status == 429:
                return (429, f"{self.api_name} usage limit reached, retry after reset")
            return (502, f"{self.api_name} error")
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
            detail = "Request timed out"
            if symbol is not None:
                detail = f"Request to {self.api_name} timed out for '{symbol}'"
            return (504, detail)
        if isinstance(exc, httpx.TransportError):
            return (502, f"{self.api_name} unreachable")
        return (500, "Internal server error")
