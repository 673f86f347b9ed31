"""Exceptions raised by quote sources."""


class QuoteSourceError(Exception):
    """Base class for quote source failures."""


class QuotaExceededError(QuoteSourceError):
    """The upstream API quota is exhausted until the window resets."""

    def __init__(self, message: str = "API rate limit exceeded", reset_time=None) -> None:
        super().__init__(message)
        self.reset_time = reset_time


class QuoteNotFoundError(QuoteSourceError, LookupError):
    """The upstream returned no usable price for a ticker."""

    def __init__(self, ticker: str) -> None:
        super().__init__(f"Ticker '{ticker}' not found or has no price data")
        self.ticker = ticker
