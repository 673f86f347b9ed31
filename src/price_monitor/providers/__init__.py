"""Quote sources for the price monitor.

Every source implements QuoteSourceABC and shares its quota accounting,
caching and health classification:

- FinnhubProvider: Finnhub REST API (quota-limited, API key required)
- YFinanceProvider: Yahoo Finance via yfinance (self-imposed budget)

Example:
    async with FinnhubProvider(api_key="...") as source:
        quotes = await source.get_batch_quotes(["AAPL", "MSFT"])
        print(source.get_api_status().remaining)
"""
from price_monitor.providers.core import QuoteSourceABC
from price_monitor.providers.finnhub import FinnhubProvider
from price_monitor.providers.yfinance import YFinanceProvider

__all__ = [
    "FinnhubProvider",
    "QuoteSourceABC",
    "YFinanceProvider",
]
