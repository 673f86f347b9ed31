"""Finnhub quote source."""
from price_monitor.providers.finnhub.finnhub_provider import FinnhubProvider

__all__ = ["FinnhubProvider"]
