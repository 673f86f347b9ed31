"""Core quote source abstractions."""
from price_monitor.providers.core.cache import QuoteCache
from price_monitor.providers.core.error_mapper import ProviderErrorMapper
from price_monitor.providers.core.exceptions import (QuotaExceededError,
                                                     QuoteNotFoundError,
                                                     QuoteSourceError)
from price_monitor.providers.core.quota import QuotaTracker
from price_monitor.providers.core.quote_source_abc import QuoteSourceABC
from price_monitor.providers.core.utils import round2

__all__ = [
    "ProviderErrorMapper",
    "QuotaExceededError",
    "QuotaTracker",
    "QuoteCache",
    "QuoteNotFoundError",
    "QuoteSourceABC",
    "QuoteSourceError",
    "round2",
]
