"""Factories that turn Settings into concrete collaborators."""
import logging
from datetime import timedelta

from price_monitor.config import Settings
from price_monitor.db import SqlLedgerStore, create_db_engine, init_db
from price_monitor.providers import FinnhubProvider, QuoteSourceABC, YFinanceProvider
from price_monitor.providers.core import QuotaTracker, QuoteCache
from price_monitor.services.notifications import (InMemoryNotificationSink,
                                                  NotificationSinkABC,
                                                  WebhookNotificationSink)
from price_monitor.store import InMemoryLedgerStore, LedgerStore

logger = logging.getLogger(__name__)


def create_quote_source(settings: Settings) -> QuoteSourceABC:
    """Build the configured quote source with its quota budget and cache.

    Args:
        settings: Application settings (QUOTE_SOURCE, QUOTA_*, QUOTE_CACHE_TTL_SECONDS).

    Returns:
        A FinnhubProvider or YFinanceProvider.
    """
    quota = QuotaTracker(
        limit=settings.quota_limit,
        window=timedelta(seconds=settings.quota_window_seconds),
    )
    cache = QuoteCache(ttl=timedelta(seconds=settings.quote_cache_ttl_seconds))
    if settings.quote_source == "yfinance":
        logger.info("Using Yahoo Finance quote source")
        return YFinanceProvider(
            quota=quota,
            cache=cache,
            max_concurrent_requests=settings.max_concurrent_requests,
        )
    logger.info("Using Finnhub quote source at %s", settings.finnhub_api_url)
    return FinnhubProvider(
        settings.finnhub_api_key or None,
        base_url=settings.finnhub_api_url,
        quota=quota,
        cache=cache,
        max_concurrent_requests=settings.max_concurrent_requests,
        timeout=settings.fetch_timeout_seconds,
    )


def create_ledger_store(settings: Settings) -> LedgerStore:
    """In-memory store by default; SQL store when LEDGER_BACKEND=sql."""
    if settings.ledger_backend == "sql":
        engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
        init_db(engine)
        logger.info("Using SQL ledger store")
        return SqlLedgerStore(engine)
    return InMemoryLedgerStore()


def create_notification_sink(settings: Settings) -> NotificationSinkABC:
    if settings.notification_webhook_url:
        logger.info("Delivering notifications to webhook %s", settings.notification_webhook_url)
        return WebhookNotificationSink(settings.notification_webhook_url)
    return InMemoryNotificationSink(max_per_user=settings.inbox_size)
