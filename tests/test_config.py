import asyncio
import os
import unittest
from datetime import timedelta
from unittest.mock import patch

from price_monitor.config import Settings
from price_monitor.db import SqlLedgerStore
from price_monitor.providers import FinnhubProvider, YFinanceProvider
from price_monitor.services import (AlertPolicy, InMemoryNotificationSink,
                                    SchedulerConfig, WebhookNotificationSink)
from price_monitor.services.factory import (create_ledger_store,
                                            create_notification_sink,
                                            create_quote_source)
from price_monitor.services.notifications import \
    build_service_paused_notification
from price_monitor.store import InMemoryLedgerStore


class SettingsTests(unittest.TestCase):
    def test_environment_overrides(self) -> None:
        env = {
            "QUOTE_SOURCE": "YFinance",
            "QUOTA_LIMIT": "120",
            "BATCH_SIZE": "10",
            "PRICE_CHECK_INTERVAL_SECONDS": "15",
            "ALERT_POLICY": "EDGE",
            "LEDGER_BACKEND": "sql",
            "SQL_ECHO": "true",
            "INBOX_SIZE": "20",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.quote_source, "yfinance")
        self.assertEqual(settings.quota_limit, 120)
        self.assertEqual(settings.alert_policy, AlertPolicy.EDGE)
        self.assertTrue(settings.sql_echo)
        self.assertEqual(settings.inbox_size, 20)
        self.assertFalse(settings.scheduler_autostart)

        config = SchedulerConfig.from_settings(settings)
        self.assertEqual(config.batch_size, 10)
        self.assertEqual(config.price_check_interval, timedelta(seconds=15))

    def test_production_autostarts_scheduler(self) -> None:
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}, clear=True):
            self.assertTrue(Settings.from_env().scheduler_autostart)

    def test_invalid_quote_source_is_rejected(self) -> None:
        with patch.dict(os.environ, {"QUOTE_SOURCE": "bloomberg"}, clear=True):
            with self.assertRaises(ValueError):
                Settings.from_env()


class FactoryTests(unittest.TestCase):
    def test_quote_source_selection(self) -> None:
        self.assertIsInstance(create_quote_source(Settings(finnhub_api_key="k")), FinnhubProvider)
        self.assertIsInstance(create_quote_source(Settings(quote_source="yfinance")), YFinanceProvider)

    def test_quote_source_quota_from_settings(self) -> None:
        source = create_quote_source(Settings(quote_source="yfinance", quota_limit=7))
        self.assertEqual(source.get_api_status().limit, 7)

    def test_ledger_store_selection(self) -> None:
        self.assertIsInstance(create_ledger_store(Settings()), InMemoryLedgerStore)
        store = create_ledger_store(Settings(ledger_backend="sql", database_url="sqlite://"))
        self.assertIsInstance(store, SqlLedgerStore)
        self.assertEqual(store.count_positions(), 0)
        store.close()

    def test_notification_sink_selection(self) -> None:
        self.assertIsInstance(create_notification_sink(Settings()), InMemoryNotificationSink)
        sink = create_notification_sink(Settings(notification_webhook_url="https://hooks.test/x"))
        self.assertIsInstance(sink, WebhookNotificationSink)

    def test_in_memory_sink_uses_configured_inbox_size(self) -> None:
        sink = create_notification_sink(Settings(inbox_size=1))
        notifications = [build_service_paused_notification("u1"), build_service_paused_notification("u1")]

        async def run() -> None:
            for notification in notifications:
                await sink.send(notification)

        asyncio.run(run())
        self.assertEqual([n.id for n in sink.list_for_user("u1")], [notifications[1].id])


if __name__ == "__main__":
    unittest.main()
