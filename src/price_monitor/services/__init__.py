"""Service layer: portfolio registry, position ledger, alert engine, scheduler, notifications."""
from price_monitor.services.alert_engine import AlertEngine, AlertPolicy
from price_monitor.services.ledger import PositionLedger
from price_monitor.services.notifications import (InMemoryNotificationSink,
                                                  NotificationSinkABC,
                                                  WebhookNotificationSink)
from price_monitor.services.portfolio_registry import PortfolioRegistry
from price_monitor.services.scheduler import (PriceCheckReport,
                                              PriceCheckScheduler,
                                              SchedulerConfig)

__all__ = [
    "AlertEngine",
    "AlertPolicy",
    "InMemoryNotificationSink",
    "NotificationSinkABC",
    "PortfolioRegistry",
    "PositionLedger",
    "PriceCheckReport",
    "PriceCheckScheduler",
    "SchedulerConfig",
    "WebhookNotificationSink",
]
