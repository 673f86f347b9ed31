"""Pydantic schemas for API and runtime use."""
from price_monitor.schemas.base import CamelModel
from price_monitor.schemas.positions import (Alert, AlertType, LedgerStats,
                                             Notification, NotificationType,
                                             Position, ReferenceQuote)
from price_monitor.schemas.quotes import (HealthReport, HealthStatus,
                                          QuotaStatus, Quote, QuoteProvider,
                                          utcnow)
from price_monitor.schemas.requests import (CreatePositionRequest,
                                            ForcePriceCheckRequest,
                                            MarkAlertReadRequest,
                                            MonitoringStartRequest,
                                            MonitoringStopRequest,
                                            PortfolioRequest,
                                            SchedulerConfigUpdate,
                                            UpdateThresholdsRequest)

__all__ = [
    "Alert",
    "AlertType",
    "CamelModel",
    "CreatePositionRequest",
    "ForcePriceCheckRequest",
    "HealthReport",
    "HealthStatus",
    "LedgerStats",
    "MarkAlertReadRequest",
    "MonitoringStartRequest",
    "MonitoringStopRequest",
    "Notification",
    "NotificationType",
    "PortfolioRequest",
    "Position",
    "QuotaStatus",
    "Quote",
    "QuoteProvider",
    "ReferenceQuote",
    "SchedulerConfigUpdate",
    "UpdateThresholdsRequest",
    "utcnow",
]
