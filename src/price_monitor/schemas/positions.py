"""Position, alert and notification models."""
from datetime import datetime
from enum import Enum

from pydantic import Field

from price_monitor.schemas.base import CamelModel
from price_monitor.schemas.quotes import utcnow


class AlertType(str, Enum):
    UPPER_BREACH = "UPPER_BREACH"
    LOWER_BREACH = "LOWER_BREACH"


class NotificationType(str, Enum):
    ALERT = "ALERT"
    WARNING = "WARNING"
    SUCCESS = "SUCCESS"


class ReferenceQuote(CamelModel):
    """Reference price data a position is opened against (``historicalData`` on the wire)."""

    ticker: str = Field(min_length=1)
    price: float = Field(gt=0)
    quantity: float = Field(gt=0)
    requested_date_time: datetime | None = None
    actual_date_time: datetime | None = None
    total_value: float | None = None

    @property
    def reference_date(self) -> datetime:
        return self.actual_date_time or self.requested_date_time or utcnow()


class Alert(CamelModel):
    """Immutable record of one threshold breach.

    Only ``is_read`` and ``notification_sent`` change after creation.
    """

    id: str
    position_id: str
    user_id: str
    ticker: str
    alert_type: AlertType
    trigger_price: float
    reference_price: float
    threshold: float
    triggered_at: datetime = Field(default_factory=utcnow)
    is_read: bool = False
    notification_sent: bool = False


class Position(CamelModel):
    """A user's monitored holding with optional alert thresholds."""

    id: str
    user_id: str
    ticker: str
    reference_price: float = Field(gt=0)
    reference_date: datetime
    quantity: float = Field(gt=0)
    total_value: float
    upper_threshold: float | None = None
    lower_threshold: float | None = None
    is_monitoring: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    last_checked: datetime | None = None
    alerts: list[Alert] = Field(default_factory=list)


class Notification(CamelModel):
    """Message handed to a notification sink for delivery."""

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    ticker: str | None = None
    current_price: float | None = None
    target_price: float | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: bool = False
    is_push: bool = True


class LedgerStats(CamelModel):
    total_positions: int
    active_positions: int
    total_alerts: int
    unread_alerts: int
