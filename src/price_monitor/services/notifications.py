"""Notification sinks and the messages the monitor sends through them."""
import logging
import threading
from abc import ABC, abstractmethod
from collections import deque

import httpx

from price_monitor.schemas import (Alert, AlertType, Notification,
                                   NotificationType)
from price_monitor.utils import new_id

logger = logging.getLogger(__name__)


class NotificationSinkABC(ABC):
    """Delivers notifications to users. Delivery is at-most-once."""

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver one notification. Raises on delivery failure."""

    async def close(self) -> None:
        """Release transport resources. Override if needed."""


class InMemoryNotificationSink(NotificationSinkABC):
    """Keeps the most recent notifications in a bounded per-user inbox."""

    def __init__(self, max_per_user: int = 50) -> None:
        if max_per_user < 1:
            raise ValueError("max_per_user must be >= 1")
        self._max_per_user = max_per_user
        self._lock = threading.Lock()
        self._inbox: dict[str, deque[Notification]] = {}

    async def send(self, notification: Notification) -> None:
        with self._lock:
            inbox = self._inbox.get(notification.user_id)
            if inbox is None:
                inbox = self._inbox[notification.user_id] = deque(maxlen=self._max_per_user)
            inbox.append(notification)
        logger.debug("Queued notification %s for user %s", notification.id, notification.user_id)

    def list_for_user(self, user_id: str) -> list[Notification]:
        with self._lock:
            return list(self._inbox.get(user_id, []))

    def all(self) -> list[Notification]:
        with self._lock:
            return [n for inbox in self._inbox.values() for n in inbox]


class WebhookNotificationSink(NotificationSinkABC):
    """POSTs each notification as camelCase JSON to a webhook URL."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, notification: Notification) -> None:
        response = await self._client.post(
            self._url,
            json=notification.model_dump(mode="json", by_alias=True),
        )
        response.raise_for_status()

    async def close(self) -> None:
        await self._client.aclose()


def build_alert_notification(alert: Alert) -> Notification:
    """User-facing message for a threshold breach."""
    if alert.alert_type is AlertType.UPPER_BREACH:
        direction, side = "above", "upper"
    else:
        direction, side = "below", "lower"
    message = (
        f"{alert.ticker} is now {direction} your {side} threshold!\n"
        f"Current Price: ${alert.trigger_price:.2f}\n"
        f"Threshold: ${alert.threshold:.2f}\n"
        f"Reference Price: ${alert.reference_price:.2f}"
    )
    return Notification(
        id=new_id("notif"),
        user_id=alert.user_id,
        title=f"Position Alert: {alert.ticker}",
        message=message,
        type=NotificationType.ALERT,
        ticker=alert.ticker,
        current_price=alert.trigger_price,
        target_price=alert.threshold,
        timestamp=alert.triggered_at,
    )


def build_service_paused_notification(user_id: str) -> Notification:
    return Notification(
        id=new_id("notif"),
        user_id=user_id,
        title="Stock Monitoring Service Issue",
        message="Live updates temporarily paused: API usage limit reached, will resume after reset",
        type=NotificationType.WARNING,
    )


def build_service_resumed_notification(user_id: str) -> Notification:
    return Notification(
        id=new_id("notif"),
        user_id=user_id,
        title="Stock Monitoring Service Resumed",
        message="Live stock price updates have resumed. All monitoring features are now active.",
        type=NotificationType.SUCCESS,
    )
