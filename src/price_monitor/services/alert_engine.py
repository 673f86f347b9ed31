"""Threshold evaluation: decides which alerts a price map produces for a set of positions."""
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum

from price_monitor.schemas import Alert, AlertType, Position
from price_monitor.utils import new_id


class AlertPolicy(str, Enum):
    """When a sustained breach produces alerts.

    LEVEL fires on every evaluation while the threshold stays breached.
    EDGE fires once on the transition into the breach and re-arms when the
    condition clears.
    """

    LEVEL = "level"
    EDGE = "edge"


def build_alert(
    position: Position,
    alert_type: AlertType,
    trigger_price: float,
    threshold: float,
    triggered_at: datetime,
) -> Alert:
    """Create an alert for a position, copying its reference price."""
    return Alert(
        id=new_id("alert"),
        position_id=position.id,
        user_id=position.user_id,
        ticker=position.ticker,
        alert_type=alert_type,
        trigger_price=trigger_price,
        reference_price=position.reference_price,
        threshold=threshold,
        triggered_at=triggered_at,
    )


def breached_thresholds(position: Position, price: float) -> list[tuple[AlertType, float]]:
    """Thresholds the price satisfies. Both are tested independently."""
    breaches: list[tuple[AlertType, float]] = []
    if position.upper_threshold is not None and price >= position.upper_threshold:
        breaches.append((AlertType.UPPER_BREACH, position.upper_threshold))
    if position.lower_threshold is not None and price <= position.lower_threshold:
        breaches.append((AlertType.LOWER_BREACH, position.lower_threshold))
    return breaches


class AlertEngine:
    """Evaluates positions against current prices under an AlertPolicy.

    Not thread-safe on its own; the ledger serializes calls.
    """

    def __init__(self, policy: AlertPolicy = AlertPolicy.LEVEL) -> None:
        self.policy = AlertPolicy(policy)
        self._active: dict[str, set[AlertType]] = {}

    def evaluate(
        self,
        positions: Iterable[Position],
        current_prices: Mapping[str, float],
        now: datetime,
    ) -> list[Alert]:
        """Return new alerts and stamp ``last_checked`` on every evaluated position.

        Positions that are not monitoring, or whose ticker has no positive
        price in ``current_prices``, are skipped and left untouched.
        """
        alerts: list[Alert] = []
        for position in positions:
            if not position.is_monitoring:
                continue
            price = current_prices.get(position.ticker)
            if price is None or price <= 0:
                continue
            breaches = breached_thresholds(position, price)
            if self.policy is AlertPolicy.EDGE:
                already = self._active.get(position.id, set())
                self._active[position.id] = {alert_type for alert_type, _ in breaches}
                breaches = [b for b in breaches if b[0] not in already]
            for alert_type, threshold in breaches:
                alerts.append(build_alert(position, alert_type, price, threshold, now))
            position.last_checked = now
        return alerts

    def forget(self, position_id: str) -> None:
        """Drop edge-trigger state for a position (thresholds changed or position removed)."""
        self._active.pop(position_id, None)
