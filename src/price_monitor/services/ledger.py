"""Position ledger: owns positions and the alerts they produce.

The ledger validates threshold invariants on creation and update, runs the
alert engine over a price map and persists every alert before handing it back
to the caller. Storage is delegated to a LedgerStore.
"""
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime

from price_monitor.exceptions import (NotFoundError, PersistenceError,
                                      ValidationError)
from price_monitor.providers.core.utils import normalize_ticker
from price_monitor.schemas import (Alert, LedgerStats, Position,
                                   ReferenceQuote, utcnow)
from price_monitor.services.alert_engine import AlertEngine
from price_monitor.store.base import LedgerStore
from price_monitor.utils import new_id

logger = logging.getLogger(__name__)


def validate_thresholds(
    reference_price: float,
    upper_threshold: float | None,
    lower_threshold: float | None,
) -> None:
    """Raise ValidationError unless lower < reference < upper for the thresholds given."""
    for name, value in (("Upper", upper_threshold), ("Lower", lower_threshold)):
        if value is not None and value <= 0:
            raise ValidationError(f"{name} threshold must be positive")
    if (
        upper_threshold is not None
        and lower_threshold is not None
        and upper_threshold <= lower_threshold
    ):
        raise ValidationError("Upper threshold must be greater than lower threshold")
    if upper_threshold is not None and upper_threshold <= reference_price:
        raise ValidationError("Upper threshold should be above the reference price")
    if lower_threshold is not None and lower_threshold >= reference_price:
        raise ValidationError("Lower threshold should be below the reference price")


class PositionLedger:
    """Creates, evaluates and retires positions on top of a LedgerStore.

    Safe to call from request threads and from the scheduler (via
    ``asyncio.to_thread``); a re-entrant lock serializes evaluation so the
    engine's edge state never races.
    """

    def __init__(
        self,
        store: LedgerStore,
        engine: AlertEngine | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._engine = engine or AlertEngine()
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def engine(self) -> AlertEngine:
        return self._engine

    def create_position(
        self,
        user_id: str,
        reference: ReferenceQuote,
        upper_threshold: float | None = None,
        lower_threshold: float | None = None,
    ) -> Position:
        """Open a monitored position against a reference quote.

        Raises:
            ValidationError: Thresholds violate lower < reference < upper.
        """
        if not user_id:
            raise ValidationError("userId is required")
        validate_thresholds(reference.price, upper_threshold, lower_threshold)
        position = Position(
            id=new_id("pos"),
            user_id=user_id,
            ticker=normalize_ticker(reference.ticker),
            reference_price=reference.price,
            reference_date=reference.reference_date,
            quantity=reference.quantity,
            total_value=reference.price * reference.quantity,
            upper_threshold=upper_threshold,
            lower_threshold=lower_threshold,
            is_monitoring=True,
            created_at=self._clock(),
        )
        with self._lock:
            stored = self._store.add_position(position)
        logger.info(
            "Created position %s for user %s: %s @ %.2f (upper=%s, lower=%s)",
            stored.id, user_id, stored.ticker, stored.reference_price,
            upper_threshold, lower_threshold,
        )
        return stored

    def update_position_thresholds(
        self,
        position_id: str,
        upper_threshold: float | None = None,
        lower_threshold: float | None = None,
    ) -> Position:
        """Overwrite both thresholds; a None clears that side.

        Raises:
            NotFoundError: Unknown position id.
            ValidationError: Thresholds violate the invariant for the stored reference price.
        """
        with self._lock:
            position = self._store.get_position(position_id)
            if position is None:
                raise NotFoundError(f"Position '{position_id}' not found")
            validate_thresholds(position.reference_price, upper_threshold, lower_threshold)
            position.upper_threshold = upper_threshold
            position.lower_threshold = lower_threshold
            position.last_checked = self._clock()
            updated = self._store.update_position(position)
            self._engine.forget(position_id)
        logger.info(
            "Updated thresholds for position %s (upper=%s, lower=%s)",
            position_id, upper_threshold, lower_threshold,
        )
        return updated

    def check_position_alerts(
        self,
        positions: Iterable[Position],
        current_prices: Mapping[str, float],
    ) -> list[Alert]:
        """Evaluate positions against prices and persist the resulting alerts.

        Only alerts that were stored are returned. An alert whose write fails
        is logged and dropped so it is never dispatched without a record.
        """
        positions = list(positions)
        with self._lock:
            now = self._clock()
            candidates = self._engine.evaluate(positions, current_prices, now)
            checked_ids = [p.id for p in positions if p.last_checked == now]
            try:
                self._store.mark_checked(checked_ids, now)
            except PersistenceError as exc:
                logger.warning("Failed to record check time for %d positions: %s", len(checked_ids), exc)
            stored: list[Alert] = []
            for alert in candidates:
                try:
                    stored.append(self._store.add_alert(alert))
                except PersistenceError as exc:
                    logger.error(
                        "Dropping %s alert for position %s (%s): %s",
                        alert.alert_type.value, alert.position_id, alert.ticker, exc,
                    )
        for alert in stored:
            logger.info(
                "Alert %s: %s %s at %.2f (threshold %.2f)",
                alert.id, alert.ticker, alert.alert_type.value,
                alert.trigger_price, alert.threshold,
            )
        return stored

    def delete_position(self, position_id: str) -> None:
        """Remove a position. Alerts it already produced stay visible per user.

        Raises:
            NotFoundError: Unknown position id.
        """
        with self._lock:
            if not self._store.delete_position(position_id):
                raise NotFoundError(f"Position '{position_id}' not found")
            self._engine.forget(position_id)
        logger.info("Deleted position %s", position_id)

    def mark_alert_as_read(self, alert_id: str) -> Alert:
        """Mark an alert read. Repeated calls are no-ops.

        Raises:
            NotFoundError: Unknown alert id.
        """
        with self._lock:
            alert = self._store.get_alert(alert_id)
            if alert is None:
                raise NotFoundError(f"Alert '{alert_id}' not found")
            if alert.is_read:
                return alert
            alert.is_read = True
            return self._store.update_alert(alert)

    def mark_notification_sent(self, alert_id: str) -> Alert:
        with self._lock:
            alert = self._store.get_alert(alert_id)
            if alert is None:
                raise NotFoundError(f"Alert '{alert_id}' not found")
            if alert.notification_sent:
                return alert
            alert.notification_sent = True
            return self._store.update_alert(alert)

    def get_position(self, position_id: str) -> Position | None:
        return self._store.get_position(position_id)

    def get_user_positions(self, user_id: str) -> list[Position]:
        return self._store.list_positions(user_id)

    def get_user_alerts(self, user_id: str) -> list[Alert]:
        return self._store.list_user_alerts(user_id)

    def get_stats(self) -> LedgerStats:
        return LedgerStats(
            total_positions=self._store.count_positions(),
            active_positions=self._store.count_positions(monitoring_only=True),
            total_alerts=self._store.count_alerts(),
            unread_alerts=self._store.count_alerts(unread_only=True),
        )

    def close(self) -> None:
        self._store.close()
