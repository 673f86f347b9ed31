"""In-memory ledger store for tests and single-process deployments."""
import threading
from collections.abc import Iterable
from datetime import datetime

from price_monitor.schemas import Alert, Position
from price_monitor.exceptions import NotFoundError
from price_monitor.store.base import LedgerStore


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed LedgerStore guarded by a re-entrant lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._positions: dict[str, Position] = {}
        self._alerts: dict[str, Alert] = {}
        self._alerts_by_position: dict[str, list[str]] = {}
        # secondary index; alerts stay listed here after their position is deleted
        self._alerts_by_user: dict[str, list[str]] = {}

    def _with_alerts(self, position: Position) -> Position:
        alert_ids = self._alerts_by_position.get(position.id, [])
        return position.model_copy(
            deep=True,
            update={"alerts": [self._alerts[a].model_copy() for a in alert_ids]},
        )

    def add_position(self, position: Position) -> Position:
        with self._lock:
            stored = position.model_copy(deep=True, update={"alerts": []})
            self._positions[stored.id] = stored
            self._alerts_by_position.setdefault(stored.id, [])
            return self._with_alerts(stored)

    def get_position(self, position_id: str) -> Position | None:
        with self._lock:
            position = self._positions.get(position_id)
            return self._with_alerts(position) if position else None

    def list_positions(self, user_id: str) -> list[Position]:
        with self._lock:
            return [
                self._with_alerts(p) for p in self._positions.values() if p.user_id == user_id
            ]

    def update_position(self, position: Position) -> Position:
        with self._lock:
            if position.id not in self._positions:
                raise NotFoundError(f"Position '{position.id}' not found")
            self._positions[position.id] = position.model_copy(deep=True, update={"alerts": []})
            return self._with_alerts(self._positions[position.id])

    def delete_position(self, position_id: str) -> bool:
        with self._lock:
            if self._positions.pop(position_id, None) is None:
                return False
            self._alerts_by_position.pop(position_id, None)
            return True

    def mark_checked(self, position_ids: Iterable[str], checked_at: datetime) -> None:
        with self._lock:
            for position_id in position_ids:
                position = self._positions.get(position_id)
                if position is not None:
                    position.last_checked = checked_at

    def add_alert(self, alert: Alert) -> Alert:
        with self._lock:
            stored = alert.model_copy()
            self._alerts[stored.id] = stored
            if stored.position_id in self._positions:
                self._alerts_by_position.setdefault(stored.position_id, []).append(stored.id)
            self._alerts_by_user.setdefault(stored.user_id, []).append(stored.id)
            return stored.model_copy()

    def get_alert(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.get(alert_id)
            return alert.model_copy() if alert else None

    def update_alert(self, alert: Alert) -> Alert:
        with self._lock:
            if alert.id not in self._alerts:
                raise NotFoundError(f"Alert '{alert.id}' not found")
            self._alerts[alert.id] = alert.model_copy()
            return alert.model_copy()

    def list_user_alerts(self, user_id: str) -> list[Alert]:
        with self._lock:
            return [self._alerts[a].model_copy() for a in self._alerts_by_user.get(user_id, [])]

    def list_position_alerts(self, position_id: str) -> list[Alert]:
        with self._lock:
            return [
                self._alerts[a].model_copy()
                for a in self._alerts_by_position.get(position_id, [])
            ]

    def count_positions(self, *, monitoring_only: bool = False) -> int:
        with self._lock:
            if not monitoring_only:
                return len(self._positions)
            return sum(1 for p in self._positions.values() if p.is_monitoring)

    def count_alerts(self, *, unread_only: bool = False) -> int:
        with self._lock:
            if not unread_only:
                return len(self._alerts)
            return sum(1 for a in self._alerts.values() if not a.is_read)
