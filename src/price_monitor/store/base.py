"""Repository interface for positions and alerts."""
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from price_monitor.schemas import Alert, Position


class LedgerStore(ABC):
    """Create/read/update/delete for positions and the alerts they produce.

    Consistency contract: read-your-own-writes. A write that returned is
    visible to every later read on the same store. Returned models are
    copies; mutating them never changes stored state.

    Alerts survive the deletion of their position and stay reachable through
    ``list_user_alerts``; ``list_position_alerts`` only answers for positions
    that still exist.

    Implementations raise PersistenceError when the backend fails.
    """

    @abstractmethod
    def add_position(self, position: Position) -> Position: ...

    @abstractmethod
    def get_position(self, position_id: str) -> Position | None:
        """Return the position with its alerts attached, or None."""

    @abstractmethod
    def list_positions(self, user_id: str) -> list[Position]: ...

    @abstractmethod
    def update_position(self, position: Position) -> Position:
        """Overwrite a stored position. Raises NotFoundError if it is absent."""

    @abstractmethod
    def delete_position(self, position_id: str) -> bool:
        """Remove a position. Returns whether it existed."""

    @abstractmethod
    def mark_checked(self, position_ids: Iterable[str], checked_at: datetime) -> None:
        """Stamp ``last_checked`` on existing positions; unknown ids are ignored."""

    @abstractmethod
    def add_alert(self, alert: Alert) -> Alert: ...

    @abstractmethod
    def get_alert(self, alert_id: str) -> Alert | None: ...

    @abstractmethod
    def update_alert(self, alert: Alert) -> Alert:
        """Overwrite a stored alert. Raises NotFoundError if it is absent."""

    @abstractmethod
    def list_user_alerts(self, user_id: str) -> list[Alert]:
        """Alerts for a user in creation order."""

    @abstractmethod
    def list_position_alerts(self, position_id: str) -> list[Alert]: ...

    @abstractmethod
    def count_positions(self, *, monitoring_only: bool = False) -> int: ...

    @abstractmethod
    def count_alerts(self, *, unread_only: bool = False) -> int: ...

    def close(self) -> None:
        """Release backend resources. Override if needed."""
