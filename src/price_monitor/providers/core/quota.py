"""Fixed-window quota accounting for rate-limited quote APIs."""
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from price_monitor.providers.core.exceptions import QuotaExceededError
from price_monitor.schemas import QuotaStatus, utcnow


class QuotaTracker:
    """Counts upstream calls against a limit that resets every window.

    The window resets lazily: the first ``acquire()`` or ``snapshot()`` after
    ``reset_time`` restores the full allowance. An upstream 429 can force the
    limit via ``mark_limit_reached()`` even when the local count disagrees.
    """

    def __init__(
        self,
        limit: int = 60,
        window: timedelta = timedelta(minutes=1),
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if limit < 1:
            raise ValueError("quota limit must be >= 1")
        self._limit = limit
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        now = clock()
        self._used = 0
        self._forced = False
        self._reset_time = now + window
        self._last_updated = now

    def _maybe_reset(self, now: datetime) -> None:
        if now >= self._reset_time:
            self._used = 0
            self._forced = False
            self._reset_time = now + self._window
            self._last_updated = now

    def _limit_reached(self) -> bool:
        return self._forced or self._used >= self._limit

    def acquire(self) -> None:
        """Reserve one call. Raises QuotaExceededError when the window is exhausted."""
        with self._lock:
            now = self._clock()
            self._maybe_reset(now)
            if self._limit_reached():
                raise QuotaExceededError(reset_time=self._reset_time)
            self._used += 1
            self._last_updated = now

    def mark_limit_reached(self) -> None:
        """Treat the quota as exhausted until the current window ends."""
        with self._lock:
            self._forced = True
            self._last_updated = self._clock()

    def snapshot(self) -> QuotaStatus:
        with self._lock:
            self._maybe_reset(self._clock())
            used = self._limit if self._forced else self._used
            return QuotaStatus(
                used=used,
                limit=self._limit,
                remaining=max(self._limit - used, 0),
                reset_time=self._reset_time,
                is_limit_reached=self._limit_reached(),
                last_updated=self._last_updated,
            )
