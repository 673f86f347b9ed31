"""Per-user sets of tickers to poll. Their union is the polling universe."""
import logging
import threading
from collections.abc import Iterable

from price_monitor.providers.core.utils import normalize_tickers

logger = logging.getLogger(__name__)


class PortfolioRegistry:
    """Thread-safe mapping of user id to the tickers polled on their behalf.

    A portfolio is independent of positions: a ticker may be watched without a
    position, and a position is only evaluated on schedule while its ticker is
    in the owner's portfolio.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._portfolios: dict[str, frozenset[str]] = {}

    def add_portfolio(self, user_id: str, tickers: Iterable[str]) -> list[str]:
        """Register a portfolio, replacing any existing one. Returns the normalized tickers."""
        return self._replace(user_id, tickers, "Added")

    def update_portfolio(self, user_id: str, tickers: Iterable[str]) -> list[str]:
        """Replace a user's portfolio (same semantics as add_portfolio, never a merge)."""
        return self._replace(user_id, tickers, "Updated")

    def _replace(self, user_id: str, tickers: Iterable[str], verb: str) -> list[str]:
        normalized = normalize_tickers(tickers)
        with self._lock:
            self._portfolios[user_id] = frozenset(normalized)
        logger.info("%s portfolio monitoring for user %s: %s", verb, user_id, ", ".join(normalized))
        return sorted(normalized)

    def remove_portfolio(self, user_id: str) -> bool:
        """Stop polling for a user. Returns whether a portfolio existed."""
        with self._lock:
            existed = self._portfolios.pop(user_id, None) is not None
        logger.info("Removed portfolio monitoring for user %s", user_id)
        return existed

    def get_portfolio(self, user_id: str) -> list[str]:
        with self._lock:
            return sorted(self._portfolios.get(user_id, ()))

    def user_ids(self) -> list[str]:
        """Users whose portfolio is non-empty."""
        with self._lock:
            return [user_id for user_id, tickers in self._portfolios.items() if tickers]

    def user_count(self) -> int:
        with self._lock:
            return len(self._portfolios)

    def tickers_by_user(self) -> dict[str, list[str]]:
        with self._lock:
            return {user_id: sorted(tickers) for user_id, tickers in self._portfolios.items()}

    def all_monitored_tickers(self) -> list[str]:
        """De-duplicated, upper-case union of every portfolio, sorted."""
        with self._lock:
            union: set[str] = set()
            for tickers in self._portfolios.values():
                union.update(tickers)
        return sorted(union)
