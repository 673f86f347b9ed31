"""Domain exceptions raised by the registry, ledger and scheduler."""


class MonitorError(Exception):
    """Base class for price monitor domain errors."""


class ValidationError(MonitorError):
    """Input rejected before any state was changed (HTTP 400)."""


class NotFoundError(MonitorError):
    """Unknown position or alert id (HTTP 404)."""


class PersistenceError(MonitorError):
    """The ledger store failed to read or write."""
