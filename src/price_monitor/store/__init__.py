"""Ledger storage: repository interface and the in-memory implementation.

The SQL implementation lives in price_monitor.db.
"""
from price_monitor.store.base import LedgerStore
from price_monitor.store.memory import InMemoryLedgerStore

__all__ = ["InMemoryLedgerStore", "LedgerStore"]
