"""Database package: tables, sessions and the SQL ledger store."""
from price_monitor.db.models import AlertRecord, PositionRecord
from price_monitor.db.sessions import create_db_engine, init_db, session_scope
from price_monitor.db.store import SqlLedgerStore

__all__ = [
    "AlertRecord",
    "PositionRecord",
    "SqlLedgerStore",
    "create_db_engine",
    "init_db",
    "session_scope",
]
