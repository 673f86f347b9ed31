"""Shared utilities for the price monitor."""
from datetime import datetime, timezone
from uuid import uuid4

from price_monitor.schemas import utcnow


def parse_timestamp(ts: float | None) -> datetime:
    """Convert optional Unix timestamp (seconds) to an aware UTC datetime; fallback to now."""
    return datetime.fromtimestamp(ts, tz=timezone.utc) if ts else utcnow()


def new_id(prefix: str) -> str:
    """Opaque identifier such as ``pos_3f2a...``."""
    return f"{prefix}_{uuid4().hex}"
