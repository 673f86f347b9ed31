"""Database tables for the position ledger.

Positions and their alerts are the only persisted state. Portfolios and
quotes stay in memory.
"""
from datetime import datetime

from sqlmodel import Field, SQLModel

from price_monitor.schemas import utcnow


class PositionRecord(SQLModel, table=True):
    """A monitored position with optional thresholds."""

    __tablename__ = "positions"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    ticker: str = Field(index=True)
    reference_price: float
    reference_date: datetime
    quantity: float
    total_value: float
    upper_threshold: float | None = None
    lower_threshold: float | None = None
    is_monitoring: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    last_checked: datetime | None = None


class AlertRecord(SQLModel, table=True):
    """One threshold breach. Kept after its position is deleted."""

    __tablename__ = "alerts"

    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(unique=True, index=True)
    position_id: str = Field(index=True)  # no FK: alerts outlive their position
    user_id: str = Field(index=True)
    ticker: str
    alert_type: str  # UPPER_BREACH | LOWER_BREACH
    trigger_price: float
    reference_price: float
    threshold: float
    triggered_at: datetime
    is_read: bool = Field(default=False)
    notification_sent: bool = Field(default=False)
