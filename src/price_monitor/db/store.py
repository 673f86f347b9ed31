"""SQL implementation of the ledger store (sqlmodel over SQLAlchemy)."""
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from price_monitor.db.models import AlertRecord, PositionRecord
from price_monitor.db.sessions import session_scope
from price_monitor.exceptions import NotFoundError, PersistenceError
from price_monitor.schemas import Alert, AlertType, Position
from price_monitor.store.base import LedgerStore

logger = logging.getLogger(__name__)

_POSITION_FIELDS = tuple(PositionRecord.model_fields)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _alert_from_record(record: AlertRecord) -> Alert:
    return Alert(
        id=record.id,
        position_id=record.position_id,
        user_id=record.user_id,
        ticker=record.ticker,
        alert_type=AlertType(record.alert_type),
        trigger_price=record.trigger_price,
        reference_price=record.reference_price,
        threshold=record.threshold,
        triggered_at=_aware(record.triggered_at),
        is_read=record.is_read,
        notification_sent=record.notification_sent,
    )


def _position_from_record(record: PositionRecord, alerts: list[Alert]) -> Position:
    return Position(
        id=record.id,
        user_id=record.user_id,
        ticker=record.ticker,
        reference_price=record.reference_price,
        reference_date=_aware(record.reference_date),
        quantity=record.quantity,
        total_value=record.total_value,
        upper_threshold=record.upper_threshold,
        lower_threshold=record.lower_threshold,
        is_monitoring=record.is_monitoring,
        created_at=_aware(record.created_at),
        last_checked=_aware(record.last_checked),
        alerts=alerts,
    )


class SqlLedgerStore(LedgerStore):
    """LedgerStore backed by the ``positions`` and ``alerts`` tables.

    Every call runs in its own session and commits before returning. Any
    SQLAlchemy error is re-raised as PersistenceError.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _position_alerts(self, session, position_id: str) -> list[Alert]:  # noqa: ANN001
        rows = session.exec(
            select(AlertRecord)
            .where(AlertRecord.position_id == position_id)
            .order_by(AlertRecord.seq)
        ).all()
        return [_alert_from_record(r) for r in rows]

    def add_position(self, position: Position) -> Position:
        record = PositionRecord(**position.model_dump(include=set(_POSITION_FIELDS)))
        try:
            with session_scope(self._engine) as session:
                session.add(record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to store position {position.id}: {exc}") from exc
        return _position_from_record(record, [])

    def get_position(self, position_id: str) -> Position | None:
        try:
            with session_scope(self._engine) as session:
                record = session.get(PositionRecord, position_id)
                if record is None:
                    return None
                return _position_from_record(record, self._position_alerts(session, position_id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load position {position_id}: {exc}") from exc

    def list_positions(self, user_id: str) -> list[Position]:
        try:
            with session_scope(self._engine) as session:
                records = session.exec(
                    select(PositionRecord)
                    .where(PositionRecord.user_id == user_id)
                    .order_by(PositionRecord.created_at)
                ).all()
                return [
                    _position_from_record(r, self._position_alerts(session, r.id))
                    for r in records
                ]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list positions for {user_id}: {exc}") from exc

    def update_position(self, position: Position) -> Position:
        try:
            with session_scope(self._engine) as session:
                record = session.get(PositionRecord, position.id)
                if record is None:
                    raise NotFoundError(f"Position '{position.id}' not found")
                for name in _POSITION_FIELDS:
                    setattr(record, name, getattr(position, name))
                session.add(record)
                session.flush()
                return _position_from_record(record, self._position_alerts(session, position.id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update position {position.id}: {exc}") from exc

    def delete_position(self, position_id: str) -> bool:
        try:
            with session_scope(self._engine) as session:
                record = session.get(PositionRecord, position_id)
                if record is None:
                    return False
                session.delete(record)
                return True
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete position {position_id}: {exc}") from exc

    def mark_checked(self, position_ids: Iterable[str], checked_at: datetime) -> None:
        ids = list(position_ids)
        if not ids:
            return
        try:
            with session_scope(self._engine) as session:
                records = session.exec(
                    select(PositionRecord).where(PositionRecord.id.in_(ids))
                ).all()
                for record in records:
                    record.last_checked = checked_at
                    session.add(record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to mark {len(ids)} positions checked: {exc}") from exc

    def add_alert(self, alert: Alert) -> Alert:
        record = AlertRecord(
            id=alert.id,
            position_id=alert.position_id,
            user_id=alert.user_id,
            ticker=alert.ticker,
            alert_type=alert.alert_type.value,
            trigger_price=alert.trigger_price,
            reference_price=alert.reference_price,
            threshold=alert.threshold,
            triggered_at=alert.triggered_at,
            is_read=alert.is_read,
            notification_sent=alert.notification_sent,
        )
        try:
            with session_scope(self._engine) as session:
                session.add(record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to store alert {alert.id}: {exc}") from exc
        return alert.model_copy()

    def _get_alert_record(self, session, alert_id: str) -> AlertRecord | None:  # noqa: ANN001
        return session.exec(select(AlertRecord).where(AlertRecord.id == alert_id)).first()

    def get_alert(self, alert_id: str) -> Alert | None:
        try:
            with session_scope(self._engine) as session:
                record = self._get_alert_record(session, alert_id)
                return _alert_from_record(record) if record else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load alert {alert_id}: {exc}") from exc

    def update_alert(self, alert: Alert) -> Alert:
        try:
            with session_scope(self._engine) as session:
                record = self._get_alert_record(session, alert.id)
                if record is None:
                    raise NotFoundError(f"Alert '{alert.id}' not found")
                record.is_read = alert.is_read
                record.notification_sent = alert.notification_sent
                session.add(record)
                session.flush()
                return _alert_from_record(record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update alert {alert.id}: {exc}") from exc

    def list_user_alerts(self, user_id: str) -> list[Alert]:
        try:
            with session_scope(self._engine) as session:
                rows = session.exec(
                    select(AlertRecord)
                    .where(AlertRecord.user_id == user_id)
                    .order_by(AlertRecord.seq)
                ).all()
                return [_alert_from_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list alerts for {user_id}: {exc}") from exc

    def list_position_alerts(self, position_id: str) -> list[Alert]:
        try:
            with session_scope(self._engine) as session:
                if session.get(PositionRecord, position_id) is None:
                    return []
                return self._position_alerts(session, position_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list alerts for {position_id}: {exc}") from exc

    def count_positions(self, *, monitoring_only: bool = False) -> int:
        query = select(func.count()).select_from(PositionRecord)
        if monitoring_only:
            query = query.where(PositionRecord.is_monitoring == True)  # noqa: E712
        try:
            with session_scope(self._engine) as session:
                return session.exec(query).one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to count positions: {exc}") from exc

    def count_alerts(self, *, unread_only: bool = False) -> int:
        query = select(func.count()).select_from(AlertRecord)
        if unread_only:
            query = query.where(AlertRecord.is_read == False)  # noqa: E712
        try:
            with session_scope(self._engine) as session:
                return session.exec(query).one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to count alerts: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()
