"""Positions with thresholds, and the alerts they raise."""
from fastapi import APIRouter, Query

from price_monitor.deps import Ledger
from price_monitor.schemas import (CreatePositionRequest, MarkAlertReadRequest,
                                   UpdateThresholdsRequest)

router = APIRouter(prefix="/positions", tags=["positions"])


def _dump(model) -> dict:  # noqa: ANN001
    return model.model_dump(mode="json", by_alias=True)


@router.get("")
def list_positions(ledger: Ledger, user_id: str = Query(alias="userId", min_length=1)) -> dict:
    positions = ledger.get_user_positions(user_id)
    return {"success": True, "data": [_dump(p) for p in positions], "count": len(positions)}


@router.post("")
def create_position(body: CreatePositionRequest, ledger: Ledger) -> dict:
    """Open a position. Upper must sit above and lower below the reference price."""
    position = ledger.create_position(
        body.user_id,
        body.historical_data,
        upper_threshold=body.upper_threshold,
        lower_threshold=body.lower_threshold,
    )
    return {
        "success": True,
        "data": _dump(position),
        "message": "Stock position created successfully",
    }


@router.put("")
def update_thresholds(body: UpdateThresholdsRequest, ledger: Ledger) -> dict:
    position = ledger.update_position_thresholds(
        body.position_id,
        upper_threshold=body.upper_threshold,
        lower_threshold=body.lower_threshold,
    )
    return {
        "success": True,
        "data": _dump(position),
        "message": "Position thresholds updated successfully",
    }


@router.delete("")
def delete_position(ledger: Ledger, position_id: str = Query(alias="positionId", min_length=1)) -> dict:
    ledger.delete_position(position_id)
    return {"success": True, "message": "Position deleted successfully"}


@router.get("/alerts")
def list_alerts(ledger: Ledger, user_id: str = Query(alias="userId", min_length=1)) -> dict:
    alerts = ledger.get_user_alerts(user_id)
    return {
        "success": True,
        "data": [_dump(a) for a in alerts],
        "count": len(alerts),
        "unreadCount": sum(1 for a in alerts if not a.is_read),
    }


@router.put("/alerts")
def mark_alert_read(body: MarkAlertReadRequest, ledger: Ledger) -> dict:
    ledger.mark_alert_as_read(body.alert_id)
    return {"success": True, "message": "Alert marked as read"}
