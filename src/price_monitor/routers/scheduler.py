"""Scheduler control: status, start/stop, config and forced checks."""
from typing import Literal

from fastapi import APIRouter, Query

from price_monitor.deps import Scheduler
from price_monitor.schemas import ForcePriceCheckRequest, SchedulerConfigUpdate

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("")
async def get_scheduler(
    scheduler: Scheduler,
    action: Literal["status", "stats"] = Query(default="status"),
) -> dict:
    """Return scheduler status (default) or detailed stats with ``?action=stats``."""
    data = scheduler.get_stats() if action == "stats" else scheduler.get_status()
    return {"success": True, "data": data}


@router.post("")
async def start_scheduler(scheduler: Scheduler) -> dict:
    scheduler.start()
    return {
        "success": True,
        "message": "Stock price scheduler started",
        "data": scheduler.get_status(),
    }


@router.post("/stop")
async def stop_scheduler(scheduler: Scheduler) -> dict:
    scheduler.stop()
    return {
        "success": True,
        "message": "Stock price scheduler stopped",
        "data": scheduler.get_status(),
    }


@router.patch("/config")
async def update_scheduler_config(body: SchedulerConfigUpdate, scheduler: Scheduler) -> dict:
    """Partially update timing and batching. Durations are in seconds."""
    config = scheduler.update_config(body.to_partial())
    return {
        "success": True,
        "message": "Scheduler configuration updated",
        "data": config.as_seconds(),
    }


@router.post("/check")
async def force_price_check(body: ForcePriceCheckRequest, scheduler: Scheduler) -> dict:
    prices = await scheduler.force_price_check(body.tickers)
    return {"success": True, "data": prices, "count": len(prices)}
