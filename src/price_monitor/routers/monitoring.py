"""Start and stop live monitoring for a user's tickers."""
import logging

from fastapi import APIRouter

from price_monitor.deps import QuoteSource, Registry
from price_monitor.schemas import (MonitoringStartRequest,
                                   MonitoringStopRequest, utcnow)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/monitoring", tags=["monitoring"])


@router.post("/start")
async def start_monitoring(
    body: MonitoringStartRequest,
    registry: Registry,
    quote_source: QuoteSource,
) -> dict:
    """Register the user's portfolio for scheduled checks and prime the quote cache.

    Body: ``{"userId": "u1", "tickers": ["AAPL", "MSFT"]}``
    """
    tickers = registry.add_portfolio(body.user_id, body.tickers)
    primed = await quote_source.start_monitoring(body.user_id, tickers)
    return {
        "success": True,
        "message": "Real-time monitoring started",
        "data": {
            "userId": body.user_id,
            "monitoredTickers": tickers,
            "primedQuotes": len(primed),
            "startedAt": utcnow(),
        },
    }


@router.post("/stop")
async def stop_monitoring(
    body: MonitoringStopRequest,
    registry: Registry,
    quote_source: QuoteSource,
) -> dict:
    existed = registry.remove_portfolio(body.user_id)
    await quote_source.stop_monitoring(body.user_id)
    return {
        "success": True,
        "message": "Real-time monitoring stopped",
        "data": {"userId": body.user_id, "hadPortfolio": existed, "stoppedAt": utcnow()},
    }
