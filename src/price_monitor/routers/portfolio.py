"""Portfolio management: the tickers polled on a user's behalf."""
from fastapi import APIRouter, Query

from price_monitor.deps import Registry
from price_monitor.exceptions import ValidationError
from price_monitor.schemas import PortfolioRequest

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("")
def get_portfolio(
    registry: Registry,
    user_id: str = Query(alias="userId", min_length=1),
) -> dict:
    tickers = registry.get_portfolio(user_id)
    return {"success": True, "data": {"userId": user_id, "tickers": tickers}, "count": len(tickers)}


@router.post("")
def set_portfolio(body: PortfolioRequest, registry: Registry) -> dict:
    """Add or update (full replace) a user's portfolio.

    Body: ``{"userId": "u1", "tickers": ["AAPL"], "action": "add" | "update"}``
    """
    if body.action == "add":
        tickers = registry.add_portfolio(body.user_id, body.tickers)
        message = "Portfolio added for monitoring"
    elif body.action == "update":
        tickers = registry.update_portfolio(body.user_id, body.tickers)
        message = "Portfolio updated for monitoring"
    else:
        raise ValidationError('Invalid action. Use "add" or "update"')
    return {
        "success": True,
        "message": message,
        "data": {"userId": body.user_id, "tickers": tickers, "action": body.action},
    }


@router.delete("")
def remove_portfolio(
    registry: Registry,
    user_id: str = Query(alias="userId", min_length=1),
) -> dict:
    existed = registry.remove_portfolio(user_id)
    return {
        "success": True,
        "message": "Portfolio removed from monitoring",
        "data": {"userId": user_id, "existed": existed},
    }
