"""On-demand quotes and quote source status."""
from fastapi import APIRouter, Query

from price_monitor.deps import QuoteSource
from price_monitor.exceptions import ValidationError
from price_monitor.providers.core.utils import normalize_tickers
from price_monitor.schemas import HealthStatus

router = APIRouter(tags=["quotes"])

_STATUS_MESSAGES = {
    HealthStatus.UNHEALTHY: "Live updates temporarily paused: API usage limit reached, will resume after reset",
    HealthStatus.DEGRADED: "Service running with limited functionality",
    HealthStatus.HEALTHY: "All systems operational",
}


@router.get("/quotes/{ticker}")
async def get_quote(ticker: str, quote_source: QuoteSource) -> dict:
    """Current quote for one ticker (e.g. ``/quotes/AAPL``)."""
    quote = await quote_source.get_quote(ticker)
    return {"success": True, "data": quote.model_dump(mode="json", by_alias=True)}


@router.get("/quotes")
async def get_quotes(
    quote_source: QuoteSource,
    tickers: str = Query(description="Comma-separated tickers, e.g. AAPL,MSFT"),
) -> dict:
    symbols = normalize_tickers(tickers.split(","))
    if not symbols:
        raise ValidationError("Query param 'tickers' must name at least one ticker")
    quotes = await quote_source.get_batch_quotes(symbols)
    return {
        "success": True,
        "data": {t: q.model_dump(mode="json", by_alias=True) for t, q in quotes.items()},
        "count": len(quotes),
    }


@router.get("/status")
async def get_status(quote_source: QuoteSource) -> dict:
    health = await quote_source.health_check()
    return {
        "success": True,
        "data": {
            "health": health.model_dump(mode="json", by_alias=True),
            "quota": health.api_quota.model_dump(mode="json", by_alias=True),
            "message": _STATUS_MESSAGES[health.status],
        },
    }
