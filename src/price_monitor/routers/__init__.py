"""API routers for the price monitor.

Includes routes for:
- /monitoring - start/stop live monitoring for a user
- /portfolio - tickers polled on a user's behalf
- /scheduler - scheduler status, control and configuration
- /positions - positions, thresholds and their alerts
- /quotes, /status - on-demand quotes and quote source health
"""
from price_monitor.routers.errors import register_exception_handlers
from price_monitor.routers.monitoring import router as monitoring_router
from price_monitor.routers.portfolio import router as portfolio_router
from price_monitor.routers.positions import router as positions_router
from price_monitor.routers.quotes import router as quotes_router
from price_monitor.routers.scheduler import router as scheduler_router

__all__ = [
    "monitoring_router",
    "portfolio_router",
    "positions_router",
    "quotes_router",
    "register_exception_handlers",
    "scheduler_router",
]
