"""Main module for the price alert monitor service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from price_monitor.container import Container, init_container
from price_monitor.routers import (monitoring_router, portfolio_router,
                                   positions_router, quotes_router,
                                   register_exception_handlers,
                                   scheduler_router)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Attach a console handler and set the package log level."""
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("price_monitor").setLevel(level)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around a container (tests pass one with overridden providers)."""
    container = container or init_container()
    settings = container.settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Start the scheduler if configured; stop it and close resources on shutdown."""
        scheduler = container.scheduler()
        if settings.scheduler_autostart:
            scheduler.start()
        yield
        await scheduler.aclose()
        for resource in (container.quote_source(), container.notifier()):
            try:
                await resource.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing %s: %s", type(resource).__name__, exc)
        container.ledger().close()

    app = FastAPI(
        title=settings.app_name,
        description="Scheduled price checks with threshold alerts for user positions",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    register_exception_handlers(app)
    app.include_router(monitoring_router)
    app.include_router(portfolio_router)
    app.include_router(scheduler_router)
    app.include_router(positions_router)
    app.include_router(quotes_router)

    @app.get("/")
    def health():
        """Return liveness status."""
        return {"status": "ok"}

    return app


app = create_app()


def run():
    """Run the server (uvicorn). Entry point for `price-monitor`."""
    uvicorn.run("price_monitor.main:app", host="127.0.0.1", port=8001)
