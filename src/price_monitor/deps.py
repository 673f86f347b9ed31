"""FastAPI dependencies: resolve singletons from the container on app.state."""
from typing import Annotated

from fastapi import Depends, Request

from price_monitor.container import Container
from price_monitor.providers import QuoteSourceABC
from price_monitor.services import (PortfolioRegistry, PositionLedger,
                                    PriceCheckScheduler)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_quote_source(request: Request) -> QuoteSourceABC:
    """Resolve the shared quote source (abstraction)."""
    return get_container(request).quote_source()


def get_registry(request: Request) -> PortfolioRegistry:
    return get_container(request).registry()


def get_ledger(request: Request) -> PositionLedger:
    return get_container(request).ledger()


def get_scheduler(request: Request) -> PriceCheckScheduler:
    return get_container(request).scheduler()


# Type aliases for route injection
QuoteSource = Annotated[QuoteSourceABC, Depends(get_quote_source)]
Registry = Annotated[PortfolioRegistry, Depends(get_registry)]
Ledger = Annotated[PositionLedger, Depends(get_ledger)]
Scheduler = Annotated[PriceCheckScheduler, Depends(get_scheduler)]
