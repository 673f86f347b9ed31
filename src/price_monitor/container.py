"""DI container. Build via init_container(); routes resolve it from app.state (see deps.py)."""
from dependency_injector import containers, providers

from price_monitor.config import Settings, get_settings
from price_monitor.providers.core import ProviderErrorMapper
from price_monitor.services import (AlertEngine, PortfolioRegistry,
                                    PositionLedger, PriceCheckScheduler,
                                    SchedulerConfig)
from price_monitor.services.factory import (create_ledger_store,
                                            create_notification_sink,
                                            create_quote_source)

_API_NAMES = {"finnhub": "Finnhub", "yfinance": "Yahoo Finance"}


def _api_name(settings: Settings) -> str:
    return _API_NAMES.get(settings.quote_source, "Quote API")


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(get_settings)

    quote_source = providers.Singleton(create_quote_source, settings)
    ledger_store = providers.Singleton(create_ledger_store, settings)
    notifier = providers.Singleton(create_notification_sink, settings)

    registry = providers.Singleton(PortfolioRegistry)
    alert_engine = providers.Singleton(AlertEngine, policy=settings.provided.alert_policy)
    ledger = providers.Singleton(PositionLedger, store=ledger_store, engine=alert_engine)

    scheduler_config = providers.Singleton(SchedulerConfig.from_settings, settings)
    scheduler = providers.Singleton(
        PriceCheckScheduler,
        quote_source=quote_source,
        registry=registry,
        ledger=ledger,
        notifier=notifier,
        config=scheduler_config,
    )

    error_mapper = providers.Singleton(
        ProviderErrorMapper,
        resource_name="Ticker",
        api_name=providers.Callable(_api_name, settings),
    )


def init_container() -> Container:
    """Create the container. Tests override providers before handing it to create_app()."""
    return Container()
