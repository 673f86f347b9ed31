"""Recurring price checks, health checks and quota-reset notices.

Each job runs as an asyncio task that sleeps for its interval and then
triggers one run. A job never overlaps itself: a tick that fires while the
previous run is still in flight is skipped and counted.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta

from pydantic import (BaseModel, ConfigDict, Field, ValidationInfo,
                      field_validator)
from pydantic import ValidationError as PydanticValidationError

from price_monitor.exceptions import MonitorError, ValidationError
from price_monitor.providers.core import QuotaExceededError, QuoteSourceABC
from price_monitor.providers.core.utils import chunked, normalize_tickers
from price_monitor.schemas import (Alert, CamelModel, HealthReport,
                                   HealthStatus, Notification, utcnow)
from price_monitor.services.ledger import PositionLedger
from price_monitor.services.notifications import (
    NotificationSinkABC, build_alert_notification,
    build_service_paused_notification, build_service_resumed_notification)
from price_monitor.services.portfolio_registry import PortfolioRegistry

logger = logging.getLogger(__name__)

PRICE_CHECK = "price-check"
HEALTH_CHECK = "health-check"
QUOTA_RESET = "quota-reset"


def _check_range(value: timedelta, low: timedelta, high: timedelta, name: str) -> timedelta:
    if not low <= value <= high:
        raise ValueError(
            f"{name} must be between {low.total_seconds():g}s and {high.total_seconds():g}s"
        )
    return value


class SchedulerConfig(BaseModel):
    """Timing and batching for the scheduler. Durations accept seconds on input."""

    model_config = ConfigDict(frozen=True)

    price_check_interval: timedelta = timedelta(seconds=30)
    health_check_interval: timedelta = timedelta(minutes=5)
    quota_reset_interval: timedelta = timedelta(hours=1)
    batch_size: int = Field(default=5, ge=1, le=50)
    batch_delay: timedelta = timedelta(seconds=1)
    fetch_timeout: timedelta = timedelta(seconds=10)
    enable_scheduling: bool = True

    @field_validator("price_check_interval", "health_check_interval", "quota_reset_interval")
    @classmethod
    def _interval_range(cls, value: timedelta, info: ValidationInfo) -> timedelta:
        return _check_range(value, timedelta(seconds=1), timedelta(days=1), info.field_name)

    @field_validator("batch_delay")
    @classmethod
    def _delay_range(cls, value: timedelta) -> timedelta:
        return _check_range(value, timedelta(0), timedelta(seconds=60), "batch_delay")

    @field_validator("fetch_timeout")
    @classmethod
    def _timeout_range(cls, value: timedelta) -> timedelta:
        return _check_range(value, timedelta(seconds=0.1), timedelta(minutes=5), "fetch_timeout")

    @classmethod
    def from_settings(cls, settings) -> "SchedulerConfig":  # noqa: ANN001
        return cls(
            price_check_interval=settings.price_check_interval_seconds,
            health_check_interval=settings.health_check_interval_seconds,
            quota_reset_interval=settings.quota_reset_interval_seconds,
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay_seconds,
            fetch_timeout=settings.fetch_timeout_seconds,
        )

    def as_seconds(self) -> dict:
        """JSON-friendly view with durations in seconds."""
        return {
            "priceCheckInterval": self.price_check_interval.total_seconds(),
            "healthCheckInterval": self.health_check_interval.total_seconds(),
            "quotaResetInterval": self.quota_reset_interval.total_seconds(),
            "batchSize": self.batch_size,
            "batchDelay": self.batch_delay.total_seconds(),
            "fetchTimeout": self.fetch_timeout.total_seconds(),
            "enableScheduling": self.enable_scheduling,
        }


class PriceCheckReport(CamelModel):
    """Outcome of one price-check cycle."""

    started_at: datetime
    finished_at: datetime
    tickers_requested: int = 0
    prices_fetched: int = 0
    batches_failed: int = 0
    alerts_created: int = 0
    alerts_dispatched: int = 0
    skipped_reason: str | None = None


class PriceCheckScheduler:
    """Drives the quote source, ledger and notifier on fixed intervals.

    Lifecycle: ``start()`` spawns one loop task per job on the running event
    loop; ``stop()`` cancels the loops but lets in-flight runs finish;
    ``aclose()`` also cancels and awaits in-flight runs.
    """

    def __init__(
        self,
        quote_source: QuoteSourceABC,
        registry: PortfolioRegistry,
        ledger: PositionLedger,
        notifier: NotificationSinkABC,
        config: SchedulerConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._quote_source = quote_source
        self._registry = registry
        self._ledger = ledger
        self._notifier = notifier
        self._config = config or SchedulerConfig()
        self._sleep = sleep
        self._clock = clock
        self._jobs: dict[str, Callable[[], Awaitable[object]]] = {
            PRICE_CHECK: self.perform_price_check,
            HEALTH_CHECK: self.perform_health_check,
            QUOTA_RESET: self.perform_quota_reset,
        }
        self._loops: dict[str, asyncio.Task] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._is_running = False
        self._limit_observed = False
        self._runs = dict.fromkeys(self._jobs, 0)
        self._skipped = dict.fromkeys(self._jobs, 0)
        self._last_price_check: datetime | None = None
        self._last_report: PriceCheckReport | None = None
        self._last_health: HealthReport | None = None

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._is_running

    def _intervals(self) -> dict[str, timedelta]:
        return {
            PRICE_CHECK: self._config.price_check_interval,
            HEALTH_CHECK: self._config.health_check_interval,
            QUOTA_RESET: self._config.quota_reset_interval,
        }

    # Lifecycle

    def start(self) -> None:
        """Start the recurring jobs. Must be called from a running event loop."""
        if self._is_running:
            logger.info("Price check scheduler is already running")
            return
        self._is_running = True
        if not self._config.enable_scheduling:
            logger.info("Price check scheduler initialized with scheduling disabled")
            return
        for name, interval in self._intervals().items():
            self._loops[name] = asyncio.create_task(
                self._run_loop(name, interval), name=f"scheduler:{name}"
            )
        logger.info("Price check scheduler started with jobs: %s", ", ".join(self._loops))

    def stop(self) -> None:
        """Stop the recurring jobs. Runs already in progress are left to finish."""
        if not self._is_running:
            logger.info("Price check scheduler is not running")
            return
        for task in self._loops.values():
            task.cancel()
        self._loops.clear()
        self._is_running = False
        logger.info("Price check scheduler stopped")

    async def aclose(self) -> None:
        """Stop and cancel everything, waiting for the tasks to unwind."""
        tasks = [*self._loops.values(), *self._in_flight.values()]
        if self._is_running:
            self.stop()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_loop(self, name: str, interval: timedelta) -> None:
        seconds = interval.total_seconds()
        while True:
            await self._sleep(seconds)
            self.trigger(name)

    def trigger(self, name: str) -> bool:
        """Start one run of a job unless the previous run is still in flight.

        Returns:
            True if a run was started, False if the tick was skipped.
        """
        if name not in self._jobs:
            raise ValueError(f"Unknown scheduled job: {name}")
        running = self._in_flight.get(name)
        if running is not None and not running.done():
            self._skipped[name] += 1
            logger.warning("Skipping %s tick: previous run still in progress", name)
            return False
        task = asyncio.create_task(self._jobs[name](), name=f"run:{name}")
        self._in_flight[name] = task
        self._runs[name] += 1
        task.add_done_callback(lambda t, job=name: self._on_run_done(job, t))
        return True

    def _on_run_done(self, name: str, task: asyncio.Task) -> None:
        if self._in_flight.get(name) is task:
            del self._in_flight[name]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Scheduled %s run failed: %s", name, exc, exc_info=exc)

    # Jobs

    async def perform_price_check(self) -> PriceCheckReport:
        """Fetch prices for every monitored ticker and dispatch new alerts."""
        started_at = self._clock()
        quota = self._quote_source.get_api_status()
        if quota.is_limit_reached:
            self._limit_observed = True
            logger.warning("Skipping price check: API limit reached until %s", quota.reset_time)
            return self._record(PriceCheckReport(
                started_at=started_at,
                finished_at=self._clock(),
                skipped_reason="quota_exhausted",
            ))

        tickers = self._registry.all_monitored_tickers()
        if not tickers:
            return self._record(PriceCheckReport(
                started_at=started_at,
                finished_at=self._clock(),
                skipped_reason="no_tickers",
            ))

        logger.info("Checking prices for %d tickers", len(tickers))
        prices, batches_failed = await self._fetch_prices(tickers)

        alerts_created = alerts_dispatched = 0
        for user_id, user_tickers in self._registry.tickers_by_user().items():
            if not user_tickers:
                continue
            try:
                created, dispatched = await self._check_user(user_id, set(user_tickers), prices)
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Error checking position alerts for user %s: %s", user_id, exc)
                continue
            alerts_created += created
            alerts_dispatched += dispatched

        report = PriceCheckReport(
            started_at=started_at,
            finished_at=self._clock(),
            tickers_requested=len(tickers),
            prices_fetched=len(prices),
            batches_failed=batches_failed,
            alerts_created=alerts_created,
            alerts_dispatched=alerts_dispatched,
        )
        logger.info(
            "Price check completed: %d/%d prices, %d alerts (%d dispatched), %d failed batches",
            report.prices_fetched, report.tickers_requested,
            report.alerts_created, report.alerts_dispatched, report.batches_failed,
        )
        return self._record(report)

    def _record(self, report: PriceCheckReport) -> PriceCheckReport:
        self._last_price_check = report.finished_at
        self._last_report = report
        return report

    async def _fetch_prices(self, tickers: list[str]) -> tuple[dict[str, float], int]:
        """Fetch tickers in sequential batches. Returns (prices, failed batch count)."""
        prices: dict[str, float] = {}
        failed = 0
        timeout = self._config.fetch_timeout.total_seconds()
        batches = list(chunked(tickers, self._config.batch_size))
        for index, batch in enumerate(batches):
            if index > 0:
                if self._quota_exhausted():
                    failed += len(batches) - index
                    logger.warning("API limit reached mid-cycle, skipping %d remaining batches",
                                   len(batches) - index)
                    break
                if self._config.batch_delay:
                    await self._sleep(self._config.batch_delay.total_seconds())
            try:
                quotes = await asyncio.wait_for(
                    self._quote_source.get_batch_quotes(batch), timeout=timeout
                )
            except asyncio.TimeoutError:
                failed += 1
                logger.error("Batch %d/%d timed out after %.1fs: %s",
                             index + 1, len(batches), timeout, ", ".join(batch))
                continue
            except QuotaExceededError as exc:
                failed += len(batches) - index
                self._limit_observed = True
                logger.warning("API limit reached mid-cycle, skipping remaining batches: %s", exc)
                break
            except Exception as exc:  # pylint: disable=broad-except
                failed += 1
                logger.error("Error fetching batch %d/%d (%s): %s",
                             index + 1, len(batches), ", ".join(batch), exc)
                continue
            for ticker, quote in quotes.items():
                if quote.price > 0:
                    prices[ticker] = quote.price
        self._quota_exhausted()
        return prices, failed

    def _quota_exhausted(self) -> bool:
        """Per-ticker quota misses are absorbed by the batch call, so read the tracker."""
        if self._quote_source.get_api_status().is_limit_reached:
            self._limit_observed = True
            return True
        return False

    async def _check_user(
        self,
        user_id: str,
        tickers: set[str],
        prices: dict[str, float],
    ) -> tuple[int, int]:
        positions = await asyncio.to_thread(self._ledger.get_user_positions, user_id)
        watched = [p for p in positions if p.ticker in tickers]
        if not watched:
            return 0, 0
        alerts = await asyncio.to_thread(self._ledger.check_position_alerts, watched, prices)
        if alerts:
            logger.info("Generated %d position alerts for user %s", len(alerts), user_id)
        dispatched = 0
        for alert in alerts:
            if await self._dispatch(alert):
                dispatched += 1
        return len(alerts), dispatched

    async def _dispatch(self, alert: Alert) -> bool:
        try:
            await self._notifier.send(build_alert_notification(alert))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Failed to deliver alert %s to user %s: %s", alert.id, alert.user_id, exc)
            return False
        try:
            await asyncio.to_thread(self._ledger.mark_notification_sent, alert.id)
        except MonitorError as exc:
            logger.warning("Delivered alert %s but could not mark it sent: %s", alert.id, exc)
        return True

    async def perform_health_check(self) -> HealthReport | None:
        """Query the quote source's health; warn users while it is unhealthy."""
        try:
            report = await asyncio.wait_for(
                self._quote_source.health_check(),
                timeout=self._config.fetch_timeout.total_seconds(),
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error during health check: %s", exc)
            return None
        self._last_health = report
        if report.status is HealthStatus.UNHEALTHY:
            if report.api_quota.is_limit_reached:
                self._limit_observed = True
            logger.warning("Quote source is unhealthy: %s", report.model_dump(mode="json"))
            await self._broadcast(build_service_paused_notification)
        elif report.status is HealthStatus.DEGRADED:
            logger.warning("Quote source is degraded: %d consecutive failures",
                           report.consecutive_failures)
        logger.info(
            "Health check: %s | quota %d/%d | cache: %d tickers",
            report.status.value, report.api_quota.used, report.api_quota.limit, report.cache_size,
        )
        return report

    async def perform_quota_reset(self) -> bool:
        """Tell users that updates resumed if the limit was hit since the last reset tick.

        Returns whether resumption notices were sent.
        """
        quota = self._quote_source.get_api_status()
        logger.info(
            "Quota status: %d/%d used, limit reached: %s",
            quota.used, quota.limit, quota.is_limit_reached,
        )
        if not (quota.is_limit_reached or self._limit_observed):
            return False
        self._limit_observed = False
        await self._broadcast(build_service_resumed_notification)
        return True

    async def _broadcast(self, build: Callable[[str], Notification]) -> int:
        user_ids = self._registry.user_ids()
        sent = 0
        for user_id in user_ids:
            try:
                await self._notifier.send(build(user_id))
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Failed to notify user %s: %s", user_id, exc)
                continue
            sent += 1
        logger.info("Notified %d/%d users", sent, len(user_ids))
        return sent

    async def force_price_check(self, tickers: Iterable[str]) -> dict[str, float]:
        """Fetch the given tickers immediately; no alert evaluation."""
        syms = normalize_tickers(tickers)
        if not syms:
            raise ValidationError("At least one ticker is required")
        logger.info("Forced price check for %s", ", ".join(syms))
        prices, _ = await self._fetch_prices(syms)
        return prices

    # Introspection and configuration

    def get_status(self) -> dict:
        return {
            "isRunning": self._is_running,
            "activeTasks": sorted(self._loops),
            "activeUsers": self._registry.user_count(),
            "monitoredTickers": len(self._registry.all_monitored_tickers()),
            "config": self._config.as_seconds(),
        }

    def get_stats(self) -> dict:
        tickers_by_user = self._registry.tickers_by_user()
        next_check = None
        if self._is_running and self._last_price_check and PRICE_CHECK in self._loops:
            next_check = self._last_price_check + self._config.price_check_interval
        return {
            "totalUsers": len(tickers_by_user),
            "totalTickers": len(self._registry.all_monitored_tickers()),
            "userTickers": tickers_by_user,
            "lastPriceCheck": self._last_price_check,
            "nextPriceCheck": next_check,
            "lastReport": (
                self._last_report.model_dump(mode="json", by_alias=True)
                if self._last_report else None
            ),
            "lastHealthStatus": self._last_health.status.value if self._last_health else None,
            "runs": dict(self._runs),
            "skippedTicks": dict(self._skipped),
            "ledger": self._ledger.get_stats().model_dump(by_alias=True),
        }

    def update_config(self, partial: dict) -> SchedulerConfig:
        """Merge ``partial`` into the config and restart the jobs if they were running.

        Raises:
            ValidationError: The merged config is invalid; nothing changes.
        """
        unknown = set(partial) - set(SchedulerConfig.model_fields)
        if unknown:
            raise ValidationError(f"Unknown scheduler setting(s): {', '.join(sorted(unknown))}")
        try:
            new_config = SchedulerConfig.model_validate({**self._config.model_dump(), **partial})
        except PydanticValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise ValidationError(f"Invalid scheduler config: {messages}") from exc
        was_running = self._is_running
        if was_running:
            self.stop()
        self._config = new_config
        logger.info("Scheduler config updated: %s", new_config.as_seconds())
        if was_running and new_config.enable_scheduling:
            self.start()
        return new_config
