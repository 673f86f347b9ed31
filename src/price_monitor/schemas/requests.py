"""Request bodies for the HTTP API."""
from pydantic import Field, model_validator

from price_monitor.schemas.base import CamelModel
from price_monitor.schemas.positions import ReferenceQuote


class MonitoringStartRequest(CamelModel):
    user_id: str = Field(min_length=1)
    tickers: list[str] = Field(min_length=1)


class MonitoringStopRequest(CamelModel):
    user_id: str = Field(min_length=1)


class PortfolioRequest(CamelModel):
    user_id: str = Field(min_length=1)
    tickers: list[str]
    action: str = "add"


class CreatePositionRequest(CamelModel):
    user_id: str = Field(min_length=1)
    historical_data: ReferenceQuote
    upper_threshold: float | None = Field(default=None, gt=0)
    lower_threshold: float | None = Field(default=None, gt=0)


class UpdateThresholdsRequest(CamelModel):
    position_id: str = Field(min_length=1)
    upper_threshold: float | None = Field(default=None, gt=0)
    lower_threshold: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _require_a_threshold(self) -> "UpdateThresholdsRequest":
        if self.upper_threshold is None and self.lower_threshold is None:
            raise ValueError("At least one threshold is required")
        return self


class MarkAlertReadRequest(CamelModel):
    alert_id: str = Field(min_length=1)


class ForcePriceCheckRequest(CamelModel):
    tickers: list[str] = Field(min_length=1)


class SchedulerConfigUpdate(CamelModel):
    """Partial scheduler configuration; durations are given in seconds."""

    price_check_interval: float | None = None
    health_check_interval: float | None = None
    quota_reset_interval: float | None = None
    batch_size: int | None = None
    batch_delay: float | None = None
    fetch_timeout: float | None = None
    enable_scheduling: bool | None = None

    def to_partial(self) -> dict:
        return self.model_dump(exclude_none=True)
