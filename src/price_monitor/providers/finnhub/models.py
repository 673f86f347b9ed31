"""Models for the Finnhub provider (API params and quote payload)."""
from pydantic import BaseModel, Field


class FinnhubQuoteParams(BaseModel):
    """Params for /quote."""

    symbol: str
    token: str


class FinnhubQuoteResponse(BaseModel):
    """Payload of /quote. Finnhub answers unknown symbols with zeros."""

    current: float | None = Field(default=None, alias="c")
    change: float | None = Field(default=None, alias="d")
    change_percent: float | None = Field(default=None, alias="dp")
    high: float | None = Field(default=None, alias="h")
    low: float | None = Field(default=None, alias="l")
    open: float | None = Field(default=None, alias="o")
    previous_close: float | None = Field(default=None, alias="pc")
    timestamp: int | None = Field(default=None, alias="t")
