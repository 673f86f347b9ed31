"""Shared utilities for quote sources."""
from collections.abc import Iterable, Iterator

DECIMALS = 2


def normalize_ticker(ticker: str) -> str:
    """Normalize a stock ticker (stripped, uppercase)."""
    return ticker.strip().upper()


def normalize_tickers(tickers: Iterable[str]) -> list[str]:
    """Normalize tickers, dropping blanks and duplicates while keeping order."""
    seen: dict[str, None] = {}
    for ticker in tickers:
        norm = normalize_ticker(ticker)
        if norm:
            seen.setdefault(norm, None)
    return list(seen)


def chunked(items: list[str], size: int) -> Iterator[list[str]]:
    """Split items into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)
