"""Yahoo Finance quote source."""
from price_monitor.providers.yfinance.y_finance_provider import YFinanceProvider

__all__ = ["YFinanceProvider"]
