"""Data models for CoinAlert."""

from coinalert.models.alert import Alert, AlertStatus, AlertType
from coinalert.models.draft import AlertFormDraft
from coinalert.models.market import MarketTicker, current_price

__all__ = [
    "Alert",
    "AlertStatus",
    "AlertType",
    "AlertFormDraft",
    "MarketTicker",
    "current_price",
]
