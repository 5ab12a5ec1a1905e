"""Market data lookup used for display only."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError


class Ticker(BaseModel):
    """Latest ticker values for a coin."""

    price: float = Field(default=0.0, description="Last traded price")


class MarketTicker(BaseModel):
    """One entry of the host's market-data table."""

    ticker: Optional[Ticker] = Field(default=None, description="Ticker block")


def current_price(market_data: Optional[Mapping[str, Any]], coin: Optional[str]) -> float:
    """Look up the current price of a coin in the host's market data.

    Args:
        market_data: Mapping of coin symbol to an object (or dict)
            carrying ``ticker.price``. May be None.
        coin: Coin symbol, matched as given and then lowercased.

    Returns:
        The current price, or 0.0 when it is not available.
    """
    if not market_data or not coin:
        return 0.0

    entry = market_data.get(coin)
    if entry is None:
        entry = market_data.get(coin.lower())
    if entry is None:
        return 0.0

    if not isinstance(entry, MarketTicker):
        try:
            entry = MarketTicker.model_validate(entry, from_attributes=True)
        except ValidationError:
            return 0.0

    if entry.ticker is None:
        return 0.0
    return entry.ticker.price
