"""Alert creation form draft."""

import math
from typing import Optional

from pydantic import BaseModel, Field

from coinalert.models.alert import AlertType


def parse_price(text: str) -> Optional[float]:
    """Parse price text into a finite number.

    Args:
        text: Raw price text as typed by the user.

    Returns:
        The parsed price, or None if the text is blank, not numeric
        or not finite.
    """
    try:
        value = float(str(text).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


class AlertFormDraft(BaseModel):
    """Transient, unpersisted state of the alert creation form."""

    coin: str = Field(default="", description="Coin symbol as typed")
    alert_type: AlertType = Field(default=AlertType.ABOVE, description="Comparison direction")
    price: str = Field(default="", description="Price target as text")
    enabled: bool = Field(default=True, description="Reserved toggle")

    model_config = {"validate_assignment": True}

    @property
    def parsed_price(self) -> Optional[float]:
        return parse_price(self.price)

    def is_submittable(self) -> bool:
        """Whether the form holds enough to create an alert."""
        return bool(self.coin.strip()) and self.parsed_price is not None

    @classmethod
    def reset(cls, default_coin: Optional[str] = None) -> "AlertFormDraft":
        """Return a blank draft pre-filled with the host's current coin."""
        return cls(coin=default_coin or "")
