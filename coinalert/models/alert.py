"""Alert data model."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AlertType(str, Enum):
    """Comparison direction against the target price."""

    ABOVE = "above"
    BELOW = "below"


class AlertStatus(str, Enum):
    """Lifecycle state of an alert."""

    ACTIVE = "active"
    TRIGGERED = "triggered"
    DISMISSED = "dismissed"


class Alert(BaseModel):
    """Represents a persisted price-threshold alert.

    Field names on the wire are camelCase (``alertType``, ``createdAt``,
    ``triggeredAt``); Python code may use either spelling.
    """

    id: str = Field(..., min_length=1, description="Opaque unique identifier")
    coin: str = Field(..., description="Lowercase asset symbol")
    alert_type: AlertType = Field(..., alias="alertType", description="Comparison direction")
    price: float = Field(..., gt=0, allow_inf_nan=False, description="Threshold price")
    enabled: bool = Field(default=True, description="Reserved toggle")
    status: AlertStatus = Field(default=AlertStatus.ACTIVE, description="Lifecycle state")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    triggered_at: Optional[datetime] = Field(
        default=None,
        alias="triggeredAt",
        description="Set when the alert last entered the triggered state",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("coin")
    @classmethod
    def _normalize_coin(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("coin must not be empty")
        return value

    def to_document(self) -> dict:
        """Encode as plain data using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    def describe(self) -> str:
        """Short human label, e.g. ``BTC above 65000``."""
        return f"{self.coin.upper()} {self.alert_type.value} {self.price:g}"
