"""Presentation-facing controller for the price alerts panel.

Wires the form draft, the alert store and the action guard together and
derives the rows a front end renders. Rendering itself lives in the
front end (see ``coinalert.cli.alerts``).
"""

from datetime import date
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from coinalert.alerts.guard import ActionGuard, ActionKey, AlertAction
from coinalert.alerts.store import AlertStore, allowed_actions
from coinalert.models import Alert, AlertFormDraft, AlertStatus, current_price

BUSY_LABEL = "Processing..."

ACTION_LABELS = {
    AlertAction.TRIGGER: "Mark Triggered",
    AlertAction.DISMISS: "Dismiss",
    AlertAction.REACTIVATE: "Reactivate",
    AlertAction.DELETE: "Delete",
}


class ActionButton(BaseModel):
    """One action control on an alert row."""

    action: AlertAction
    label: str
    busy: bool = False

    model_config = {"frozen": True}


class AlertRow(BaseModel):
    """Display-ready view of one alert."""

    id: str
    coin: str = Field(..., description="Upper-case coin symbol")
    alert_type: str
    price: float
    status: AlertStatus
    created: date
    triggered: Optional[date] = None
    current_price: Optional[float] = Field(default=None, description="Omitted when unknown")
    actions: list[ActionButton] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def title(self) -> str:
        return f"{self.coin} {self.alert_type} {self.price:g}"


class AlertPanel:
    """Controller behind one alerts panel.

    Args:
        store: Loaded alert store for the current user.
        guard: Pending-action guard; a fresh one is created if omitted.
        coin: Host's current coin filter, if any.
        market_data: Host's market-data table, read only.
    """

    def __init__(
        self,
        store: AlertStore,
        guard: Optional[ActionGuard] = None,
        coin: Optional[str] = None,
        market_data: Optional[Mapping[str, Any]] = None,
    ):
        self.store = store
        self.guard = guard or ActionGuard()
        self.coin = coin
        self.market_data = market_data
        self.draft = AlertFormDraft.reset(coin)

    def set_coin(self, coin: Optional[str]) -> None:
        """Follow a change of the host's current coin."""
        if coin == self.coin:
            return
        self.coin = coin
        self.draft = self.draft.model_copy(update={"coin": coin or ""})

    def update_draft(self, **fields: Any) -> AlertFormDraft:
        for name, value in fields.items():
            setattr(self.draft, name, value)
        return self.draft

    async def submit(self) -> Optional[Alert]:
        """Create an alert from the current draft.

        Returns:
            The new alert, or None if the draft was not submittable.
        """
        if not self.draft.is_submittable():
            return None

        before = {alert.id for alert in self.store.alerts}
        alerts = self.store.create(self.draft)
        created = next((a for a in alerts if a.id not in before), None)
        if created is None:
            return None

        self.draft = AlertFormDraft.reset(self.coin)
        await self._await_own_write()
        return created

    async def change_status(self, alert_id: str, status: AlertStatus) -> bool:
        """Run a guarded status change.

        Returns:
            False if the same change is already in flight, True otherwise.
        """
        key = ActionKey.for_status(alert_id, status)
        if self.guard.is_pending(key):
            return False

        with self.guard.hold(key):
            self.store.set_status(alert_id, status)
            await self._await_own_write()
        return True

    async def remove(self, alert_id: str) -> bool:
        """Run a guarded delete. Returns False if already in flight."""
        key = ActionKey.for_delete(alert_id)
        if self.guard.is_pending(key):
            return False

        with self.guard.hold(key):
            self.store.delete(alert_id)
            await self._await_own_write()
        return True

    async def _await_own_write(self) -> None:
        # Only the write issued by the mutation just made, not unrelated ones.
        write = self.store.last_write
        if write is not None:
            await write

    # ==================== View derivation ====================

    def title(self) -> str:
        return f"{self.coin.upper()} Price Alerts" if self.coin else "Price Alerts"

    def visible_alerts(self) -> list[Alert]:
        return self.store.filter_by_coin(self.coin)

    def _button(self, alert_id: str, action: AlertAction) -> ActionButton:
        busy = self.guard.is_pending(ActionKey(alert_id, action))
        return ActionButton(
            action=action,
            label=BUSY_LABEL if busy else ACTION_LABELS[action],
            busy=busy,
        )

    def rows(self) -> list[AlertRow]:
        """Display rows for the visible alerts, in stored order."""
        price_now = current_price(self.market_data, self.coin)
        rows = []
        for alert in self.visible_alerts():
            actions = [
                self._button(alert.id, ActionKey.for_status(alert.id, status).action)
                for status in allowed_actions(alert)
            ]
            actions.append(self._button(alert.id, AlertAction.DELETE))
            rows.append(AlertRow(
                id=alert.id,
                coin=alert.coin.upper(),
                alert_type=alert.alert_type.value,
                price=alert.price,
                status=alert.status,
                created=alert.created_at.date(),
                triggered=alert.triggered_at.date() if alert.triggered_at else None,
                current_price=price_now if price_now > 0 else None,
                actions=actions,
            ))
        return rows
