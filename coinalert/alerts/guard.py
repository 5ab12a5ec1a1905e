"""Pending-action tracking for alert mutations."""

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, NamedTuple

from coinalert.models import AlertStatus


class AlertAction(str, Enum):
    """User-facing actions that can be in flight for an alert."""

    TRIGGER = "trigger"
    DISMISS = "dismiss"
    REACTIVATE = "reactivate"
    DELETE = "delete"


STATUS_ACTIONS = {
    AlertStatus.TRIGGERED: AlertAction.TRIGGER,
    AlertStatus.DISMISSED: AlertAction.DISMISS,
    AlertStatus.ACTIVE: AlertAction.REACTIVATE,
}


class ActionKey(NamedTuple):
    """Identifies one in-flight action on one alert."""

    alert_id: str
    action: AlertAction

    @classmethod
    def for_status(cls, alert_id: str, status: AlertStatus) -> "ActionKey":
        return cls(alert_id, STATUS_ACTIONS[AlertStatus(status)])

    @classmethod
    def for_delete(cls, alert_id: str) -> "ActionKey":
        return cls(alert_id, AlertAction.DELETE)


class ActionGuard:
    """Records which alert actions are currently in flight.

    The guard does not block anything itself. Callers check
    ``is_pending`` before starting an action and the presentation layer
    uses it to disable the matching control.
    """

    def __init__(self):
        self._pending: set[ActionKey] = set()

    def begin(self, key: ActionKey) -> None:
        """Mark an action as in flight. Idempotent."""
        self._pending.add(key)

    def end(self, key: ActionKey) -> None:
        """Clear an in-flight action. Idempotent."""
        self._pending.discard(key)

    def is_pending(self, key: ActionKey) -> bool:
        return key in self._pending

    @property
    def pending(self) -> frozenset[ActionKey]:
        return frozenset(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    @contextmanager
    def hold(self, key: ActionKey) -> Iterator[ActionKey]:
        """Keep ``key`` pending for the duration of the block.

        The key is cleared on exit whether the block succeeds or raises.
        """
        self.begin(key)
        try:
            yield key
        finally:
            self.end(key)
