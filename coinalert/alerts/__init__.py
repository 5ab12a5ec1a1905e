"""Alert lifecycle management."""

from coinalert.alerts.guard import ActionGuard, ActionKey, AlertAction
from coinalert.alerts.panel import ActionButton, AlertPanel, AlertRow
from coinalert.alerts.store import (
    ALERTS_DOCUMENT,
    AlertStore,
    PersistResult,
    allowed_actions,
    can_transition,
)

__all__ = [
    "ALERTS_DOCUMENT",
    "ActionButton",
    "ActionGuard",
    "ActionKey",
    "AlertAction",
    "AlertPanel",
    "AlertRow",
    "AlertStore",
    "PersistResult",
    "allowed_actions",
    "can_transition",
]
