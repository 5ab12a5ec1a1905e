"""Alert lifecycle store.

Holds the authoritative in-memory alert collection for the current user
and mirrors it to a document store after every mutation. Mutations are
applied locally first and persisted in the background; a failed write
is logged and reported but never rolls the local collection back.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, Field

from coinalert.db.documents import DocumentStore
from coinalert.models import Alert, AlertFormDraft, AlertStatus
from coinalert.models.draft import parse_price

logger = logging.getLogger(__name__)

ALERTS_DOCUMENT = "price-alerts.json"

# Legal status changes offered for each state. Dismissed alerts can only
# be deleted.
TRANSITIONS: dict[AlertStatus, tuple[AlertStatus, ...]] = {
    AlertStatus.ACTIVE: (AlertStatus.TRIGGERED, AlertStatus.DISMISSED),
    AlertStatus.TRIGGERED: (AlertStatus.ACTIVE,),
    AlertStatus.DISMISSED: (),
}


class PersistResult(BaseModel):
    """Outcome of one background write of the alert collection."""

    ok: bool = Field(..., description="Whether the document store accepted the write")
    alert_count: int = Field(..., ge=0, description="Number of alerts written")
    error: Optional[str] = Field(default=None, description="Failure message")

    model_config = {"frozen": True}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def can_transition(alert: Alert, status: AlertStatus) -> bool:
    """Whether ``status`` is reachable from the alert's current status."""
    return AlertStatus(status) in TRANSITIONS[alert.status]


def allowed_actions(alert: Alert) -> tuple[AlertStatus, ...]:
    """Target statuses the alert may move to."""
    return TRANSITIONS[alert.status]


def decode_alerts(content: Optional[str]) -> list[Alert]:
    """Decode a persisted alerts document.

    Args:
        content: Document text, or None for a missing document.

    Returns:
        Alerts in stored order. Later duplicates of an id are dropped.

    Raises:
        ValueError: If the document is not a JSON array of alerts.
    """
    if content is None:
        return []

    data = json.loads(content)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected a list of alerts, got {type(data).__name__}")

    alerts: list[Alert] = []
    seen: set[str] = set()
    for item in data:
        alert = Alert.model_validate(item)
        if alert.id in seen:
            logger.warning("Dropping duplicate alert id %s", alert.id)
            continue
        seen.add(alert.id)
        alerts.append(alert)
    return alerts


def encode_alerts(alerts: list[Alert]) -> str:
    """Encode the alert collection as a JSON document."""
    return json.dumps([alert.to_document() for alert in alerts])


class AlertStore:
    """Authoritative alert collection for one user session.

    Mutating methods must be called from a running event loop: they
    update the collection synchronously, schedule the write as a task
    and return the updated collection before the write completes.
    """

    def __init__(
        self,
        documents: DocumentStore,
        on_change: Optional[Callable[[], None]] = None,
        on_persisted: Optional[Callable[[PersistResult], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize the store.

        Args:
            documents: Per-user document store the collection is saved to.
            on_change: Called with no arguments after every successful write.
            on_persisted: Called with the PersistResult of every write.
            clock: Source of timestamps (defaults to UTC now).
            id_factory: Source of fresh alert ids (defaults to uuid4 hex).
        """
        self.documents = documents
        self.on_change = on_change
        self.on_persisted = on_persisted
        self._clock = clock or _utcnow
        self._id_factory = id_factory or _new_id
        self._alerts: list[Alert] = []
        self._writes: dict[asyncio.Task, None] = {}
        self._write_lock = asyncio.Lock()
        # Write issued by the most recent mutation call; None if it was a no-op.
        self.last_write: Optional[asyncio.Task] = None
        self.loaded = False

    @property
    def alerts(self) -> list[Alert]:
        return list(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def get(self, alert_id: str) -> Optional[Alert]:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    # ==================== Load ====================

    async def load(self) -> list[Alert]:
        """Load the collection from the document store.

        Any failure (missing document, unreadable store, bad payload)
        leaves the session with an empty collection.
        """
        try:
            content = await self.documents.get_file(ALERTS_DOCUMENT)
            alerts = decode_alerts(content)
        except Exception as e:
            logger.warning("Error loading alerts, starting empty: %s", e)
            alerts = []

        self._alerts = alerts
        self.loaded = True
        logger.info("Loaded %d alerts", len(alerts))
        return self.alerts

    # ==================== Mutations ====================

    def create(self, draft: AlertFormDraft) -> list[Alert]:
        """Append a new active alert built from ``draft``.

        Drafts without a coin or with a non-numeric price are ignored;
        nothing is appended and nothing is written.
        """
        self.last_write = None
        coin = draft.coin.strip()
        price = parse_price(draft.price)
        if not coin or price is None or price <= 0:
            logger.debug("Ignoring incomplete alert draft: %r", draft)
            return self.alerts

        existing = {alert.id for alert in self._alerts}
        alert_id = self._id_factory()
        while alert_id in existing:
            alert_id = self._id_factory()

        alert = Alert(
            id=alert_id,
            coin=coin,
            alert_type=draft.alert_type,
            price=price,
            enabled=draft.enabled,
            status=AlertStatus.ACTIVE,
            created_at=self._clock(),
            triggered_at=None,
        )
        logger.info("Creating alert %s (%s)", alert.id, alert.describe())
        return self._commit(self._alerts + [alert])

    def set_status(self, alert_id: str, status: AlertStatus) -> list[Alert]:
        """Move an alert to ``status``.

        Entering ``triggered`` stamps ``triggered_at``; every other
        transition leaves it as it was. Unknown ids are ignored.
        """
        self.last_write = None
        status = AlertStatus(status)
        if self.get(alert_id) is None:
            return self.alerts

        updated = []
        for alert in self._alerts:
            if alert.id == alert_id:
                changes = {"status": status}
                if status == AlertStatus.TRIGGERED:
                    changes["triggered_at"] = self._clock()
                alert = alert.model_copy(update=changes)
            updated.append(alert)

        logger.info("Setting alert %s status to %s", alert_id, status.value)
        return self._commit(updated)

    def delete(self, alert_id: str) -> list[Alert]:
        """Remove an alert. Unknown ids are ignored."""
        self.last_write = None
        remaining = [alert for alert in self._alerts if alert.id != alert_id]
        if len(remaining) == len(self._alerts):
            return self.alerts

        logger.info("Deleting alert %s", alert_id)
        return self._commit(remaining)

    # ==================== Queries ====================

    def filter_by_coin(self, coin: Optional[str] = None) -> list[Alert]:
        """Alerts for ``coin`` (case-insensitive), or all alerts if None."""
        if not coin:
            return self.alerts
        coin = coin.lower()
        return [alert for alert in self._alerts if alert.coin == coin]

    # ==================== Persistence ====================

    def _commit(self, alerts: list[Alert]) -> list[Alert]:
        loop = asyncio.get_running_loop()
        self._alerts = alerts
        snapshot = encode_alerts(alerts)
        task = loop.create_task(self._persist(snapshot, len(alerts)))
        self._writes[task] = None
        task.add_done_callback(lambda t: self._writes.pop(t, None))
        self.last_write = task
        return self.alerts

    async def _persist(self, document: str, count: int) -> PersistResult:
        async with self._write_lock:
            try:
                await self.documents.put_file(ALERTS_DOCUMENT, document)
            except Exception as e:
                logger.error("Error saving alerts: %s", e, exc_info=True)
                result = PersistResult(ok=False, alert_count=count, error=str(e))
            else:
                logger.debug("Saved %d alerts", count)
                result = PersistResult(ok=True, alert_count=count)

        if self.on_persisted is not None:
            self._notify(self.on_persisted, result)
        if result.ok and self.on_change is not None:
            self._notify(self.on_change)
        return result

    def _notify(self, callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error("Error in alert callback %r: %s", callback, e, exc_info=True)

    @property
    def pending_writes(self) -> int:
        return len(self._writes)

    async def wait_for_writes(self) -> list[PersistResult]:
        """Wait for every outstanding write, in the order they were issued."""
        results: list[PersistResult] = []
        while self._writes:
            batch = list(self._writes)
            results.extend(await asyncio.gather(*batch))
            for task in batch:
                self._writes.pop(task, None)
        return results
