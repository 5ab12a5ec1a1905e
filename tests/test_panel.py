"""Tests for the alerts panel controller."""

import asyncio
import logging

import pytest

from coinalert.alerts import ActionKey, AlertAction, AlertPanel, AlertStore
from coinalert.alerts.panel import BUSY_LABEL
from coinalert.models import AlertStatus, AlertType

from fakes import MemoryDocumentStore


@pytest.fixture
def panel(store):
    return AlertPanel(store, coin="btc", market_data={"btc": {"ticker": {"price": 64000.0}}})


class TestDraft:

    def test_draft_starts_with_current_coin(self, panel):
        assert panel.draft.coin == "btc"
        assert panel.draft.alert_type == AlertType.ABOVE
        assert panel.draft.price == ""
        assert not panel.draft.is_submittable()

    def test_coin_change_resets_draft_coin(self, panel):
        panel.update_draft(price="100")
        panel.set_coin("eth")

        assert panel.draft.coin == "eth"
        assert panel.draft.price == "100"
        assert panel.title() == "ETH Price Alerts"

    def test_no_coin_title(self, store):
        assert AlertPanel(store).title() == "Price Alerts"

    @pytest.mark.anyio
    async def test_submit_creates_and_resets(self, panel, documents):
        panel.update_draft(price="70000", alert_type=AlertType.BELOW)

        alert = await panel.submit()

        assert alert is not None
        assert alert.coin == "btc"
        assert alert.alert_type == AlertType.BELOW
        assert panel.draft.price == ""
        assert panel.draft.coin == "btc"
        assert len(documents.writes) == 1

    @pytest.mark.anyio
    async def test_submit_incomplete_draft(self, panel, documents):
        panel.update_draft(coin="")
        panel.update_draft(price="1")

        assert await panel.submit() is None
        assert panel.store.alerts == []
        assert documents.writes == []


class TestGuardedActions:

    @pytest.mark.anyio
    async def test_duplicate_status_change_is_rejected(self, clock):
        documents = MemoryDocumentStore(write_delay=0.01)
        store = AlertStore(documents, clock=clock)
        panel = AlertPanel(store)
        alert_id = store.create(panel.update_draft(coin="eth", price="3000"))[0].id
        await store.wait_for_writes()

        first = asyncio.create_task(panel.change_status(alert_id, AlertStatus.TRIGGERED))
        await asyncio.sleep(0)
        key = ActionKey(alert_id, AlertAction.TRIGGER)
        assert panel.guard.is_pending(key)

        assert await panel.change_status(alert_id, AlertStatus.TRIGGERED) is False
        assert await first is True
        assert not panel.guard.is_pending(key)
        assert len(documents.writes) == 2

    @pytest.mark.anyio
    async def test_guard_cleared_after_failed_write(self, clock):
        documents = MemoryDocumentStore(fail_writes=True)
        store = AlertStore(documents, clock=clock)
        panel = AlertPanel(store)
        alert_id = store.create(panel.update_draft(coin="eth", price="3000"))[0].id

        assert await panel.remove(alert_id) is True

        assert store.alerts == []
        assert len(panel.guard) == 0

    @pytest.mark.anyio
    async def test_guard_cleared_when_own_write_lands(self, clock):
        documents = MemoryDocumentStore()
        store = AlertStore(documents, clock=clock)
        panel = AlertPanel(store)
        alert_id = store.create(panel.update_draft(coin="eth", price="3000"))[0].id
        await store.wait_for_writes()
        documents.delays = [0.0, 0.5]
        key = ActionKey(alert_id, AlertAction.TRIGGER)

        first = asyncio.create_task(panel.change_status(alert_id, AlertStatus.TRIGGERED))
        await asyncio.sleep(0)
        store.create(panel.update_draft(coin="btc", price="70000"))
        await asyncio.sleep(0.1)

        assert len(documents.writes) == 2
        assert not panel.guard.is_pending(key)
        assert first.done() and first.result() is True
        await store.wait_for_writes()
        assert len(documents.writes) == 3

    @pytest.mark.anyio
    async def test_failing_change_callback_does_not_escape(self, clock, caplog):
        def broken():
            raise RuntimeError("host refresh failed")

        store = AlertStore(MemoryDocumentStore(), clock=clock, on_change=broken)
        panel = AlertPanel(store)
        alert_id = store.create(panel.update_draft(coin="eth", price="3000"))[0].id

        with caplog.at_level(logging.ERROR, logger="coinalert.alerts.store"):
            assert await panel.remove(alert_id) is True
            await store.wait_for_writes()

        assert store.alerts == []
        assert len(panel.guard) == 0
        assert "Error in alert callback" in caplog.text

    @pytest.mark.anyio
    async def test_busy_label_while_pending(self, panel):
        alert_id = panel.store.create(panel.update_draft(price="1"))[0].id
        panel.guard.begin(ActionKey(alert_id, AlertAction.DISMISS))

        buttons = {b.action: b for b in panel.rows()[0].actions}

        assert buttons[AlertAction.DISMISS].label == BUSY_LABEL
        assert buttons[AlertAction.DISMISS].busy
        assert buttons[AlertAction.TRIGGER].label == "Mark Triggered"
        await panel.store.wait_for_writes()


class TestRows:

    @pytest.mark.anyio
    async def test_rows_follow_coin_filter_and_state(self, store):
        panel = AlertPanel(store, market_data={"btc": {"ticker": {"price": 64000.0}}})
        btc = store.create(panel.update_draft(coin="BTC", price="65000"))[0]
        eth = store.create(panel.update_draft(coin="eth", price="3000"))[-1]
        store.set_status(btc.id, AlertStatus.TRIGGERED)
        store.set_status(eth.id, AlertStatus.DISMISSED)
        await store.wait_for_writes()

        rows = panel.rows()
        assert [r.coin for r in rows] == ["BTC", "ETH"]
        assert rows[0].title == "BTC above 65000"
        assert rows[0].triggered is not None
        assert rows[0].current_price is None
        assert [b.action for b in rows[0].actions] == [AlertAction.REACTIVATE, AlertAction.DELETE]
        assert [b.action for b in rows[1].actions] == [AlertAction.DELETE]

        panel.set_coin("btc")
        rows = panel.rows()
        assert [r.id for r in rows] == [btc.id]
        assert rows[0].current_price == 64000.0

    @pytest.mark.anyio
    async def test_active_row_actions(self, panel):
        panel.store.create(panel.update_draft(price="1"))
        await panel.store.wait_for_writes()

        actions = [b.action for b in panel.rows()[0].actions]

        assert actions == [AlertAction.TRIGGER, AlertAction.DISMISS, AlertAction.DELETE]
