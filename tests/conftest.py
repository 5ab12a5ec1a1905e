"""Shared fixtures for the CoinAlert test suite."""

import pytest

from coinalert.alerts import AlertStore

from fakes import MemoryDocumentStore, StepClock


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store(documents, clock):
    return AlertStore(documents, clock=clock)
