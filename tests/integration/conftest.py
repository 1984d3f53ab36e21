"""Shared fixtures for integration tests."""

import os

import pytest
import pytest_asyncio

from laakhay.history import HistoryClient

# Skip all integration tests unless RUN_LAAKHAY_NETWORK_TESTS=1
pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_LAAKHAY_NETWORK_TESTS") != "1",
    reason="Requires network access. Set RUN_LAAKHAY_NETWORK_TESTS=1 to run",
)


@pytest.fixture
def subscribe_key() -> str:
    key = os.environ.get("LAAKHAY_HISTORY_SUBSCRIBE_KEY")
    if not key:
        pytest.skip("Set LAAKHAY_HISTORY_SUBSCRIBE_KEY to run history integration tests")
    return key


@pytest_asyncio.fixture
async def client(subscribe_key):
    async with HistoryClient.from_subscribe_key(subscribe_key) as history_client:
        yield history_client
