"""Integration tests for history retrieval against the storage REST API."""

import os

import pytest

from laakhay.history import ErrorCategory, HistoryClient, HistoryFetchError, TimeToken

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.environ.get("RUN_LAAKHAY_NETWORK_TESTS") != "1",
        reason="Requires network access to test channel history",
    ),
]

CHANNEL = os.environ.get("LAAKHAY_HISTORY_CHANNEL", "laakhay-history-it")


class TestRESTHistoryIntegration:
    """Test paginated history against the live service."""

    @pytest.mark.asyncio
    async def test_recent_history(self, client):
        """Test the most recent events come back in chronological order."""
        result = await client.history(CHANNEL, limit=10, include_time_token=True)

        assert len(result) <= 10
        tokens = result.time_tokens()
        assert all(isinstance(t, TimeToken) for t in tokens)
        assert tokens == sorted(tokens)

    @pytest.mark.asyncio
    async def test_multi_page_history_has_unique_tokens(self, client):
        """Test multi-page retrieval never repeats an event."""
        result = await client.history(CHANNEL, limit=250, include_time_token=True)

        tokens = result.time_tokens()
        assert len(tokens) == len(set(tokens))
        assert tokens == sorted(tokens)
        if len(result) > 100:
            assert result.pages_fetched >= 2

    @pytest.mark.asyncio
    async def test_between_respects_bounds(self, client):
        """Test every event in a frame lies strictly inside it."""
        now = TimeToken.now()
        start = now - 24 * 3600 * 10_000_000
        result = await client.history_between(CHANNEL, [start, now], include_time_token=True)

        assert all(start < t < now for t in result.time_tokens())

    @pytest.mark.asyncio
    async def test_invalid_key_is_terminal(self):
        """Test an unknown subscribe key fails without retries."""
        async with HistoryClient.from_subscribe_key("sub-c-invalid-key") as bad_client:
            with pytest.raises(HistoryFetchError) as exc_info:
                await bad_client.history(CHANNEL, limit=1)

        assert exc_info.value.category is ErrorCategory.TERMINAL
