"""Unit tests for HistoryClient and HistoryConfig."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from laakhay.history import (
    HistoryClient,
    HistoryConfig,
    HistoryError,
    HistoryFetchError,
    InMemoryPageFetcher,
    RestPageFetcher,
    RetryPolicy,
    TerminalFetchError,
    TimeToken,
    TransientFetchError,
    ValidationError,
)
from laakhay.history.core import Direction, ErrorCategory

BASE = 17000000000000000


def token(i: int) -> int:
    return BASE + (i + 1) * 10


def client_with(n: int = 0, **fetcher_kwargs) -> tuple[HistoryClient, InMemoryPageFetcher]:
    fetcher = InMemoryPageFetcher(
        {"storage": [(token(i), f"m{i}") for i in range(n)]}, **fetcher_kwargs
    )
    config = HistoryConfig(retry=RetryPolicy(max_attempts=1, fetch_timeout=None))
    return HistoryClient(fetcher, config=config), fetcher


class TestHistoryConfig:
    """Test HistoryConfig validation."""

    def test_defaults(self):
        """Test default configuration."""
        config = HistoryConfig()
        assert config.default_limit == 100
        assert config.max_limit is None
        assert config.page_size == 100
        assert config.retry == RetryPolicy()

    def test_default_above_max_rejected(self):
        """Test default_limit must not exceed max_limit."""
        with pytest.raises(ValueError):
            HistoryConfig(default_limit=200, max_limit=100)

    def test_page_size_bounds(self):
        """Test page_size cannot exceed the service limit."""
        with pytest.raises(ValueError):
            HistoryConfig(page_size=101)

    def test_pagination_policy(self):
        """Test the pagination policy mirrors the config."""
        policy = HistoryConfig(page_size=50, max_pages=3, deadline=5.0).pagination_policy()
        assert (policy.page_size, policy.max_pages, policy.deadline) == (50, 3, 5.0)


class TestHistoryClient:
    """Test the HistoryClient history calls."""

    @pytest.mark.asyncio
    async def test_history_default_most_recent(self):
        """Test history() returns the most recent default_limit events."""
        client, fetcher = client_with(150)

        result = await client.history("storage")

        assert len(result) == 100
        assert result.payloads()[0] == "m50"
        assert result.payloads()[-1] == "m149"
        assert result.channel == "storage"
        assert fetcher.call_count == 1

    @pytest.mark.asyncio
    async def test_history_limit_across_pages(self):
        """Test limits above the page size are served with several requests."""
        client, fetcher = client_with(300)

        result = await client.history("storage", limit=250)

        assert len(result) == 250
        assert [call.count for call in fetcher.calls] == [100, 100, 50]
        assert result.payloads() == [f"m{i}" for i in range(50, 300)]

    @pytest.mark.asyncio
    async def test_history_limit_zero_fetches_all(self):
        """Test limit 0 fetches every stored event."""
        client, _ = client_with(230)

        result = await client.history("storage", limit=0)

        assert len(result) == 230

    @pytest.mark.asyncio
    async def test_history_reverse_and_tokens(self):
        """Test reverse ordering with time tokens."""
        client, _ = client_with(5)

        result = await client.history("storage", reverse=True, include_time_token=True)

        assert result.payloads() == ["m4", "m3", "m2", "m1", "m0"]
        assert result.time_tokens()[0] == TimeToken(token(4))

    @pytest.mark.asyncio
    async def test_history_forward_takes_oldest_in_range(self):
        """Test direction="forward" returns the oldest events inside the bounds."""
        client, fetcher = client_with(20)

        result = await client.history(
            "storage", start=token(4), end=token(15), limit=3, direction="forward"
        )

        assert result.payloads() == ["m5", "m6", "m7"]
        assert fetcher.calls[0].direction is Direction.FORWARD

    @pytest.mark.asyncio
    async def test_history_default_takes_newest_in_range(self):
        """Test range queries default to the newest events inside the bounds."""
        client, _ = client_with(20)

        result = await client.history("storage", start=token(4), end=token(15), limit=3)

        assert result.payloads() == ["m12", "m13", "m14"]

    @pytest.mark.asyncio
    async def test_history_invalid_direction(self):
        """Test unknown directions fail before any fetch."""
        client, fetcher = client_with(5)

        with pytest.raises(ValidationError):
            await client.history("storage", direction="sideways")
        assert fetcher.call_count == 0

    @pytest.mark.asyncio
    async def test_history_older_than(self):
        """Test older_than excludes the bound and walks backward."""
        client, fetcher = client_with(20)

        result = await client.history_older_than("storage", token(10), limit=3)

        assert result.payloads() == ["m7", "m8", "m9"]
        assert fetcher.calls[0].direction is Direction.BACKWARD
        assert fetcher.calls[0].end == TimeToken(token(10))

    @pytest.mark.asyncio
    async def test_history_newer_than(self):
        """Test newer_than excludes the bound and walks forward."""
        client, fetcher = client_with(20)

        result = await client.history_newer_than("storage", token(10), limit=3)

        assert result.payloads() == ["m11", "m12", "m13"]
        assert fetcher.calls[0].direction is Direction.FORWARD

    @pytest.mark.asyncio
    async def test_history_between_any_order(self):
        """Test between returns every event strictly inside the frame."""
        client, _ = client_with(300)

        result = await client.history_between("storage", [token(250), token(20)])

        assert result.payloads() == [f"m{i}" for i in range(21, 250)]

    @pytest.mark.asyncio
    async def test_history_between_requires_two_tokens(self):
        """Test malformed frames fail before any fetch."""
        client, fetcher = client_with(5)

        with pytest.raises(ValidationError):
            await client.history_between("storage", [token(1)])
        assert fetcher.call_count == 0

    @pytest.mark.asyncio
    async def test_max_limit_clamps(self):
        """Test configured max_limit clamps explicit and unbounded limits."""
        fetcher = InMemoryPageFetcher({"storage": [(token(i), i) for i in range(500)]})
        client = HistoryClient(fetcher, config=HistoryConfig(max_limit=150))

        assert len(await client.history("storage", limit=400)) == 150
        assert len(await client.history("storage", limit=0)) == 150

    @pytest.mark.asyncio
    async def test_builder_uses_config_defaults(self):
        """Test builder() is seeded with the configured default limit."""
        client = HistoryClient(InMemoryPageFetcher(), config=HistoryConfig(default_limit=20))
        assert client.builder().channel("storage").build().target_count == 20


class TestHistoryClientFailures:
    """Test failure reporting and retry."""

    @pytest.mark.asyncio
    async def test_failure_is_history_fetch_error(self):
        """Test a terminal fetch failure surfaces as HistoryFetchError."""
        client, _ = client_with(10, faults={0: TerminalFetchError("Forbidden", status_code=403)})

        with pytest.raises(HistoryFetchError) as exc_info:
            await client.history("storage", limit=5)

        error = exc_info.value
        assert error.category is ErrorCategory.TERMINAL
        assert error.status_code == 403
        assert error.query.channel == "storage"

    @pytest.mark.asyncio
    async def test_error_retry_reruns_query(self):
        """Test error.retry() re-runs the failed query through the client."""
        client, fetcher = client_with(10, faults={0: TransientFetchError("boom")})

        with pytest.raises(HistoryFetchError) as exc_info:
            await client.history("storage", limit=5)

        result = await exc_info.value.retry()
        assert result.payloads() == ["m5", "m6", "m7", "m8", "m9"]
        assert fetcher.call_count == 2

    @pytest.mark.asyncio
    async def test_client_retry(self):
        """Test client.retry(error) re-runs the failed query."""
        client, _ = client_with(10, faults={0: TransientFetchError("boom")})

        with pytest.raises(HistoryFetchError) as exc_info:
            await client.history("storage", limit=2)

        result = await client.retry(exc_info.value)
        assert result.payloads() == ["m8", "m9"]

    @pytest.mark.asyncio
    async def test_retry_without_handler(self):
        """Test retry() on a detached error raises HistoryError."""
        client, _ = client_with(1)
        query = client.builder().channel("storage").build()
        error = HistoryFetchError("failed", category=ErrorCategory.TERMINAL, query=query)

        with pytest.raises(HistoryError):
            await error.retry()


class TestHistoryClientLifecycle:
    """Test resource management."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_fetcher(self):
        """Test async with closes a fetcher that holds resources."""
        fetcher = InMemoryPageFetcher()
        fetcher.close = AsyncMock()

        async with HistoryClient(fetcher) as client:
            assert isinstance(client, HistoryClient)

        fetcher.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_without_fetcher_close(self):
        """Test close() tolerates fetchers without a close method."""
        client = HistoryClient(InMemoryPageFetcher())
        await client.close()

    @pytest.mark.asyncio
    async def test_from_subscribe_key(self):
        """Test from_subscribe_key builds a REST-backed client."""
        client = HistoryClient.from_subscribe_key(
            "sub-c-demo", origin="https://history.example.com"
        )
        assert isinstance(client._fetcher, RestPageFetcher)
        await client.close()
