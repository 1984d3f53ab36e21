"""Unit tests for HTTPClient.

Tests focus on session management and the mapping of HTTP failures onto
the fetch error taxonomy.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from laakhay.history.core import (
    ErrorCategory,
    RateLimitError,
    TerminalFetchError,
    TransientFetchError,
)
from laakhay.history.runtime.rest import HTTPClient


def mock_session_for(
    status: int = 200,
    *,
    json_body=None,
    text: str = "",
    headers: dict[str, str] | None = None,
    json_error: Exception | None = None,
) -> MagicMock:
    """Build a session whose get() yields a response with the given shape."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.headers = headers or {}
    if json_error is not None:
        mock_response.json = AsyncMock(side_effect=json_error)
    else:
        mock_response.json = AsyncMock(return_value=json_body)
    mock_response.text = AsyncMock(return_value=text)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.get = MagicMock(return_value=mock_response)
    return mock_session


class TestHTTPClientSessionManagement:
    """Test HTTPClient session management."""

    def test_init(self):
        """Test HTTPClient initialization."""
        client = HTTPClient(base_url="https://history.example.com", timeout=10.0)
        assert client.base_url == "https://history.example.com"
        assert client.timeout.total == 10.0
        assert client._session is None

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self):
        """Test session property creates session when needed."""
        client = HTTPClient()
        session = client.session
        assert isinstance(session, aiohttp.ClientSession)
        assert client._session is session
        await client.close()

    @pytest.mark.asyncio
    async def test_session_property_recreates_closed_session(self):
        """Test session property recreates closed session."""
        client = HTTPClient()
        session1 = client.session
        await session1.close()

        session2 = client.session
        assert session1 is not session2
        assert not session2.closed
        await client.close()

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        """Test async with closes the session on exit."""
        async with HTTPClient() as client:
            session = client.session
        assert session.closed

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        """Test close() is a no-op when no session exists."""
        client = HTTPClient()
        await client.close()
        assert client._session is None


class TestHTTPClientGet:
    """Test HTTPClient.get() response handling."""

    @pytest.mark.asyncio
    async def test_success_returns_json(self):
        """Test a 200 response returns the decoded body."""
        client = HTTPClient(base_url="https://history.example.com")
        client._session = mock_session_for(json_body=[[], 0, 0])

        body = await client.get("/v2/history", params={"count": 1})

        assert body == [[], 0, 0]
        client._session.get.assert_called_once_with(
            "https://history.example.com/v2/history", params={"count": 1}, headers=None
        )

    @pytest.mark.asyncio
    async def test_absolute_url_ignores_base(self):
        """Test absolute URLs are used as given."""
        client = HTTPClient(base_url="https://history.example.com")
        client._session = mock_session_for(json_body={})

        await client.get("https://other.example.com/x")

        assert client._session.get.call_args.args[0] == "https://other.example.com/x"

    @pytest.mark.asyncio
    async def test_429_is_rate_limited(self):
        """Test 429 maps to RateLimitError with the Retry-After hint."""
        client = HTTPClient()
        client._session = mock_session_for(429, headers={"Retry-After": "2.5"})

        with pytest.raises(RateLimitError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.retry_after == 2.5
        assert exc_info.value.category is ErrorCategory.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_429_with_bad_retry_after(self):
        """Test an unparseable Retry-After falls back to one second."""
        client = HTTPClient()
        client._session = mock_session_for(429, headers={"Retry-After": "soon"})

        with pytest.raises(RateLimitError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.retry_after == 1.0

    @pytest.mark.asyncio
    async def test_5xx_is_transient(self):
        """Test server errors are transient."""
        client = HTTPClient()
        client._session = mock_session_for(503)

        with pytest.raises(TransientFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_4xx_is_terminal(self):
        """Test client errors are terminal and carry the body."""
        client = HTTPClient()
        client._session = mock_session_for(403, text="Forbidden")

        with pytest.raises(TerminalFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.status_code == 403
        assert "Forbidden" in str(exc_info.value)
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        """Test request timeouts are transient with the timeout category."""
        client = HTTPClient()
        session = MagicMock()
        session.closed = False
        session.get = MagicMock(side_effect=asyncio.TimeoutError())
        client._session = session

        with pytest.raises(TransientFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.category is ErrorCategory.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        """Test connection failures are transient."""
        client = HTTPClient()
        session = MagicMock()
        session.closed = False
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client._session = session

        with pytest.raises(TransientFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.category is ErrorCategory.TRANSIENT

    @pytest.mark.asyncio
    async def test_invalid_json_is_terminal(self):
        """Test undecodable bodies are terminal."""
        client = HTTPClient()
        client._session = mock_session_for(json_error=ValueError("Expecting value"))

        with pytest.raises(TerminalFetchError):
            await client.get("https://history.example.com/x")

    @pytest.mark.asyncio
    async def test_truncated_body_is_transient(self):
        """Test a body cut off mid-transfer is transient."""
        client = HTTPClient()
        client._session = mock_session_for(
            json_error=aiohttp.ClientPayloadError("Response payload is not completed")
        )

        with pytest.raises(TransientFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert exc_info.value.category is ErrorCategory.TRANSIENT
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientPayloadError)

    @pytest.mark.asyncio
    async def test_other_client_error_is_terminal(self):
        """Test client errors outside connection and payload failures are terminal."""
        client = HTTPClient()
        session = MagicMock()
        session.closed = False
        session.get = MagicMock(side_effect=aiohttp.ClientError("unsupported scheme"))
        client._session = session

        with pytest.raises(TerminalFetchError) as exc_info:
            await client.get("https://history.example.com/x")
        assert not exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)
