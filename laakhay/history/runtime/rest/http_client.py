"""HTTP client helper."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from ...core.exceptions import RateLimitError, TerminalFetchError, TransientFetchError

logger = logging.getLogger(__name__)


def _retry_after(headers: Any, default: float = 1.0) -> float:
    value = headers.get("Retry-After") if headers else None
    if value is None:
        return default
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return default


class HTTPClient:
    """Async HTTP client wrapper.

    Failures are classified into the fetch error taxonomy: connection
    errors, timeouts and 5xx responses are transient, 429 is rate limited,
    any other 4xx is terminal.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET request returning the decoded JSON body."""
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}{url}"

        logger.debug("http_get", extra={"url": url, "params": params})
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                if response.status == 429:
                    raise RateLimitError(
                        f"Rate limited by {url}",
                        retry_after=_retry_after(response.headers),
                    )
                if response.status >= 500:
                    raise TransientFetchError(
                        f"Server error {response.status} from {url}",
                        status_code=response.status,
                    )
                if response.status >= 400:
                    body = await response.text()
                    raise TerminalFetchError(
                        f"Request rejected with {response.status}: {body[:200]}",
                        status_code=response.status,
                    )
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransientFetchError(f"Request to {url} timed out", timeout=True) from e
        except aiohttp.ClientPayloadError as e:
            # Body cut off mid-transfer
            raise TransientFetchError(f"Incomplete response from {url}: {e}") from e
        except aiohttp.ClientConnectionError as e:
            raise TransientFetchError(f"Connection error for {url}: {e}") from e
        except aiohttp.ClientError as e:
            raise TerminalFetchError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            # Body is not valid JSON
            raise TerminalFetchError(f"Unexpected response body from {url}: {e}") from e

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
