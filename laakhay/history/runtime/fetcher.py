"""Page fetcher contract.

A page fetcher issues exactly one bounded call to channel storage and
returns the decoded page. It never retries; the pagination controller
owns retry policy and relies on the FetchError category to decide.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..core.enums import Direction
from ..core.timetoken import TimeToken
from ..models import Page


@runtime_checkable
class PageFetcher(Protocol):
    """Fetches one bounded page of channel history."""

    async def fetch(
        self,
        *,
        channel: str,
        start: TimeToken | None,
        end: TimeToken | None,
        count: int,
        direction: Direction,
        include_time_token: bool,
    ) -> Page:
        """Fetch one page.

        Args:
            channel: Channel name
            start: Exclusive lower bound (None = from the oldest stored event)
            end: Exclusive upper bound (None = up to now)
            count: Maximum events to return (1..100)
            direction: FORWARD returns the oldest events in range,
                BACKWARD the newest
            include_time_token: Whether events carry their time token

        Returns:
            Page with the events found (possibly empty)

        Raises:
            TransientFetchError: Network error, timeout, or 5xx response
            RateLimitError: Rate limit exceeded
            TerminalFetchError: Request rejected by the service
        """
        ...
