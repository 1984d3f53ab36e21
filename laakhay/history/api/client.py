"""HistoryClient facade for channel history retrieval.

The HistoryClient provides the caller-facing history calls (plain,
older-than, newer-than, between) on top of the pagination controller.

Architecture:
    This module implements the Facade pattern over PaginationController:
    - Default resolution (default and maximum limits from HistoryConfig)
    - Query construction (HistoryQuery via HistoryQueryBuilder)
    - Delegation to PaginationController for the paginated fetch
    - Retry affordance on failed queries
    - Resource lifecycle management for REST-backed clients

Design Decisions:
    - One awaited outcome per query: HistoryResult, HistoryCancelledError,
      or HistoryFetchError. Partial results are never returned
    - Fetcher injection allows testing with in-memory fetchers
    - Context manager pattern ensures the HTTP session is closed

See Also:
    - PaginationController: The underlying pagination engine
    - HistoryQueryBuilder: Builder used for every call
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..core.enums import Direction
from ..core.exceptions import HistoryFetchError
from ..models import HistoryResult
from ..runtime.fetcher import PageFetcher
from ..runtime.pagination import CancellationToken, PaginationController
from ..runtime.rest import DEFAULT_ORIGIN, HTTPClient, RestPageFetcher
from .config import HistoryConfig
from .query import HistoryQuery, HistoryQueryBuilder

logger = logging.getLogger(__name__)


class HistoryClient:
    """High-level facade for channel history.

    Example:
        >>> async with HistoryClient.from_subscribe_key("demo") as client:
        ...     result = await client.history("storage", limit=250)
        ...     for event in result.events:
        ...         print(event.payload)
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        config: HistoryConfig | None = None,
        controller: PaginationController | None = None,
    ) -> None:
        """Initialize client.

        Args:
            fetcher: Page fetcher used for remote calls
            config: Client configuration (defaults to HistoryConfig())
            controller: Pagination controller (built from config if omitted)
        """
        self._fetcher = fetcher
        self._config = config or HistoryConfig()
        self._controller = controller or PaginationController(
            fetcher,
            policy=self._config.pagination_policy(),
            retry_policy=self._config.retry,
        )

    @classmethod
    def from_subscribe_key(
        cls,
        subscribe_key: str,
        *,
        origin: str = DEFAULT_ORIGIN,
        timeout: float = 30.0,
        config: HistoryConfig | None = None,
    ) -> HistoryClient:
        """Create a client backed by the storage REST API.

        Args:
            subscribe_key: Subscribe key of the keyset holding the channels
            origin: Base URL of the storage service
            timeout: HTTP session timeout in seconds
            config: Client configuration
        """
        fetcher = RestPageFetcher(HTTPClient(base_url=origin, timeout=timeout), subscribe_key)
        return cls(fetcher, config=config)

    @property
    def config(self) -> HistoryConfig:
        return self._config

    def builder(self) -> HistoryQueryBuilder:
        """Create a query builder seeded with the client defaults."""
        return HistoryQueryBuilder(
            default_limit=self._config.default_limit,
            max_limit=self._config.max_limit,
        )

    async def fetch(
        self, query: HistoryQuery, *, cancel: CancellationToken | None = None
    ) -> HistoryResult:
        """Run a prebuilt query.

        Raises:
            HistoryFetchError: The query failed; ``error.retry()`` re-runs it
            HistoryCancelledError: ``cancel`` fired before completion
        """
        logger.debug(
            "Fetching history",
            extra={
                "channel": query.channel,
                "target_count": query.target_count,
                "direction": query.direction.value,
            },
        )
        try:
            return await self._controller.run(query, cancel=cancel)
        except HistoryFetchError as e:
            e._retry = self.fetch
            raise

    async def retry(self, error: HistoryFetchError) -> HistoryResult:
        """Re-run the query of a failed request from scratch."""
        return await self.fetch(error.query)

    async def history(
        self,
        channel: str,
        *,
        limit: int | None = None,
        start: Any | None = None,
        end: Any | None = None,
        direction: Direction | str | None = None,
        reverse: bool = False,
        include_time_token: bool = False,
        cancel: CancellationToken | None = None,
    ) -> HistoryResult:
        """Fetch events from a channel's storage.

        Without bounds, returns the most recent events. A limit above the
        per-request maximum is served with several requests; 0 fetches every
        stored event.

        Args:
            channel: Channel name
            limit: Events to fetch (default: config.default_limit, 0 = all)
            start: Exclusive lower bound (token, seconds, or datetime)
            end: Exclusive upper bound (token, seconds, or datetime)
            direction: "forward" to take the oldest events in the range first
                (default: backward, newest first)
            reverse: Return newest first instead of oldest first
            include_time_token: Include each event's time token
            cancel: Optional cancellation token

        Returns:
            HistoryResult with events in chronological order (or reversed)
        """
        builder = self.builder().channel(channel).start(start).end(end)
        if limit is not None:
            builder.limit(limit)
        if direction is not None:
            builder.direction(direction)
        query = builder.reverse(reverse).include_time_token(include_time_token).build()
        return await self.fetch(query, cancel=cancel)

    async def history_older_than(
        self,
        channel: str,
        date: Any,
        *,
        limit: int | None = None,
        include_time_token: bool = False,
        cancel: CancellationToken | None = None,
    ) -> HistoryResult:
        """Fetch events older than ``date`` (0 limit = all of them)."""
        builder = self.builder().channel(channel).older_than(date)
        if limit is not None:
            builder.limit(limit)
        query = builder.include_time_token(include_time_token).build()
        return await self.fetch(query, cancel=cancel)

    async def history_newer_than(
        self,
        channel: str,
        date: Any,
        *,
        limit: int | None = None,
        include_time_token: bool = False,
        cancel: CancellationToken | None = None,
    ) -> HistoryResult:
        """Fetch events newer than ``date`` (0 limit = all of them)."""
        builder = self.builder().channel(channel).newer_than(date)
        if limit is not None:
            builder.limit(limit)
        query = builder.include_time_token(include_time_token).build()
        return await self.fetch(query, cancel=cancel)

    async def history_between(
        self,
        channel: str,
        time_frame: Sequence[Any],
        *,
        include_time_token: bool = False,
        cancel: CancellationToken | None = None,
    ) -> HistoryResult:
        """Fetch every event between two tokens, given in either order."""
        query = (
            self.builder()
            .channel(channel)
            .between(time_frame)
            .include_time_token(include_time_token)
            .build()
        )
        return await self.fetch(query, cancel=cancel)

    async def close(self) -> None:
        """Close the fetcher's resources, if it holds any."""
        close = getattr(self._fetcher, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> HistoryClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
