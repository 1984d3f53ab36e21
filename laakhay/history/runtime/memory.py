"""In-memory page fetcher.

Serves history pages from a sorted in-memory store with the same bound and
count semantics as the storage service. Useful for tests, demos and
offline replay. Every call is recorded, and faults can be injected per
call index.
"""

from __future__ import annotations

import asyncio
from bisect import bisect_left, bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..core.enums import Direction
from ..core.timetoken import TimeToken
from ..models import HistoryEvent, Page


@dataclass(frozen=True)
class FetchCall:
    """Arguments of one recorded fetch."""

    channel: str
    start: TimeToken | None
    end: TimeToken | None
    count: int
    direction: Direction
    include_time_token: bool


class InMemoryPageFetcher:
    """PageFetcher over an in-memory channel store.

    Args:
        channels: Mapping of channel name to (token, payload) pairs
        faults: Mapping of zero-based call index to the exception raised
            by that call instead of returning a page
        delay: Seconds each fetch sleeps before answering
        newest_first: Return page events newest first
        overshoot: Extra events returned beyond the requested count
    """

    def __init__(
        self,
        channels: dict[str, Iterable[tuple[TimeToken | int, Any]]] | None = None,
        *,
        faults: dict[int, BaseException] | None = None,
        delay: float = 0.0,
        newest_first: bool = False,
        overshoot: int = 0,
    ) -> None:
        self._store: dict[str, list[tuple[int, Any]]] = {}
        for channel, entries in (channels or {}).items():
            self.extend(channel, entries)
        self.faults = dict(faults or {})
        self.delay = delay
        self.newest_first = newest_first
        self.overshoot = overshoot
        self.calls: list[FetchCall] = []

    def extend(self, channel: str, entries: Iterable[tuple[TimeToken | int, Any]]) -> None:
        """Add events to a channel, keeping the store sorted by token."""
        stored = self._store.setdefault(channel, [])
        for token, payload in entries:
            stored.append((int(token), payload))
        stored.sort(key=lambda entry: entry[0])

    def events(self, channel: str) -> list[tuple[int, Any]]:
        return list(self._store.get(channel, []))

    @property
    def call_count(self) -> int:
        return len(self.calls)

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
        index = len(self.calls)
        self.calls.append(
            FetchCall(
                channel=channel,
                start=start,
                end=end,
                count=count,
                direction=direction,
                include_time_token=include_time_token,
            )
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        fault = self.faults.pop(index, None)
        if fault is not None:
            raise fault

        stored = self._store.get(channel, [])
        tokens = [token for token, _ in stored]
        lo = bisect_right(tokens, start.value) if start is not None else 0
        hi = bisect_left(tokens, end.value) if end is not None else len(stored)
        window = stored[lo:hi]

        size = count + self.overshoot
        selected = window[:size] if direction.is_forward else window[-size:] if window else []
        if not selected:
            return Page.empty()

        events = [
            HistoryEvent(
                payload=payload,
                time_token=TimeToken(token) if include_time_token else None,
            )
            for token, payload in selected
        ]
        if self.newest_first:
            events.reverse()
        return Page(
            events=tuple(events),
            oldest_token=TimeToken(selected[0][0]),
            newest_token=TimeToken(selected[-1][0]),
            newest_first=self.newest_first,
        )
