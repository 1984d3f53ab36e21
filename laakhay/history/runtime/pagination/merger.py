"""Event merging for paginated history.

Pages arrive in traversal order: oldest page first when walking forward,
newest page first when walking backward. The merger stitches them into a
single chronological sequence and tracks the oldest and newest tokens
observed.

Duplicate suppression relies on exclusive-bound fetching upstream. The
merger verifies the result instead of filtering it: two adjacent events
with the same or a decreasing token raise MergeInvariantError while debug
checks are enabled.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence

from ...core.enums import Direction
from ...core.exceptions import MergeInvariantError
from ...core.timetoken import TimeToken
from ...models import HistoryEvent, Page


class EventMerger:
    """Accumulates pages into one ordered event sequence."""

    def __init__(self, direction: Direction, *, check_invariants: bool = __debug__) -> None:
        self._direction = direction
        self._check = check_invariants
        # Each entry is one page in chronological order
        self._chunks: deque[tuple[HistoryEvent, ...]] = deque()
        self._count = 0
        self.oldest: TimeToken | None = None
        self.newest: TimeToken | None = None
        self._oldest_known = True
        self._newest_known = True

    def __len__(self) -> int:
        return self._count

    def add(
        self,
        events: Sequence[HistoryEvent],
        *,
        oldest_token: TimeToken | None = None,
        newest_token: TimeToken | None = None,
    ) -> None:
        """Merge one page of chronologically ordered events.

        Args:
            events: Page events, oldest first
            oldest_token: Oldest token of the page envelope, if known
            newest_token: Newest token of the page envelope, if known

        Raises:
            MergeInvariantError: If debug checks are on and the events
                overlap or are out of order
        """
        if not events:
            return
        chunk = tuple(events)

        if self._check:
            self._verify(chunk)

        if self._direction.is_forward:
            self._chunks.append(chunk)
        else:
            self._chunks.appendleft(chunk)
        self._count += len(chunk)

        first, last = chunk[0].time_token, chunk[-1].time_token
        self._observe(oldest_token if oldest_token is not None else first)
        self._observe(newest_token if newest_token is not None else last)

    def add_page(self, page: Page) -> None:
        self.add(
            page.chronological(),
            oldest_token=page.oldest_token,
            newest_token=page.newest_token,
        )

    def events(self, *, reverse: bool = False) -> tuple[HistoryEvent, ...]:
        """Merged events, oldest first (newest first when reverse=True)."""
        merged = tuple(event for chunk in self._chunks for event in chunk)
        if reverse:
            return merged[::-1]
        return merged

    def forget_edges(self, *, oldest: bool = False, newest: bool = False) -> None:
        """Mark the oldest and/or newest observed token as unknown.

        Used when events were cut from a page whose kept events carry no
        tokens, so no observed token bounds the merged sequence on that side.
        """
        if oldest:
            self._oldest_known = False
            self.oldest = None
        if newest:
            self._newest_known = False
            self.newest = None

    def _observe(self, token: TimeToken | None) -> None:
        if token is None:
            return
        if self._oldest_known and (self.oldest is None or token < self.oldest):
            self.oldest = token
        if self._newest_known and (self.newest is None or token > self.newest):
            self.newest = token

    def _verify(self, chunk: tuple[HistoryEvent, ...]) -> None:
        _check_ascending(chunk)
        if not self._chunks:
            return
        # Compare against the neighbouring page edge
        if self._direction.is_forward:
            pair = (self._chunks[-1][-1], chunk[0])
        else:
            pair = (chunk[-1], self._chunks[0][0])
        _check_ascending(pair)


def _check_ascending(events: Sequence[HistoryEvent]) -> None:
    previous: TimeToken | None = None
    for event in events:
        token = event.time_token
        if token is None:
            previous = None
            continue
        if previous is not None and token <= previous:
            raise MergeInvariantError(
                f"Adjacent events out of order or duplicated: {previous} then {token}"
            )
        previous = token


def merge_pages(
    pages: Iterable[Page],
    direction: Direction,
    *,
    reverse: bool = False,
) -> tuple[HistoryEvent, ...]:
    """Merge pages given in traversal order into one ordered sequence.

    Args:
        pages: Pages in the order they were fetched
        direction: Traversal direction the pages were fetched in
        reverse: Return newest first instead of oldest first

    Returns:
        Merged events
    """
    merger = EventMerger(direction)
    for page in pages:
        merger.add_page(page)
    return merger.events(reverse=reverse)
