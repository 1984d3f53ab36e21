"""History query model and fluent builder.

Architecture:
    HistoryQuery is the normalized, validated request consumed by the
    pagination controller. HistoryQueryBuilder replaces the many history
    call variants (plain, limited, start/end, older-than, newer-than,
    between) with one chainable builder.

Design Decisions:
    - Immutable result: build() returns a frozen HistoryQuery
    - Explicit defaults: default and maximum limits are passed into the
      builder, never read from shared client state
    - Exclusive bounds: lower_bound and upper_bound are never returned,
      including at the older-than and newer-than extremes

Example:
    >>> query = (HistoryQueryBuilder()
    ...     .channel("storage")
    ...     .older_than(17000000000000000)
    ...     .limit(250)
    ...     .include_time_token()
    ...     .build())
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..core.enums import Direction, PaginationMode
from ..core.exceptions import ValidationError
from ..core.timetoken import TimeToken
from ..runtime.pagination.definitions import MAX_PAGE_SIZE

__all__ = [
    "HistoryQuery",
    "HistoryQueryBuilder",
]


@dataclass(frozen=True)
class HistoryQuery:
    """Normalized history request.

    Attributes:
        channel: Channel to read
        lower_bound: Exclusive lower bound (None = oldest stored event)
        upper_bound: Exclusive upper bound (None = now)
        target_count: Events wanted (0 = all events in range)
        direction: Traversal direction through storage
        include_time_token: Whether events carry their time token
        reverse: Return events newest first instead of oldest first
    """

    channel: str
    lower_bound: TimeToken | None = None
    upper_bound: TimeToken | None = None
    target_count: int = MAX_PAGE_SIZE
    direction: Direction = Direction.BACKWARD
    include_time_token: bool = False
    reverse: bool = False

    def __post_init__(self) -> None:
        if not self.channel or not isinstance(self.channel, str):
            raise ValidationError("Channel must be a non-empty string")
        if isinstance(self.target_count, bool) or not isinstance(self.target_count, int):
            raise ValidationError("target_count must be an int")
        if self.target_count < 0:
            raise ValidationError(f"target_count must be non-negative, got {self.target_count}")
        if not isinstance(self.direction, Direction):
            raise ValidationError(f"Invalid direction: {self.direction!r}")
        for name in ("lower_bound", "upper_bound"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, TimeToken):
                raise ValidationError(f"{name} must be a TimeToken")

    @property
    def unbounded(self) -> bool:
        return self.target_count == 0

    def mode_for(self, page_size: int = MAX_PAGE_SIZE) -> PaginationMode:
        """Select single-shot or multi-page mode for a page size."""
        if 1 <= self.target_count <= page_size:
            return PaginationMode.SINGLE_SHOT
        return PaginationMode.MULTI_PAGE

    @property
    def mode(self) -> PaginationMode:
        return self.mode_for(MAX_PAGE_SIZE)


class HistoryQueryBuilder:
    """Fluent builder for HistoryQuery.

    Example:
        >>> builder = HistoryQueryBuilder(default_limit=100)
        >>> query = builder.channel("storage").between([t2, t1]).build()
    """

    def __init__(self, *, default_limit: int = MAX_PAGE_SIZE, max_limit: int | None = None) -> None:
        """Initialize builder.

        Args:
            default_limit: Target count used when limit() is not called
            max_limit: Upper clamp for limits (None = no clamp)
        """
        if default_limit < 0:
            raise ValidationError("default_limit must be non-negative")
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._channel: str | None = None
        self._lower: TimeToken | None = None
        self._upper: TimeToken | None = None
        self._limit: int | None = None
        self._direction: Direction | None = None
        self._include_time_token = False
        self._reverse = False
        self._range = False

    def channel(self, channel: str) -> HistoryQueryBuilder:
        self._channel = channel
        return self

    def limit(self, limit: int) -> HistoryQueryBuilder:
        """Set the number of events to fetch (0 = all available)."""
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ValidationError("limit must be an int")
        if limit < 0:
            raise ValidationError(f"limit must be non-negative, got {limit}")
        self._limit = limit
        return self

    def start(self, token: Any | None) -> HistoryQueryBuilder:
        """Set the exclusive lower bound."""
        self._lower = TimeToken.parse(token) if token is not None else None
        return self

    def end(self, token: Any | None) -> HistoryQueryBuilder:
        """Set the exclusive upper bound."""
        self._upper = TimeToken.parse(token) if token is not None else None
        return self

    def older_than(self, date: Any) -> HistoryQueryBuilder:
        """Fetch events older than ``date``, newest first through storage."""
        self._upper = TimeToken.parse(date)
        self._direction = Direction.BACKWARD
        return self

    def newer_than(self, date: Any) -> HistoryQueryBuilder:
        """Fetch events newer than ``date``, oldest first through storage."""
        self._lower = TimeToken.parse(date)
        self._direction = Direction.FORWARD
        return self

    def between(self, time_frame: Sequence[Any]) -> HistoryQueryBuilder:
        """Fetch all events between two tokens, given in either order."""
        if isinstance(time_frame, (str, bytes)) or len(time_frame) != 2:
            raise ValidationError("time_frame must contain exactly two time tokens")
        first, second = (TimeToken.parse(value) for value in time_frame)
        self._lower, self._upper = min(first, second), max(first, second)
        self._direction = Direction.FORWARD
        self._range = True
        return self

    def direction(self, direction: Direction | str) -> HistoryQueryBuilder:
        try:
            self._direction = Direction(direction)
        except ValueError as e:
            raise ValidationError(f"Invalid direction: {direction!r}") from e
        return self

    def include_time_token(self, include: bool = True) -> HistoryQueryBuilder:
        self._include_time_token = include
        return self

    def reverse(self, reverse: bool = True) -> HistoryQueryBuilder:
        self._reverse = reverse
        return self

    def build(self) -> HistoryQuery:
        """Build the immutable query.

        Raises:
            ValidationError: If the channel is missing or arguments are invalid
        """
        if not self._channel:
            raise ValidationError("channel is required")

        if self._limit is not None:
            limit = self._limit
        elif self._range:
            # A time frame without an explicit limit means every event in it
            limit = 0
        else:
            limit = self._default_limit

        if self._max_limit is not None and (limit == 0 or limit > self._max_limit):
            limit = self._max_limit

        return HistoryQuery(
            channel=self._channel,
            lower_bound=self._lower,
            upper_bound=self._upper,
            target_count=limit,
            direction=self._direction or Direction.BACKWARD,
            include_time_token=self._include_time_token,
            reverse=self._reverse,
        )
