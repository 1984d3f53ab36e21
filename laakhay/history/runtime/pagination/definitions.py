"""Pagination policy and cursor structures.

This module defines the data structures that describe how a history query
is paginated: per-query limits, retry behavior, the mutable cursor owned by
one controller run, and the cancellation token callers use to stop a run.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from ...core.enums import Direction
from ...core.timetoken import TimeToken

# Storage service hard limit on events per request
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationPolicy:
    """Pagination limits for a history query.

    Attributes:
        page_size: Maximum events requested per remote call (1..100)
        max_pages: Maximum number of pages to fetch (None = unlimited)
        deadline: Overall query deadline in seconds (None = no deadline)
    """

    page_size: int = MAX_PAGE_SIZE
    max_pages: int | None = None
    deadline: float | None = None

    def __post_init__(self) -> None:
        """Validate pagination policy configuration."""
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if self.max_pages is not None and self.max_pages < 1:
            raise ValueError("max_pages must be positive")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behavior for transient page fetch failures.

    Examples:
        # Three attempts, 0.5s then 1s backoff (+/-20% jitter)
        RetryPolicy()

        # No retries, fail on first transient error
        RetryPolicy(max_attempts=1)

    Attributes:
        max_attempts: Attempts per page, including the first one
        base_delay: Backoff before the second attempt (seconds)
        max_delay: Backoff ceiling (seconds)
        jitter: Relative jitter applied to each delay
        fetch_timeout: Timeout for a single fetch (seconds, None = no timeout)
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    jitter: float = 0.2  # +/-20% jitter to avoid thundering herds
    fetch_timeout: float | None = 10.0

    def __post_init__(self) -> None:
        """Validate retry policy configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if not 0 <= self.jitter < 1:
            raise ValueError("jitter must be in [0, 1)")
        if self.fetch_timeout is not None and self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")

    def delay_for(self, attempt: int, *, retry_after: float | None = None) -> float:
        """Backoff to wait after a failed attempt.

        Args:
            attempt: One-based number of the attempt that just failed
            retry_after: Minimum wait requested by the server (rate limiting)

        Returns:
            Delay in seconds
        """
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay


@dataclass
class Cursor:
    """Mutable progress of one pagination run.

    Owned by a single controller run and discarded when it ends. Bounds
    are exclusive: an event whose token equals a bound is never returned.

    Attributes:
        direction: Which bound moves
        lower: Exclusive lower bound (moves when direction is FORWARD)
        upper: Exclusive upper bound (moves when direction is BACKWARD)
        remaining: Events still wanted (0 with unbounded=True means "all")
        unbounded: Whether the query has no target count
        exhausted: Whether storage has no more events in range
        pages: Pages fetched so far
    """

    direction: Direction
    lower: TimeToken | None = None
    upper: TimeToken | None = None
    remaining: int = 0
    unbounded: bool = False
    exhausted: bool = False
    pages: int = 0
    attempts: int = 0

    @property
    def boundary(self) -> TimeToken | None:
        """The moving bound."""
        return self.lower if self.direction.is_forward else self.upper

    @property
    def satisfied(self) -> bool:
        return not self.unbounded and self.remaining <= 0

    def request_count(self, page_size: int) -> int:
        if self.unbounded:
            return page_size
        return max(1, min(self.remaining, page_size))

    def consume(self, count: int) -> None:
        if not self.unbounded:
            self.remaining = max(0, self.remaining - count)

    def advance(self, token: TimeToken) -> bool:
        """Move the moving bound to ``token``.

        Returns:
            False if the token does not move the cursor past its current
            position (the remote failed to make progress)
        """
        if self.direction.is_forward:
            if self.lower is not None and token <= self.lower:
                return False
            self.lower = token
        else:
            if self.upper is not None and token >= self.upper:
                return False
            self.upper = token
        return True

    @property
    def crossed(self) -> bool:
        """Whether the bounds leave no token strictly between them."""
        if self.lower is None or self.upper is None:
            return False
        return self.upper.value - self.lower.value <= 1


@dataclass
class CancellationToken:
    """Cooperative cancellation flag for a pagination run.

    Cancellation takes effect at the next iteration boundary. A fetch that
    is already in flight completes, but its result is discarded.
    """

    reason: str | None = None
    _cancelled: bool = field(default=False, repr=False)

    def cancel(self, reason: str | None = None) -> None:
        self._cancelled = True
        if reason is not None:
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled
