"""Pagination controller for bounded history retrieval.

Architecture:
    The controller turns one HistoryQuery into a sequence of bounded page
    fetches and merges their events into a single HistoryResult.

    Each run is a small state machine:
        IDLE -> FETCHING -> MERGING -> (FETCHING | DONE | FAILED)
    with CANCELLED reachable from any non-terminal state.

    FORWARD runs move the lower bound up to the newest token of each page.
    BACKWARD runs move the upper bound down to the oldest token of each
    page. Bounds are exclusive, so the boundary event of one page is never
    requested again by the next.

Design Decisions:
    - Per-run state: PaginationRun owns its Cursor and EventMerger, so one
      controller can serve concurrent queries without shared mutable state
    - Sequential fetches: page n+1 bounds depend on page n
    - All-or-nothing: failures and cancellation discard merged pages
    - Retry at the call site: fetchers never retry; the run retries
      transient and rate-limited failures with jittered backoff
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import TYPE_CHECKING, NoReturn

from ...core.enums import ControllerState, Direction, ErrorCategory, PaginationMode
from ...core.exceptions import (
    FetchError,
    HistoryCancelledError,
    HistoryFetchError,
    MergeInvariantError,
    TransientFetchError,
)
from ...core.timetoken import TimeToken
from ...models import HistoryEvent, HistoryResult, Page
from ..fetcher import PageFetcher
from .definitions import CancellationToken, Cursor, PaginationPolicy, RetryPolicy
from .merger import EventMerger
from .telemetry import (
    log_fetch_retry,
    log_page_fetched,
    log_pagination_cancelled,
    log_pagination_complete,
    log_pagination_failed,
    log_pagination_start,
)

if TYPE_CHECKING:
    from ...api.query import HistoryQuery

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PaginationRun:
    """One execution of a history query.

    Created by PaginationController.start(). A run executes once and is
    then discarded; ``state`` records where it ended.
    """

    def __init__(
        self,
        query: HistoryQuery,
        fetcher: PageFetcher,
        *,
        policy: PaginationPolicy,
        retry_policy: RetryPolicy,
        cancel: CancellationToken | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.query = query
        self._fetcher = fetcher
        self._policy = policy
        self._retry = retry_policy
        self._cancel = cancel
        self._sleep = sleep
        self.mode = query.mode_for(policy.page_size)
        self.cursor = Cursor(
            direction=query.direction,
            lower=query.lower_bound,
            upper=query.upper_bound,
            remaining=query.target_count,
            unbounded=query.unbounded,
        )
        self.state = ControllerState.IDLE
        self._deadline_at: float | None = None

    async def execute(self) -> HistoryResult:
        """Fetch and merge pages until the query is satisfied.

        Returns:
            HistoryResult with every event in range, up to the target count

        Raises:
            HistoryFetchError: A page failed terminally, retries ran out, or
                the deadline passed
            HistoryCancelledError: The cancellation token fired
        """
        if self.state is not ControllerState.IDLE:
            raise RuntimeError("A pagination run can only be executed once")

        loop = asyncio.get_running_loop()
        if self._policy.deadline is not None:
            self._deadline_at = loop.time() + self._policy.deadline

        query = self.query
        log_pagination_start(
            channel=query.channel,
            mode=self.mode.value,
            direction=query.direction.value,
            target_count=query.target_count,
            lower_bound=query.lower_bound,
            upper_bound=query.upper_bound,
        )

        run_start = perf_counter()
        merger = EventMerger(query.direction)
        try:
            await self._paginate(merger)
        except asyncio.CancelledError:
            self.state = ControllerState.CANCELLED
            raise

        self.state = ControllerState.DONE
        result = HistoryResult(
            channel=query.channel,
            events=merger.events(reverse=query.reverse),
            start=merger.oldest,
            end=merger.newest,
            pages_fetched=self.cursor.pages,
            attempts=self.cursor.attempts,
        )
        log_pagination_complete(
            result=result,
            total_latency_ms=(perf_counter() - run_start) * 1000.0,
        )
        return result

    async def _paginate(self, merger: EventMerger) -> None:
        cursor = self.cursor
        page_size = self._policy.page_size
        max_pages = self._policy.max_pages

        while True:
            self._check_cancelled()
            if cursor.crossed:
                break
            if max_pages is not None and cursor.pages >= max_pages:
                logger.debug(
                    "pagination_page_cap_reached",
                    extra={"channel": self.query.channel, "max_pages": max_pages},
                )
                break

            self.state = ControllerState.FETCHING
            count = cursor.request_count(page_size)
            fetch_start = perf_counter()
            page = await self._fetch_with_retry(count)
            # Result of a fetch that raced a cancel is discarded
            self._check_cancelled()
            cursor.pages += 1

            log_page_fetched(
                channel=self.query.channel,
                page_index=cursor.pages - 1,
                requested=count,
                received=len(page),
                oldest_token=page.oldest_token,
                newest_token=page.newest_token,
                latency_ms=(perf_counter() - fetch_start) * 1000.0,
            )

            if page.is_empty:
                cursor.exhausted = True
                break

            self.state = ControllerState.MERGING
            try:
                advanced = self._merge(page, merger)
            except MergeInvariantError as e:
                # Overlapping or unordered pages
                self._fail(
                    ErrorCategory.TERMINAL,
                    f"Merging page {cursor.pages - 1} failed: {e}",
                    e,
                    cursor.attempts,
                )

            if cursor.satisfied:
                break
            if len(page) < count:
                cursor.exhausted = True
                break
            if self.mode is PaginationMode.SINGLE_SHOT:
                break
            if not advanced:
                logger.warning(
                    "pagination_cursor_stalled",
                    extra={"channel": self.query.channel, "boundary": str(cursor.boundary)},
                )
                cursor.exhausted = True
                break

    def _merge(self, page: Page, merger: EventMerger) -> bool:
        """Merge one page and move the cursor past it.

        Returns:
            Whether the moving bound advanced
        """
        cursor = self.cursor
        forward = cursor.direction is Direction.FORWARD
        events = page.chronological()
        oldest, newest = page.oldest_token, page.newest_token

        truncated = not cursor.unbounded and len(events) > cursor.remaining
        if truncated:
            # Keep the events closest to where the traversal started; the
            # envelope edge on the kept side stays valid
            if forward:
                events = events[: cursor.remaining]
                newest = events[-1].time_token
            else:
                events = events[-cursor.remaining :]
                oldest = events[0].time_token

        merger.add(events, oldest_token=oldest, newest_token=newest)
        if truncated:
            # Without event tokens the cut edge of the result is unknown
            if forward and newest is None:
                merger.forget_edges(newest=True)
            elif not forward and oldest is None:
                merger.forget_edges(oldest=True)
        cursor.consume(len(events))

        boundary = _boundary_token(events, newest if forward else oldest, forward)
        if boundary is None:
            return False
        return cursor.advance(boundary)

    async def _fetch_with_retry(self, count: int) -> Page:
        cursor = self.cursor
        query = self.query
        loop = asyncio.get_running_loop()
        attempt = 0

        while True:
            attempt += 1
            cursor.attempts += 1
            timeout = self._attempt_timeout(loop)
            try:
                fetch = self._fetcher.fetch(
                    channel=query.channel,
                    start=cursor.lower,
                    end=cursor.upper,
                    count=count,
                    direction=query.direction,
                    include_time_token=query.include_time_token,
                )
                if timeout is None:
                    return await fetch
                return await asyncio.wait_for(fetch, timeout=timeout)
            except asyncio.CancelledError:
                raise
            except TimeoutError as e:
                if self._deadline_passed(loop):
                    self._fail(
                        ErrorCategory.DEADLINE_EXCEEDED, "Query deadline exceeded", e, attempt
                    )
                error: FetchError = TransientFetchError(
                    f"Page fetch timed out after {timeout}s", timeout=True
                )
                error.__cause__ = e
            except FetchError as e:
                error = e
            except Exception as e:
                self._fail(
                    ErrorCategory.TERMINAL,
                    f"Page fetcher raised {type(e).__name__}: {e}",
                    e,
                    attempt,
                )

            if not error.retryable:
                self._fail(error.category, str(error), error, attempt)
            if attempt >= self._retry.max_attempts:
                self._fail(
                    error.category,
                    f"Page fetch failed after {attempt} attempts: {error}",
                    error,
                    attempt,
                )

            delay = self._retry.delay_for(attempt, retry_after=getattr(error, "retry_after", None))
            if self._deadline_at is not None and loop.time() + delay >= self._deadline_at:
                self._fail(
                    ErrorCategory.DEADLINE_EXCEEDED,
                    "Query deadline exceeded before next retry",
                    error,
                    attempt,
                )
            log_fetch_retry(
                channel=query.channel,
                page_index=cursor.pages,
                attempt=attempt,
                max_attempts=self._retry.max_attempts,
                delay=delay,
                error_type=type(error).__name__,
                error_message=str(error),
            )
            await self._sleep(delay)
            self._check_cancelled()

    def _attempt_timeout(self, loop: asyncio.AbstractEventLoop) -> float | None:
        timeout = self._retry.fetch_timeout
        if self._deadline_at is None:
            return timeout
        left = self._deadline_at - loop.time()
        if left <= 0:
            self._fail(ErrorCategory.DEADLINE_EXCEEDED, "Query deadline exceeded", None, 0)
        return left if timeout is None else min(timeout, left)

    def _deadline_passed(self, loop: asyncio.AbstractEventLoop) -> bool:
        return self._deadline_at is not None and loop.time() >= self._deadline_at

    def _check_cancelled(self) -> None:
        if self._cancel is None or not self._cancel.cancelled:
            return
        self.state = ControllerState.CANCELLED
        log_pagination_cancelled(
            channel=self.query.channel,
            pages_discarded=self.cursor.pages,
            reason=self._cancel.reason,
        )
        raise HistoryCancelledError(
            f"History query for {self.query.channel!r} was cancelled",
            query=self.query,
            pages_discarded=self.cursor.pages,
        )

    def _fail(
        self,
        category: ErrorCategory,
        message: str,
        cause: BaseException | None,
        attempts: int,
    ) -> NoReturn:
        self.state = ControllerState.FAILED
        log_pagination_failed(
            channel=self.query.channel,
            page_index=self.cursor.pages,
            category=category.value,
            error_type=type(cause).__name__ if cause is not None else "None",
            error_message=message,
            pages_discarded=self.cursor.pages,
        )
        raise HistoryFetchError(
            message,
            category=category,
            query=self.query,
            cause=cause,
            attempts=attempts,
            pages_discarded=self.cursor.pages,
        ) from cause


def _boundary_token(
    events: tuple[HistoryEvent, ...],
    envelope: TimeToken | None,
    forward: bool,
) -> TimeToken | None:
    if envelope is not None:
        return envelope
    edge = events[-1] if forward else events[0]
    return edge.time_token


class PaginationController:
    """Runs history queries against a page fetcher.

    The controller holds only immutable policies and the fetcher; each
    query runs in its own PaginationRun.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        policy: PaginationPolicy | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize controller.

        Args:
            fetcher: Page fetcher issuing the remote calls
            policy: Pagination limits (page size, page cap, deadline)
            retry_policy: Retry behavior for transient failures
            sleep: Coroutine used for backoff waits (defaults to asyncio.sleep)
        """
        self._fetcher = fetcher
        self._policy = policy or PaginationPolicy()
        self._retry = retry_policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep

    @property
    def policy(self) -> PaginationPolicy:
        return self._policy

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def start(
        self, query: HistoryQuery, *, cancel: CancellationToken | None = None
    ) -> PaginationRun:
        """Create a run for ``query`` without executing it."""
        return PaginationRun(
            query,
            self._fetcher,
            policy=self._policy,
            retry_policy=self._retry,
            cancel=cancel,
            sleep=self._sleep,
        )

    async def run(
        self, query: HistoryQuery, *, cancel: CancellationToken | None = None
    ) -> HistoryResult:
        """Execute ``query`` and return its complete result."""
        return await self.start(query, cancel=cancel).execute()
