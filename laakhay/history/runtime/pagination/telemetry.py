"""Structured logging for pagination runs.

This module provides telemetry hooks for the pagination controller,
emitting structured logs that carry channel, page and timing details.
"""

from __future__ import annotations

import logging

from ...core.timetoken import TimeToken
from ...models import HistoryResult

logger = logging.getLogger(__name__)


def _token(value: TimeToken | None) -> str | None:
    return str(value) if value is not None else None


def log_pagination_start(
    *,
    channel: str,
    mode: str,
    direction: str,
    target_count: int,
    lower_bound: TimeToken | None = None,
    upper_bound: TimeToken | None = None,
) -> None:
    """Log the start of a pagination run.

    Args:
        channel: Channel name
        mode: Pagination mode (single_shot or multi_page)
        direction: Traversal direction
        target_count: Requested events (0 = unbounded)
        lower_bound: Exclusive lower bound
        upper_bound: Exclusive upper bound
    """
    logger.info(
        "pagination_started",
        extra={
            "channel": channel,
            "mode": mode,
            "direction": direction,
            "target_count": target_count,
            "lower_bound": _token(lower_bound),
            "upper_bound": _token(upper_bound),
        },
    )


def log_page_fetched(
    *,
    channel: str,
    page_index: int,
    requested: int,
    received: int,
    oldest_token: TimeToken | None,
    newest_token: TimeToken | None,
    latency_ms: float | None = None,
) -> None:
    """Log completion of a single page fetch.

    Args:
        channel: Channel name
        page_index: Zero-based index of the page
        requested: Count sent to the remote
        received: Events returned by the remote
        oldest_token: Oldest token on the page
        newest_token: Newest token on the page
        latency_ms: Fetch latency in milliseconds (optional)
    """
    logger.debug(
        "page_fetched",
        extra={
            "channel": channel,
            "page_index": page_index,
            "requested": requested,
            "received": received,
            "oldest_token": _token(oldest_token),
            "newest_token": _token(newest_token),
            "latency_ms": latency_ms,
        },
    )


def log_fetch_retry(
    *,
    channel: str,
    page_index: int,
    attempt: int,
    max_attempts: int,
    delay: float,
    error_type: str,
    error_message: str,
) -> None:
    """Log a retry of a failed page fetch."""
    logger.warning(
        "page_fetch_retry",
        extra={
            "channel": channel,
            "page_index": page_index,
            "attempt": attempt,
            "max_attempts": max_attempts,
            "delay": delay,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_pagination_complete(
    *,
    result: HistoryResult,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a pagination run.

    Args:
        result: HistoryResult produced by the run
        total_latency_ms: Total latency in milliseconds (optional)
    """
    logger.info(
        "pagination_complete",
        extra={
            "channel": result.channel,
            "pages_fetched": result.pages_fetched,
            "attempts": result.attempts,
            "total_events": len(result.events),
            "start_token": _token(result.start),
            "end_token": _token(result.end),
            "total_latency_ms": total_latency_ms,
        },
    )


def log_pagination_failed(
    *,
    channel: str,
    page_index: int,
    category: str,
    error_type: str,
    error_message: str,
    pages_discarded: int,
) -> None:
    """Log a failed pagination run.

    Args:
        channel: Channel name
        page_index: Zero-based index of the page that failed
        category: Failure category
        error_type: Exception class name
        error_message: Error message
        pages_discarded: Pages merged before the failure
    """
    logger.error(
        "pagination_failed",
        extra={
            "channel": channel,
            "page_index": page_index,
            "category": category,
            "error_type": error_type,
            "error_message": error_message,
            "pages_discarded": pages_discarded,
        },
    )


def log_pagination_cancelled(*, channel: str, pages_discarded: int, reason: str | None) -> None:
    logger.info(
        "pagination_cancelled",
        extra={
            "channel": channel,
            "pages_discarded": pages_discarded,
            "reason": reason,
        },
    )
