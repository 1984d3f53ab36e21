"""Pagination layer for bounded history retrieval.

This module turns one history query into a sequence of bounded page
fetches and stitches the pages into a single ordered result.

Architecture:
    The pagination layer consists of:
    - definitions.py: Policies and per-run state (PaginationPolicy, RetryPolicy, Cursor)
    - controller.py: The pagination state machine (PaginationController, PaginationRun)
    - merger.py: Ordered merging and invariant checks (EventMerger)
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .controller import PaginationController, PaginationRun
from .definitions import (
    MAX_PAGE_SIZE,
    CancellationToken,
    Cursor,
    PaginationPolicy,
    RetryPolicy,
)
from .merger import EventMerger, merge_pages

__all__ = [
    "MAX_PAGE_SIZE",
    "PaginationPolicy",
    "RetryPolicy",
    "Cursor",
    "CancellationToken",
    "PaginationController",
    "PaginationRun",
    "EventMerger",
    "merge_pages",
]
