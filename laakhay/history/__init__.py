"""Laakhay History - Paginated channel history retrieval."""

from .api import HistoryClient, HistoryConfig, HistoryQuery, HistoryQueryBuilder
from .core import (
    ControllerState,
    Direction,
    ErrorCategory,
    FetchError,
    HistoryCancelledError,
    HistoryError,
    HistoryFetchError,
    MergeInvariantError,
    PaginationMode,
    RateLimitError,
    TerminalFetchError,
    TimeToken,
    TransientFetchError,
    ValidationError,
)
from .models import HistoryEvent, HistoryResult, Page
from .runtime.fetcher import PageFetcher
from .runtime.memory import InMemoryPageFetcher
from .runtime.pagination import (
    CancellationToken,
    EventMerger,
    PaginationController,
    PaginationPolicy,
    RetryPolicy,
)
from .runtime.rest import HTTPClient, RestPageFetcher

__version__ = "0.1.0"

__all__ = [
    # Core types
    "TimeToken",
    "Direction",
    "PaginationMode",
    "ControllerState",
    "ErrorCategory",
    # Models
    "HistoryEvent",
    "Page",
    "HistoryResult",
    # API
    "HistoryClient",
    "HistoryConfig",
    "HistoryQuery",
    "HistoryQueryBuilder",
    # Runtime
    "PageFetcher",
    "RestPageFetcher",
    "InMemoryPageFetcher",
    "HTTPClient",
    "PaginationController",
    "PaginationPolicy",
    "RetryPolicy",
    "CancellationToken",
    "EventMerger",
    # Exceptions
    "HistoryError",
    "ValidationError",
    "FetchError",
    "TransientFetchError",
    "RateLimitError",
    "TerminalFetchError",
    "HistoryFetchError",
    "HistoryCancelledError",
    "MergeInvariantError",
]
