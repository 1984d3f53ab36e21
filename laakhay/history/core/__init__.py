"""Core components."""

from .enums import ControllerState, Direction, ErrorCategory, PaginationMode
from .exceptions import (
    FetchError,
    HistoryCancelledError,
    HistoryError,
    HistoryFetchError,
    MergeInvariantError,
    RateLimitError,
    TerminalFetchError,
    TransientFetchError,
    ValidationError,
)
from .timetoken import TOKENS_PER_SECOND, TimeToken

__all__ = [
    "TimeToken",
    "TOKENS_PER_SECOND",
    "Direction",
    "PaginationMode",
    "ControllerState",
    "ErrorCategory",
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
