"""Custom exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .enums import ErrorCategory

if TYPE_CHECKING:
    from ..api.query import HistoryQuery


class HistoryError(Exception):
    """Base exception for all library errors."""

    pass


class ValidationError(HistoryError):
    """Invalid query arguments or token values."""

    pass


class FetchError(HistoryError):
    """Failure of a single page fetch.

    Raised by page fetchers. The pagination controller decides whether to
    retry based on ``category``.
    """

    category: ErrorCategory = ErrorCategory.TERMINAL

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.RATE_LIMITED,
            ErrorCategory.TIMEOUT,
        )


class TransientFetchError(FetchError):
    """Network error, timeout, or server-side (5xx) failure."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        timeout: bool = False,
    ) -> None:
        super().__init__(message, status_code=status_code)
        if timeout:
            self.category = ErrorCategory.TIMEOUT


class RateLimitError(TransientFetchError):
    """Storage service rate limit exceeded."""

    category = ErrorCategory.RATE_LIMITED

    def __init__(self, message: str, retry_after: float = 1.0) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class TerminalFetchError(FetchError):
    """Bad request, auth failure, quota, or malformed channel."""

    category = ErrorCategory.TERMINAL


class HistoryFetchError(HistoryError):
    """A history query failed as a whole.

    Carries the query so callers can re-run it from scratch, and the
    underlying cause. Pages merged before the failure are discarded.
    """

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory,
        query: HistoryQuery,
        cause: BaseException | None = None,
        attempts: int = 0,
        pages_discarded: int = 0,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.query = query
        self.cause = cause
        self.attempts = attempts
        self.pages_discarded = pages_discarded
        self._retry: Any = None

    @property
    def status_code(self) -> int | None:
        return getattr(self.cause, "status_code", None)

    async def retry(self) -> Any:
        """Re-run the failed query using the client that produced this error."""
        if self._retry is None:
            raise HistoryError("No retry handler attached to this error")
        return await self._retry(self.query)


class HistoryCancelledError(HistoryError):
    """The caller cancelled the query before it completed."""

    category = ErrorCategory.CANCELLED

    def __init__(self, message: str, *, query: HistoryQuery, pages_discarded: int = 0) -> None:
        super().__init__(message)
        self.query = query
        self.pages_discarded = pages_discarded


class MergeInvariantError(HistoryError):
    """Two merged events share a time token or are out of order.

    Indicates a boundary-exclusion bug in a fetcher or the cursor logic.
    """

    pass
