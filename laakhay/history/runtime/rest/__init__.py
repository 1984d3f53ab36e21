"""REST runtime abstractions."""

from .fetcher import (
    DEFAULT_ORIGIN,
    HISTORY_ENDPOINT,
    HistoryPageAdapter,
    RestPageFetcher,
    decode_page,
)
from .http_client import HTTPClient
from .runner import ResponseAdapter, RestEndpointSpec, RestRunner

__all__ = [
    "HTTPClient",
    "RestRunner",
    "RestEndpointSpec",
    "ResponseAdapter",
    "RestPageFetcher",
    "HistoryPageAdapter",
    "HISTORY_ENDPOINT",
    "DEFAULT_ORIGIN",
    "decode_page",
]
