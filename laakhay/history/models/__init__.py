"""Data models for channel history.

Architecture:
    This module exports the Pydantic v2 models used throughout the library.
    All models are immutable (frozen=True): pages are consumed once by the
    merger and results are the only values handed back to callers.

Model Categories:
    - HistoryEvent: One stored event (payload plus optional time token)
    - Page: One bounded remote response
    - HistoryResult: Merged, ordered result of a whole query
"""

from .event import HistoryEvent
from .page import Page
from .result import HistoryResult

__all__ = [
    "HistoryEvent",
    "Page",
    "HistoryResult",
]
