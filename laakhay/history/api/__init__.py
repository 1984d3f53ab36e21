"""Public API layer: client facade, configuration and query builder."""

from .client import HistoryClient
from .config import HistoryConfig
from .query import HistoryQuery, HistoryQueryBuilder

__all__ = [
    "HistoryClient",
    "HistoryConfig",
    "HistoryQuery",
    "HistoryQueryBuilder",
]
