"""Aggregated history result model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.timetoken import TimeToken
from .event import HistoryEvent


class HistoryResult(BaseModel):
    """Complete, ordered result of a history query.

    ``start`` and ``end`` are the oldest and newest tokens observed across
    all merged pages, not the query bounds.
    """

    channel: str
    events: tuple[HistoryEvent, ...] = Field(default_factory=tuple)
    start: TimeToken | None = None
    end: TimeToken | None = None
    pages_fetched: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def is_empty(self) -> bool:
        return not self.events

    def payloads(self) -> list[Any]:
        return [event.payload for event in self.events]

    def time_tokens(self) -> list[TimeToken | None]:
        return [event.time_token for event in self.events]
