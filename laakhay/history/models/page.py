"""Page data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.timetoken import TimeToken
from .event import HistoryEvent


class Page(BaseModel):
    """One bounded response from channel storage.

    Attributes:
        events: Events in the order the remote returned them
        oldest_token: Oldest token covered by the page (None when empty)
        newest_token: Newest token covered by the page (None when empty)
        newest_first: Whether ``events`` are ordered newest to oldest
    """

    events: tuple[HistoryEvent, ...] = Field(default_factory=tuple)
    oldest_token: TimeToken | None = None
    newest_token: TimeToken | None = None
    newest_first: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_tokens(self) -> Page:
        """Validate oldest_token <= newest_token."""
        if (
            self.oldest_token is not None
            and self.newest_token is not None
            and self.oldest_token > self.newest_token
        ):
            raise ValueError("oldest_token must be <= newest_token")
        return self

    @classmethod
    def empty(cls) -> Page:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.events

    def __len__(self) -> int:
        return len(self.events)

    def chronological(self) -> tuple[HistoryEvent, ...]:
        """Events ordered oldest to newest."""
        if self.newest_first:
            return tuple(reversed(self.events))
        return self.events
