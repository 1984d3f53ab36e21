"""History event data model."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from ..core.timetoken import TimeToken


class HistoryEvent(BaseModel):
    """Single event retrieved from channel storage.

    ``time_token`` is only populated when the query asked for time tokens.
    """

    payload: Any
    time_token: TimeToken | None = None

    model_config = ConfigDict(frozen=True)

    def without_time_token(self) -> "HistoryEvent":
        if self.time_token is None:
            return self
        return self.model_copy(update={"time_token": None})
