"""Core enumerations shared across the history engine.

Key Types:
    - Direction: Traversal direction through channel storage
    - PaginationMode: Single request vs. paginated request
    - ControllerState: Pagination state machine states
    - ErrorCategory: Failure classification driving retry decisions
"""

from enum import Enum


class Direction(str, Enum):
    """Traversal direction through a channel's storage.

    BACKWARD walks from the newest events toward older ones (default,
    older-than queries). FORWARD walks from older events toward newer ones
    (between and newer-than queries).
    """

    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def is_forward(self) -> bool:
        return self is Direction.FORWARD


class PaginationMode(str, Enum):
    """How many remote calls a query may issue."""

    SINGLE_SHOT = "single_shot"
    MULTI_PAGE = "multi_page"


class ControllerState(str, Enum):
    """Pagination controller lifecycle states."""

    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ControllerState.DONE, ControllerState.FAILED, ControllerState.CANCELLED)


class ErrorCategory(str, Enum):
    """Failure classification."""

    TRANSIENT = "transient"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    TERMINAL = "terminal"
    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"
