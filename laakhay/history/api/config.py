"""Client configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..runtime.pagination.definitions import MAX_PAGE_SIZE, PaginationPolicy, RetryPolicy


class HistoryConfig(BaseModel):
    """History client configuration.

    Values are handed explicitly to query construction and to the
    pagination controller; nothing is read from module-level state.

    Attributes:
        default_limit: Target count when a call does not pass a limit
        max_limit: Clamp applied to every limit, including 0 (None = no clamp)
        page_size: Events requested per remote call
        max_pages: Page cap per query (None = unlimited)
        deadline: Overall query deadline in seconds (None = no deadline)
        retry: Retry behavior for transient failures
    """

    default_limit: int = Field(default=MAX_PAGE_SIZE, ge=0)
    max_limit: int | None = Field(default=None, ge=1)
    page_size: int = Field(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    max_pages: int | None = Field(default=None, ge=1)
    deadline: float | None = Field(default=None, gt=0)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_limits(self) -> HistoryConfig:
        """Validate default_limit <= max_limit."""
        if self.max_limit is not None and self.default_limit > self.max_limit:
            raise ValueError("default_limit must be <= max_limit")
        return self

    def pagination_policy(self) -> PaginationPolicy:
        return PaginationPolicy(
            page_size=self.page_size,
            max_pages=self.max_pages,
            deadline=self.deadline,
        )
