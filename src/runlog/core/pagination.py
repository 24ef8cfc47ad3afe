"""Pagination and time-window primitives shared by the store, the query engine and the API."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

from runlog.core.clock import to_utc_naive

T = TypeVar("T")

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


class LimitOffset(BaseModel):
    """A page request: a positive, bounded limit and a non-negative offset."""

    limit: int = Field(default=DEFAULT_LIMIT, gt=0, le=MAX_LIMIT)
    offset: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def next_page(self) -> LimitOffset:
        return LimitOffset(limit=self.limit, offset=self.offset + self.limit)


class PaginatedList(BaseModel, Generic[T]):
    """One page of results plus the size of the full result set."""

    results: list[T]
    total: int
    limit_offset: LimitOffset

    @property
    def has_more(self) -> bool:
        return self.limit_offset.offset + len(self.results) < self.total


class TimeRange(BaseModel):
    """Half-open interval ``[start, end)`` in naive UTC."""

    start: datetime
    end: datetime

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> TimeRange:
        if self.start > self.end:
            raise ValueError(f"Invalid time range: start {self.start} is after end {self.end}")
        return self

    @classmethod
    def between(cls, start: datetime, end: datetime) -> TimeRange:
        return cls(start=to_utc_naive(start), end=to_utc_naive(end))

    @classmethod
    def trailing(cls, now: datetime, days: int) -> TimeRange:
        now = to_utc_naive(now)
        return cls(start=now - timedelta(days=days), end=now)
