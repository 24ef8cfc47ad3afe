"""Pydantic schemas for process runs and their units."""

from datetime import datetime
from pydantic import BaseModel, Field

from runlog.core.clock import utcnow
from runlog.core.pagination import PaginatedList
from runlog.models.run import RunStatus


class RunRecord(BaseModel):
    """An immutable snapshot of one pipeline execution."""

    process_id: int
    status: RunStatus
    start_time: datetime
    end_time: datetime | None
    invoked_by: str | None = None
    error: str | None = None

    model_config = {"from_attributes": True, "frozen": True}

    @property
    def is_running(self) -> bool:
        return self.status is RunStatus.RUNNING


class UnitRecord(BaseModel):
    """One work item processed within a run.

    ``process_id`` may be left unset when staging; the store stamps it when
    the unit is recorded.
    """

    unit_key: str
    success: bool = True
    message: str | None = None
    unit_type: str | None = None
    action: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    process_id: int | None = None

    model_config = {"from_attributes": True, "frozen": True}


class RunDetail(BaseModel):
    """A run together with a page of its units."""

    run: RunRecord
    units: PaginatedList[UnitRecord]


class RunListResponse(BaseModel):
    runs: list[RunDetail] | list[RunRecord]
    total: int
    limit: int
    offset: int
    has_more: bool
    detail: bool
