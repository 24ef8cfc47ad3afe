"""Process run API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from runlog.api.deps import get_limit_offset, get_query_engine
from runlog.core.auth import verify_api_key
from runlog.core.pagination import LimitOffset, TimeRange
from runlog.schemas.run import RunDetail, RunListResponse
from runlog.services.query_engine import RunQueryEngine

router = APIRouter(prefix="/process", tags=["process"])


async def _list_runs(
    engine: RunQueryEngine,
    time_range: TimeRange,
    full: bool,
    detail: bool,
    limit_offset: LimitOffset,
) -> RunListResponse:
    page = await engine.list_runs(time_range, full=full, detail=detail, limit_offset=limit_offset)
    return RunListResponse(
        runs=page.results,
        total=page.total,
        limit=page.limit_offset.limit,
        offset=page.limit_offset.offset,
        has_more=page.has_more,
        detail=detail,
    )


def _range(start: datetime, end: datetime) -> TimeRange:
    try:
        return TimeRange.between(start, end)
    except ValueError as e:
        raise HTTPException(400, f"Invalid time range: 'from' must not be after 'to' ({start} > {end})") from e


@router.get("/runs", response_model=RunListResponse)
async def get_recent_runs(
    full: bool = False,
    detail: bool = False,
    limit_offset: LimitOffset = Depends(get_limit_offset),
    engine: RunQueryEngine = Depends(get_query_engine),
    _: str = Depends(verify_api_key),
):
    """List process runs from the past week.

    With ``full`` runs that recorded no units are included; with ``detail``
    each run carries its first hundred or so units.
    """
    return await _list_runs(engine, engine.recent_range(), full, detail, limit_offset)


@router.get("/runs/{process_id:int}", response_model=RunDetail)
async def get_run(
    process_id: int,
    limit_offset: LimitOffset = Depends(get_limit_offset),
    engine: RunQueryEngine = Depends(get_query_engine),
    _: str = Depends(verify_api_key),
):
    """Get a single process run with its units paginated by limit/offset."""
    run = await engine.get_run_detail(process_id, limit_offset)
    if not run:
        raise HTTPException(404, "Process run not found")
    return run


@router.get("/runs/{start}", response_model=RunListResponse)
async def get_runs_from(
    start: datetime,
    full: bool = False,
    detail: bool = False,
    limit_offset: LimitOffset = Depends(get_limit_offset),
    engine: RunQueryEngine = Depends(get_query_engine),
    _: str = Depends(verify_api_key),
):
    """List process runs from a given date time until now."""
    try:
        time_range = engine.range_from(start)
    except ValueError as e:
        raise HTTPException(400, f"Invalid time range: 'from' ({start}) is in the future") from e
    return await _list_runs(engine, time_range, full, detail, limit_offset)


@router.get("/runs/{start}/{end}", response_model=RunListResponse)
async def get_runs_during(
    start: datetime,
    end: datetime,
    full: bool = False,
    detail: bool = False,
    limit_offset: LimitOffset = Depends(get_limit_offset),
    engine: RunQueryEngine = Depends(get_query_engine),
    _: str = Depends(verify_api_key),
):
    """List process runs that were active within [start, end)."""
    return await _list_runs(engine, _range(start, end), full, detail, limit_offset)
