"""Request-scoped access to the services built by the daemon."""

from fastapi import Query, Request

from runlog.core.pagination import LimitOffset, MAX_LIMIT
from runlog.services.query_engine import RunQueryEngine


def get_query_engine(request: Request) -> RunQueryEngine:
    return request.app.state.query_engine


def get_limit_offset(
    request: Request,
    limit: int | None = Query(None, gt=0, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
) -> LimitOffset:
    if limit is None:
        limit = request.app.state.settings.default_limit
    return LimitOffset(limit=limit, offset=offset)
