"""Run query engine — summary and detail reads over the run history store."""

from __future__ import annotations

import logging
from datetime import datetime

from runlog.core.pagination import LimitOffset, PaginatedList, TimeRange
from runlog.repositories.run_repo import RunHistoryStore
from runlog.schemas.run import RunDetail, RunRecord

logger = logging.getLogger("runlog.query")


class RunQueryEngine:
    """Composes store queries into the two public read shapes.

    ``list_runs`` returns plain ``RunRecord`` pages unless ``detail`` is
    requested, in which case every run comes back as a ``RunDetail`` with the
    first ``detail_unit_limit`` units attached.
    """

    def __init__(
        self,
        store: RunHistoryStore,
        detail_unit_limit: int = 100,
        recent_days: int = 7,
        default_limit: int = 100,
    ):
        self.store = store
        self.detail_unit_limit = detail_unit_limit
        self.recent_days = recent_days
        self.default_limit = default_limit

    def recent_range(self) -> TimeRange:
        return TimeRange.trailing(self.store.clock(), days=self.recent_days)

    def range_from(self, start: datetime) -> TimeRange:
        return TimeRange.between(start, self.store.clock())

    async def list_runs(
        self,
        time_range: TimeRange | None = None,
        full: bool = False,
        detail: bool = False,
        limit_offset: LimitOffset | None = None,
    ) -> PaginatedList[RunRecord] | PaginatedList[RunDetail]:
        time_range = time_range or self.recent_range()
        limit_offset = limit_offset or LimitOffset(limit=self.default_limit)

        runs = await self.store.query_runs(time_range, active_only=not full, limit_offset=limit_offset)
        logger.debug(
            f"Listed {len(runs.results)}/{runs.total} runs in [{time_range.start}, {time_range.end}) "
            f"full={full} detail={detail}"
        )
        if not detail:
            return runs

        unit_page = LimitOffset(limit=self.detail_unit_limit)
        details = []
        for run in runs.results:
            units = await self.store.get_units(run.process_id, unit_page)
            details.append(RunDetail(run=run, units=units))
        return PaginatedList[RunDetail](results=details, total=runs.total, limit_offset=runs.limit_offset)

    async def get_run_detail(
        self,
        process_id: int,
        limit_offset: LimitOffset | None = None,
    ) -> RunDetail | None:
        """Single run with a page of its units, or None when the run does not exist."""
        run = await self.store.get_run(process_id)
        if run is None:
            return None
        units = await self.store.get_units(process_id, limit_offset or LimitOffset(limit=self.default_limit))
        return RunDetail(run=run, units=units)
