"""Run history repository — durable persistence and retrieval of process runs and units."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Sequence

from sqlalchemy import select, func, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from runlog.core.clock import utcnow
from runlog.core.errors import RunHistoryError, UnknownRunError, AlreadyTerminalError
from runlog.core.pagination import LimitOffset, PaginatedList, TimeRange
from runlog.models.run import ProcessRun, ProcessUnit, RunStatus
from runlog.schemas.run import RunRecord, UnitRecord

logger = logging.getLogger("runlog.store")


class RunHistoryStore:
    """Stores process runs and the units recorded against them.

    Each call opens its own session, so one store instance can be shared by
    the query engine and by any number of pipeline stages. Writes for a
    single run (unit batches and completion) are serialized with a per-run
    lock; reads never take it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self._run_locks: dict[int, asyncio.Lock] = {}

    @asynccontextmanager
    async def _run_lock(self, process_id: int) -> AsyncIterator[None]:
        lock = self._run_locks.setdefault(process_id, asyncio.Lock())
        try:
            async with lock:
                yield
        except RunHistoryError:
            # Unknown and terminal runs take no further writes
            self._run_locks.pop(process_id, None)
            raise

    # ─── Writes ───

    async def begin_run(self, invoked_by: str | None = None) -> int:
        """Persist a new running record and return its process id."""
        async with self.session_factory() as session:
            run = ProcessRun(
                status=RunStatus.RUNNING.value,
                start_time=self.clock(),
                invoked_by=invoked_by,
            )
            session.add(run)
            await session.commit()
            process_id = run.process_id

        logger.info(f"Process run {process_id} started (invoked_by={invoked_by})")
        return process_id

    async def complete_run(
        self,
        process_id: int,
        status: RunStatus,
        error: str | None = None,
    ) -> RunRecord:
        """Move a running record to a terminal status."""
        status = RunStatus(status)
        if not status.is_terminal:
            raise ValueError(f"Cannot complete process run {process_id} with status '{status.value}'")

        async with self._run_lock(process_id):
            async with self.session_factory() as session:
                async with session.begin():
                    run = await self._load_running(session, process_id)
                    # Flushed as one UPDATE, so end_time and status are never observed apart
                    run.status = status.value
                    run.end_time = max(self.clock(), run.start_time)
                    run.error = error
                record = RunRecord.model_validate(run)

        # Completed runs accept no further writes, their lock is no longer needed
        self._run_locks.pop(process_id, None)
        logger.info(f"Process run {process_id} finished: {status.value}")
        return record

    async def record_units(self, process_id: int, units: Sequence[UnitRecord]) -> int:
        """Append a batch of units to a running process.

        The batch is written in one transaction: either every unit becomes
        visible or none does.
        """
        rows = []
        for unit in units:
            if unit.process_id is not None and unit.process_id != process_id:
                raise ValueError(
                    f"Unit '{unit.unit_key}' belongs to process run {unit.process_id}, not {process_id}"
                )
            rows.append(
                ProcessUnit(
                    process_id=process_id,
                    unit_key=unit.unit_key,
                    success=unit.success,
                    message=unit.message,
                    unit_type=unit.unit_type,
                    action=unit.action,
                    timestamp=unit.timestamp,
                )
            )

        async with self._run_lock(process_id):
            async with self.session_factory() as session:
                async with session.begin():
                    await self._load_running(session, process_id)
                    session.add_all(rows)

        logger.debug(f"Recorded {len(rows)} units for process run {process_id}")
        return len(rows)

    async def _load_running(self, session: AsyncSession, process_id: int) -> ProcessRun:
        result = await session.execute(select(ProcessRun).where(ProcessRun.process_id == process_id))
        run = result.scalar_one_or_none()
        if run is None:
            logger.warning(f"Rejected write for unknown process run {process_id}")
            raise UnknownRunError(process_id)
        if run.status != RunStatus.RUNNING.value:
            logger.warning(f"Rejected write for process run {process_id}: already {run.status}")
            raise AlreadyTerminalError(process_id, run.status)
        return run

    # ─── Reads ───

    async def get_run(self, process_id: int) -> RunRecord | None:
        async with self.session_factory() as session:
            result = await session.execute(select(ProcessRun).where(ProcessRun.process_id == process_id))
            run = result.scalar_one_or_none()
            return RunRecord.model_validate(run) if run else None

    async def query_runs(
        self,
        time_range: TimeRange,
        active_only: bool,
        limit_offset: LimitOffset,
    ) -> PaginatedList[RunRecord]:
        """Runs whose [start_time, end_time or now) interval intersects the range.

        Most recent start first. With ``active_only`` runs without any
        recorded unit are left out.
        """
        now = self.clock()
        start, end = time_range.start, time_range.end

        # A zero-length run still counts when it starts inside the window
        overlaps = [ProcessRun.start_time >= start, ProcessRun.end_time > start]
        if now > start:
            overlaps.append(ProcessRun.end_time.is_(None))
        conditions = [ProcessRun.start_time < end, or_(*overlaps)]
        if active_only:
            conditions.append(exists().where(ProcessUnit.process_id == ProcessRun.process_id))

        async with self.session_factory() as session:
            total = (
                await session.execute(select(func.count(ProcessRun.process_id)).where(*conditions))
            ).scalar_one()
            result = await session.execute(
                select(ProcessRun)
                .where(*conditions)
                .order_by(ProcessRun.start_time.desc(), ProcessRun.process_id.desc())
                .limit(limit_offset.limit)
                .offset(limit_offset.offset)
            )
            runs = [RunRecord.model_validate(r) for r in result.scalars().all()]

        return PaginatedList[RunRecord](results=runs, total=total, limit_offset=limit_offset)

    async def get_units(self, process_id: int, limit_offset: LimitOffset) -> PaginatedList[UnitRecord]:
        """Units of a run in timestamp order. An unknown run yields an empty page."""
        async with self.session_factory() as session:
            total = await self._count_units(session, process_id)
            result = await session.execute(
                select(ProcessUnit)
                .where(ProcessUnit.process_id == process_id)
                .order_by(ProcessUnit.timestamp.asc(), ProcessUnit.id.asc())
                .limit(limit_offset.limit)
                .offset(limit_offset.offset)
            )
            units = [UnitRecord.model_validate(u) for u in result.scalars().all()]

        return PaginatedList[UnitRecord](results=units, total=total, limit_offset=limit_offset)

    async def count_units(self, process_id: int) -> int:
        async with self.session_factory() as session:
            return await self._count_units(session, process_id)

    async def _count_units(self, session: AsyncSession, process_id: int) -> int:
        result = await session.execute(
            select(func.count(ProcessUnit.id)).where(ProcessUnit.process_id == process_id)
        )
        return result.scalar_one()
