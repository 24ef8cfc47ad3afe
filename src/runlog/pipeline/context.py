"""RunContext — what a pipeline uses to record its run and flush staged units."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from runlog.core.clock import utcnow
from runlog.ingest.buffer import IngestBuffer
from runlog.models.run import RunStatus
from runlog.repositories.run_repo import RunHistoryStore
from runlog.schemas.run import UnitRecord

logger = logging.getLogger("runlog.ingest")


class RunContext:
    """Handle on one in-progress process run."""

    def __init__(self, store: RunHistoryStore, process_id: int, invoked_by: str | None = None):
        self.store = store
        self.process_id = process_id
        self.invoked_by = invoked_by
        self.units_recorded = 0

    def stage(self, name: str) -> "IngestStage":
        """Start a named stage whose units are flushed when it exits cleanly."""
        return IngestStage(self, name)


class IngestStage:
    """Context manager that buffers unit outcomes for one stage of a run.

    Units are keyed by ``unit_key``; recording the same key twice keeps the
    latest outcome in the original position. Leaving the block normally
    flushes the buffer to the store. Leaving it with an exception flushes
    nothing and lets the exception through, so the pipeline can retry the
    stage from its last committed state.
    """

    def __init__(self, ctx: RunContext, name: str):
        self.ctx = ctx
        self.name = name
        self.buffer: IngestBuffer[str, UnitRecord] = IngestBuffer()

    def record(
        self,
        unit_key: str,
        success: bool = True,
        message: str | None = None,
        unit_type: str | None = None,
        action: str | None = None,
        timestamp: datetime | None = None,
    ) -> UnitRecord:
        unit = UnitRecord(
            unit_key=unit_key,
            success=success,
            message=message,
            unit_type=unit_type,
            action=action,
            timestamp=timestamp or utcnow(),
            process_id=self.ctx.process_id,
        )
        self.buffer.set(unit_key, unit)
        return unit

    async def flush(self) -> int:
        """Commit staged units in one batch, clearing the buffer only on success."""
        pending = self.buffer.values()
        if not pending:
            return 0
        count = await self.ctx.store.record_units(self.ctx.process_id, pending)
        self.buffer.clear()
        self.ctx.units_recorded += count
        logger.info(f"Stage '{self.name}' flushed {count} units (run={self.ctx.process_id})")
        return count

    async def __aenter__(self) -> IngestStage:
        logger.debug(f"Stage started: {self.name} (run={self.ctx.process_id})")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.flush()
        else:
            logger.warning(
                f"Stage '{self.name}' failed with {len(self.buffer)} staged units unflushed — {exc_val}"
            )
        return False  # don't suppress exceptions


@asynccontextmanager
async def track_run(store: RunHistoryStore, invoked_by: str | None = None) -> AsyncIterator[RunContext]:
    """Begin a process run and complete it when the block exits.

    The run is marked completed on a clean exit and failed when the block
    raises or its task is cancelled; the exception is re-raised either way.
    """
    process_id = await store.begin_run(invoked_by=invoked_by)
    ctx = RunContext(store, process_id, invoked_by=invoked_by)
    try:
        yield ctx
    except BaseException as e:
        await store.complete_run(process_id, RunStatus.FAILED, error=f"{type(e).__name__}: {e}")
        raise
    await store.complete_run(process_id, RunStatus.COMPLETED)
