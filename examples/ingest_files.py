"""Ingest files — a two-stage pipeline that records its run history with runlog."""

import asyncio
import logging

from runlog import track_run
from runlog.core.config import get_settings
from runlog.core.database import Database
from runlog.repositories.run_repo import RunHistoryStore

logger = logging.getLogger("runlog.examples")

INCOMING = ["SOBI.D240301.T101500.TXT", "SOBI.D240301.T113000.TXT", "broken.xml"]


async def main():
    settings = get_settings()
    database = Database(settings.database_url)
    await database.create_tables()
    store = RunHistoryStore(database.session_factory)

    async with track_run(store, invoked_by="example") as run:
        # Stage 1: pick up files
        async with run.stage("collate") as stage:
            for name in INCOMING:
                stage.record(name, unit_type="sobi_file", action="collate")

        # Stage 2: parse; failures are recorded as unit outcomes, not exceptions
        async with run.stage("ingest") as stage:
            for name in INCOMING:
                if name.endswith(".xml"):
                    stage.record(name, success=False, message="unsupported format", unit_type="sobi_file", action="ingest")
                else:
                    stage.record(name, unit_type="sobi_file", action="ingest")

    logger.info(f"Run {run.process_id} recorded {run.units_recorded} units")
    await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(name)s | %(levelname)s | %(message)s")
    asyncio.run(main())
