"""runlog daemon — FastAPI app serving the process run history."""

import logging
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI

from runlog import __version__
from runlog.core.config import RunlogSettings, get_settings
from runlog.core.database import Database
from runlog.api.router import api_router
from runlog.repositories.run_repo import RunHistoryStore
from runlog.services.query_engine import RunQueryEngine

logger = logging.getLogger("runlog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    database: Database = app.state.database

    await database.create_tables()
    logger.info(f"Database initialized: {database.url}")

    yield

    await database.dispose()
    logger.info("runlog daemon stopped")


def create_app(
    settings: RunlogSettings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Build the app with its store and query engine wired in explicitly."""
    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    store = RunHistoryStore(database.session_factory)
    engine = RunQueryEngine(
        store,
        detail_unit_limit=settings.detail_unit_limit,
        recent_days=settings.recent_days,
        default_limit=settings.default_limit,
    )

    app = FastAPI(
        title="runlog",
        description="Process run history for batch ingestion pipelines",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.store = store
    app.state.query_engine = engine

    app.include_router(api_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


def main():
    """Entry point for `runlogd` command."""
    import sys

    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    host = settings.host
    port = settings.port

    # Parse CLI args (simple, no dep on typer for daemon)
    args = sys.argv[1:]
    for i, arg in enumerate(args):
        if arg == "--port" and i + 1 < len(args):
            port = int(args[i + 1])
        if arg == "--host" and i + 1 < len(args):
            host = args[i + 1]

    logger.info(f"Starting runlog daemon v{__version__} on {host}:{port}")

    app = create_app(settings)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
