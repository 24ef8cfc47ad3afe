"""Shared test fixtures for runlog tests."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from runlog.core.config import RunlogSettings
from runlog.core.database import Database
from runlog.daemon.main import create_app
from runlog.repositories.run_repo import RunHistoryStore
from runlog.services.query_engine import RunQueryEngine


class FakeClock:
    """Controllable clock. Each call returns the current time; tests advance it explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, 0))


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """Fresh SQLite file database for each test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'runlog.db'}")
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def store(database, clock):
    return RunHistoryStore(database.session_factory, clock=clock)


@pytest_asyncio.fixture(scope="function")
async def engine(store):
    return RunQueryEngine(store, detail_unit_limit=100, recent_days=7)


@pytest_asyncio.fixture(scope="function")
async def app(database, store, engine):
    """App sharing the test database and the fake-clock store."""
    settings = RunlogSettings(RUNLOG_API_KEY="test_key", RUNLOG_DATABASE_URL=database.url)
    _app = create_app(settings=settings, database=database)
    _app.state.store = store
    _app.state.query_engine = engine
    yield _app


@pytest_asyncio.fixture(scope="function")
async def client(app):
    """Async HTTP client pointed at the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer test_key"},
    ) as c:
        yield c


@pytest_asyncio.fixture(scope="function")
async def unauthed_client(app):
    """Async HTTP client without auth."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ─── Helpers ───

async def seed_run(store, clock, units: int = 0, duration_minutes: int = 5, status=None) -> int:
    """Begin a run at the current clock time, record units, and complete it."""
    from runlog.models.run import RunStatus
    from runlog.schemas.run import UnitRecord

    process_id = await store.begin_run(invoked_by="test")
    if units:
        batch = [
            UnitRecord(unit_key=f"unit-{process_id}-{i}", timestamp=clock.now + timedelta(seconds=i))
            for i in range(units)
        ]
        await store.record_units(process_id, batch)
    clock.advance(minutes=duration_minutes)
    await store.complete_run(process_id, status or RunStatus.COMPLETED)
    return process_id
