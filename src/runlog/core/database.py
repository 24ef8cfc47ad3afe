"""Async database engine and session management."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the async engine and the session factory handed to the run history store."""

    def __init__(self, database_url: str):
        self.url = database_url
        connect_args = {}
        if "sqlite" in database_url:
            connect_args["check_same_thread"] = False
        self.engine: AsyncEngine = create_async_engine(database_url, echo=False, connect_args=connect_args)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_tables(self) -> None:
        # Model modules register their tables on Base.metadata at import time
        import runlog.models.run  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
