"""
SQLAlchemy async engine and session management

- AsyncEngineManager: one engine per running event loop. The app loop (which
  also runs the Kafka handlers through its portal) and each test loop get their
  own engine, which avoids "Future attached to a different loop" errors.
- Base: declarative base for every ORM model.
- Database: injectable handle exposing `session()` and `new_session()`.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.logging.loguru_io import Logger


class AsyncEngineManager:
    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url or settings.DATABASE_URL_ASYNC
        self._engines: dict[int, AsyncEngine] = {}
        self._session_makers: dict[int, async_sessionmaker[AsyncSession]] = {}

    @staticmethod
    def _loop_key() -> int:
        try:
            return id(asyncio.get_running_loop())
        except RuntimeError:
            return 0  # No running loop (e.g. import-time or sync tooling)

    def get_engine(self) -> AsyncEngine:
        key = self._loop_key()
        if key not in self._engines:
            Logger.base.info(f'🔗 [DB] Creating engine for event loop {key}')
            self._engines[key] = create_async_engine(
                self._database_url,
                echo=False,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_POOL_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=settings.DB_POOL_PRE_PING,
            )
        return self._engines[key]

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        key = self._loop_key()
        if key not in self._session_makers:
            self._session_makers[key] = async_sessionmaker(
                self.get_engine(),
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_makers[key]

    async def dispose(self) -> None:
        """Dispose the engine bound to the current loop."""
        key = self._loop_key()
        self._session_makers.pop(key, None)
        if engine := self._engines.pop(key, None):
            await engine.dispose()
            Logger.base.info(f'🗄️ [DB] Disposed engine for event loop {key}')


_engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return _engine_manager.get_engine()


class Base(DeclarativeBase):
    pass


async def create_db_and_tables(engine: Optional[AsyncEngine] = None) -> None:
    """Create database tables if they don't exist"""
    # Importing the model package registers every table on Base.metadata
    import ticket_inventory.service.ticketing.driven_adapter.model  # noqa: F401

    current_engine = engine or get_engine()
    async with current_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    Logger.base.info('🗄️ [DB] Tables ensured')


class Database:
    """Injectable database handle backed by the event-loop-aware engine manager."""

    def __init__(self, *, engine_manager: AsyncEngineManager | None = None) -> None:
        self._engine_manager = engine_manager or _engine_manager

    @property
    def engine(self) -> AsyncEngine:
        return self._engine_manager.get_engine()

    def new_session(self) -> AsyncSession:
        return self._engine_manager.get_session_maker()()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Short-lived session for read paths; rolls back on exception."""
        async with self._engine_manager.get_session_maker()() as session:
            yield session

    async def ping(self) -> None:
        """Round-trip `SELECT 1`; raises when the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text('SELECT 1'))

    async def dispose(self) -> None:
        await self._engine_manager.dispose()
