"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: builds the engine lazily and rebinds it when the event loop changes
2. Base: declarative base shared by every ORM model
3. Database: session / transaction provider injected through the DI container

SQLite URLs (used by the repository tests) skip the connection pool options.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class Base(DeclarativeBase):
    pass


class AsyncEngineManager:
    """
    Manages a SQLAlchemy async engine with event loop awareness.

    Ensures the engine is always bound to the current event loop to prevent
    "Task got Future attached to a different loop" errors (pytest creates a
    loop per test).
    """

    def __init__(self, *, db_url: str) -> None:
        self.db_url = db_url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

        if self._loop is not current_loop or self._engine is None:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, rebuilding engine')
            self._engine = self._create_engine()
            self._session_maker = None
            self._loop = current_loop

        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None

    def _create_engine(self) -> AsyncEngine:
        options: dict[str, Any] = {'echo': False}
        if not self.db_url.startswith('sqlite'):
            options |= {
                'pool_size': settings.DB_POOL_SIZE,
                'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
                'pool_timeout': settings.DB_POOL_TIMEOUT,
                'pool_recycle': settings.DB_POOL_RECYCLE,
                'pool_pre_ping': settings.DB_POOL_PRE_PING,
            }
        Logger.base.info(f'🔗 [DB] Creating engine for {self.db_url.split("@")[-1]}')
        return create_async_engine(self.db_url, **options)


class Database:
    """
    Database handle for the dependency injection container

    `session()` is the factory handed to repositories (`session_factory`);
    `transaction()` additionally opens a transaction that commits on success
    and rolls back when the block raises.
    """

    def __init__(self, *, db_url: str | None = None) -> None:
        self._engine_manager = AsyncEngineManager(db_url=db_url or settings.DATABASE_URL_ASYNC)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine_manager.get_engine()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session_maker = self._engine_manager.get_session_maker()
        async with session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        session_maker = self._engine_manager.get_session_maker()
        async with session_maker() as session, session.begin():
            yield session

    async def create_tables(self) -> None:
        """Create tables if they don't exist (local dev and tests; production uses migrations)"""
        # Register every model on Base.metadata
        import src.service.ticketing.driven_adapter.model  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async def dispose(self) -> None:
        await self._engine_manager.dispose()
